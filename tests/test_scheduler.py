from apscheduler.triggers.cron import CronTrigger

from surveysync.scheduler import SyncJob, build_scheduler
from surveysync.schemas import STATE_ABORTED, STATE_COMPLETED
from stubs import StubSession, json_response


def test_job_runs_pipeline_and_releases_guard(make_runner) -> None:
    session = StubSession(
        [
            json_response(200, {"Token": "abc"}),
            json_response(200, [{"Id": 1}]),
            json_response(200, {"case": 1}),
        ]
    )
    job = SyncJob(make_runner(session))

    outcome = job()

    assert outcome is not None
    assert outcome.state == STATE_COMPLETED
    assert outcome.trigger_source == "scheduled"
    assert job.is_running() is False


def test_overlapping_tick_is_skipped(make_runner) -> None:
    session = StubSession([])
    job = SyncJob(make_runner(session))

    job._lock.acquire()
    try:
        assert job.is_running() is True
        assert job() is None
    finally:
        job._lock.release()

    assert session.calls == []


def test_guard_is_released_after_aborted_run(make_runner) -> None:
    session = StubSession([json_response(401, {}), json_response(401, {})])
    job = SyncJob(make_runner(session))

    first = job()
    second = job()

    assert first is not None and first.state == STATE_ABORTED
    assert second is not None and second.state == STATE_ABORTED
    assert len(session.calls) == 2


def test_build_scheduler_registers_single_instance_cron_job(make_runner, test_settings) -> None:
    job = SyncJob(make_runner(StubSession([])))
    scheduler = build_scheduler(test_settings, job)

    jobs = scheduler.get_jobs()
    assert len(jobs) == 1
    assert jobs[0].id == "survey_sync"
    assert jobs[0].max_instances == 1
    assert jobs[0].coalesce is True
    assert isinstance(jobs[0].trigger, CronTrigger)
