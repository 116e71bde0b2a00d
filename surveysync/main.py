import argparse
import logging
import sys

from surveysync.config import get_settings
from surveysync.database import build_session_factory
from surveysync.errors import ConfigurationError
from surveysync.pipeline import SyncRunner
from surveysync.scheduler import SyncJob, start_scheduler
from surveysync.schemas import STATE_COMPLETED
from surveysync.sinks import SqlResponseSink


logger = logging.getLogger("surveysync")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync survey responses from the provider")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="run one sync now")
    run_parser.add_argument("--run-key", required=False, help="Correlation key for this run's logs and rows")

    schedule_parser = subparsers.add_parser("schedule", help="start the recurring sync scheduler")
    schedule_parser.add_argument("--run-now", action="store_true", help="also run once immediately")

    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    try:
        settings.provider.require()
    except ConfigurationError as exc:
        logger.error("startup aborted: %s", exc)
        print(str(exc), file=sys.stderr)
        raise SystemExit(2) from exc

    sink = SqlResponseSink(build_session_factory(settings.database_url))
    runner = SyncRunner(settings, sink)
    if args.command == "schedule":
        start_scheduler(settings, SyncJob(runner), run_now=args.run_now)
        return

    outcome = runner.run(run_key=args.run_key, trigger_source="manual")

    print(
        "run_key={run_key} state={state} aborted_at={aborted_at} total={total} succeeded={succeeded} failed={failed} skipped={skipped}".format(
            run_key=outcome.run_key,
            state=outcome.state,
            aborted_at=outcome.aborted_at or "-",
            total=outcome.total_cases,
            succeeded=outcome.succeeded_cases,
            failed=outcome.failed_cases,
            skipped=outcome.skipped_cases,
        )
    )
    if outcome.state != STATE_COMPLETED:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
