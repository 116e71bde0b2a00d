from collections.abc import Callable

import pytest

from surveysync.config import ProviderSettings, Settings
from surveysync.pipeline import SyncRunner
from stubs import CollectingSink, StubSession


@pytest.fixture()
def provider_settings() -> ProviderSettings:
    return ProviderSettings(
        base_url="https://voxco.example.com/api",
        auth_path="authentication/user",
        username="sync-user",
        password="s3cret",
        context="Sus",
        project_id="103",
        respondents_path="projects/{projectId}/respondents/filter",
        responses_path="projects/{projectId}/respondents/{id}/responses",
    )


@pytest.fixture()
def test_settings(provider_settings: ProviderSettings) -> Settings:
    return Settings(
        app_name="survey-sync",
        database_url="sqlite://",
        log_level="INFO",
        request_timeout_seconds=5,
        schedule_cron="*/5 * * * *",
        empty_cases_log_level="WARNING",
        provider=provider_settings,
    )


@pytest.fixture()
def sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture()
def make_runner(test_settings: Settings, sink: CollectingSink) -> Callable[[StubSession], SyncRunner]:
    def _make(session: StubSession, settings: Settings | None = None) -> SyncRunner:
        return SyncRunner(settings or test_settings, sink, session=session)  # type: ignore[arg-type]

    return _make
