from dataclasses import dataclass, fields
import os
from urllib.parse import quote

from dotenv import load_dotenv

from surveysync.errors import ConfigurationError


load_dotenv()


@dataclass(frozen=True)
class ProviderSettings:
    base_url: str
    auth_path: str
    username: str
    password: str
    context: str
    project_id: str
    respondents_path: str
    responses_path: str
    auth_scheme: str = "Client"

    ENV_NAMES = {
        "base_url": "VOXCO_BASE_URL",
        "auth_path": "VOXCO_AUTH_PATH",
        "username": "VOXCO_USERNAME",
        "password": "VOXCO_PASSWORD",
        "context": "VOXCO_CONTEXT",
        "project_id": "VOXCO_PROJECT_ID",
        "respondents_path": "VOXCO_RESPONDENTS_PATH",
        "responses_path": "VOXCO_RESPONSES_PATH",
        "auth_scheme": "VOXCO_AUTH_SCHEME",
    }

    def require(self) -> None:
        missing = tuple(
            self.ENV_NAMES[field.name]
            for field in fields(self)
            if not str(getattr(self, field.name) or "").strip()
        )
        if missing:
            raise ConfigurationError(missing)

    def auth_url(self) -> str:
        return _join(self.base_url, self.auth_path)

    def respondents_url(self) -> str:
        return _join(self.base_url, self.respondents_path.replace("{projectId}", self.project_id))

    def responses_url(self, case_id: str) -> str:
        path = self.responses_path.replace("{projectId}", self.project_id).replace("{id}", quote(case_id, safe=""))
        return _join(self.base_url, path)


@dataclass(frozen=True)
class Settings:
    app_name: str
    database_url: str
    log_level: str
    request_timeout_seconds: float
    schedule_cron: str
    empty_cases_log_level: str
    provider: ProviderSettings


def _join(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def get_provider_settings() -> ProviderSettings:
    names = ProviderSettings.ENV_NAMES
    return ProviderSettings(
        base_url=os.getenv(names["base_url"], ""),
        auth_path=os.getenv(names["auth_path"], ""),
        username=os.getenv(names["username"], ""),
        password=os.getenv(names["password"], ""),
        context=os.getenv(names["context"], ""),
        project_id=os.getenv(names["project_id"], ""),
        respondents_path=os.getenv(names["respondents_path"], ""),
        responses_path=os.getenv(names["responses_path"], ""),
        auth_scheme=os.getenv(names["auth_scheme"], "Client"),
    )


def get_settings() -> Settings:
    return Settings(
        app_name=os.getenv("APP_NAME", "survey-sync"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./survey_sync.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30")),
        schedule_cron=os.getenv("SCHEDULE_CRON", "*/5 * * * *"),
        empty_cases_log_level=os.getenv("EMPTY_CASES_LOG_LEVEL", "WARNING"),
        provider=get_provider_settings(),
    )
