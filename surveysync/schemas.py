from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


STATE_IDLE = "idle"
STATE_AUTHENTICATING = "authenticating"
STATE_RETRIEVING_CASES = "retrieving_cases"
STATE_FETCHING_RESPONSES = "fetching_responses"
STATE_COMPLETED = "completed"
STATE_ABORTED = "aborted"
STATE_CANCELLED = "cancelled"

CaseRecord = dict[str, Any]


@dataclass(frozen=True)
class AuthorizationContext:
    token: str
    scheme: str = "Client"

    def __post_init__(self) -> None:
        if not self.token:
            raise ValueError("authorization token must not be empty")

    def header_value(self) -> str:
        return f"{self.scheme} {self.token}"

    def __repr__(self) -> str:
        return f"AuthorizationContext(scheme={self.scheme!r}, token=<redacted>)"


@dataclass(frozen=True)
class ResponseRecord:
    run_key: str
    project_id: str
    case_id: str
    payload: Any
    fetched_at: datetime


@dataclass(frozen=True)
class CaseFailure:
    case_id: str
    reason: str
    status_code: int | None = None


@dataclass(frozen=True)
class CaseBatchResult:
    attempted: int
    succeeded: int
    skipped: int
    failures: tuple[CaseFailure, ...] = ()
    cancelled: bool = False


@dataclass(frozen=True)
class RunOutcome:
    run_key: str
    trigger_source: str
    state: str
    started_at: datetime
    completed_at: datetime
    authenticated: bool = False
    aborted_at: str | None = None
    total_cases: int = 0
    succeeded_cases: int = 0
    skipped_cases: int = 0
    failures: tuple[CaseFailure, ...] = field(default_factory=tuple)
    error: str | None = None

    @property
    def failed_cases(self) -> int:
        return len(self.failures)
