from collections.abc import Callable
from datetime import UTC, datetime
import logging
import threading
import time
from typing import TypeVar

import requests

from surveysync.auth import SessionAuthenticator
from surveysync.config import Settings
from surveysync.errors import AuthError, ConfigurationError, FetchError
from surveysync.provider import CaseRetriever, ResponseFetcher
from surveysync.schemas import (
    STATE_ABORTED,
    STATE_AUTHENTICATING,
    STATE_CANCELLED,
    STATE_COMPLETED,
    STATE_FETCHING_RESPONSES,
    STATE_IDLE,
    STATE_RETRIEVING_CASES,
    CaseBatchResult,
    RunOutcome,
)
from surveysync.sinks import ResponseSink
from surveysync.transport import build_http_session


logger = logging.getLogger(__name__)
T = TypeVar("T")


class SyncRunner:
    """Runs one provider sync per call: authenticate, query cases, fetch each response.

    ``run`` never raises. Every failure ends as an ``aborted`` outcome and the
    next scheduler tick starts again from nothing.
    """

    def __init__(
        self,
        settings: Settings,
        sink: ResponseSink,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings
        self.sink = sink
        self.session = session or build_http_session()
        timeout = settings.request_timeout_seconds
        self.authenticator = SessionAuthenticator(self.session, timeout_seconds=timeout)
        self.case_retriever = CaseRetriever(self.session, timeout_seconds=timeout)
        self.response_fetcher = ResponseFetcher(self.session, timeout_seconds=timeout)
        self._stop_event = threading.Event()

    def request_stop(self) -> None:
        self._stop_event.set()

    def run(self, *, run_key: str | None = None, trigger_source: str = "manual") -> RunOutcome:
        started_at = datetime.now(UTC)
        run_key = run_key or f"sync-{started_at:%Y%m%dT%H%M%S%fZ}"
        provider = self.settings.provider
        self._stop_event.clear()

        state = STATE_IDLE
        authenticated = False
        total_cases = 0
        batch: CaseBatchResult | None = None

        def aborted(error: str) -> RunOutcome:
            return self._outcome(
                run_key,
                trigger_source,
                started_at,
                state=STATE_ABORTED,
                aborted_at=state,
                authenticated=authenticated,
                total_cases=total_cases,
                batch=batch,
                error=error,
            )

        logger.info("sync run started", extra={"run_key": run_key, "trigger_source": trigger_source})
        try:
            provider.require()

            state = STATE_AUTHENTICATING
            auth = self._run_step(run_key, state, lambda: self.authenticator.authenticate(provider))
            authenticated = True

            state = STATE_RETRIEVING_CASES
            cases = self._run_step(run_key, state, lambda: self.case_retriever.retrieve_cases(auth, provider))
            total_cases = len(cases)
            if not cases:
                logger.log(
                    self._empty_cases_level(),
                    "no cases found for project",
                    extra={"run_key": run_key, "project_id": provider.project_id},
                )
                return aborted("no cases found")

            state = STATE_FETCHING_RESPONSES
            batch = self._run_step(
                run_key,
                state,
                lambda: self.response_fetcher.process_cases(
                    auth,
                    provider,
                    cases,
                    self.sink,
                    run_key=run_key,
                    should_stop=self._stop_event.is_set,
                ),
            )
        except ConfigurationError as exc:
            logger.error("sync run aborted: configuration invalid", extra={"run_key": run_key, "missing": exc.missing})
            return aborted(str(exc))
        except AuthError as exc:
            logger.error(
                "sync run aborted: authentication failed",
                extra={"run_key": run_key, "status_code": exc.status_code, "error": str(exc)},
            )
            return aborted(str(exc))
        except FetchError as exc:
            logger.error(
                "sync run aborted: cases could not be retrieved",
                extra={"run_key": run_key, "status_code": exc.status_code, "error": str(exc)},
            )
            return aborted(str(exc))
        except Exception as exc:
            logger.exception("sync run aborted: unexpected error", extra={"run_key": run_key, "state": state})
            return aborted(str(exc))

        final_state = STATE_CANCELLED if batch.cancelled else STATE_COMPLETED
        return self._outcome(
            run_key,
            trigger_source,
            started_at,
            state=final_state,
            authenticated=authenticated,
            total_cases=total_cases,
            batch=batch,
        )

    def _run_step(self, run_key: str, step_name: str, fn: Callable[[], T]) -> T:
        started = time.perf_counter()
        try:
            return fn()
        finally:
            logger.debug(
                "step finished",
                extra={
                    "run_key": run_key,
                    "step": step_name,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                },
            )

    def _empty_cases_level(self) -> int:
        level = logging.getLevelName(self.settings.empty_cases_log_level.upper())
        return level if isinstance(level, int) else logging.WARNING

    def _outcome(
        self,
        run_key: str,
        trigger_source: str,
        started_at: datetime,
        *,
        state: str,
        authenticated: bool,
        total_cases: int,
        batch: CaseBatchResult | None,
        aborted_at: str | None = None,
        error: str | None = None,
    ) -> RunOutcome:
        return RunOutcome(
            run_key=run_key,
            trigger_source=trigger_source,
            state=state,
            started_at=started_at,
            completed_at=datetime.now(UTC),
            authenticated=authenticated,
            aborted_at=aborted_at,
            total_cases=total_cases,
            succeeded_cases=batch.succeeded if batch else 0,
            skipped_cases=batch.skipped if batch else 0,
            failures=batch.failures if batch else (),
            error=error,
        )
