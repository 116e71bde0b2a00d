from collections.abc import Callable, Mapping
from datetime import UTC, datetime
import logging
from typing import Any

import requests

from surveysync.case_filter import build_filter
from surveysync.config import ProviderSettings
from surveysync.errors import FetchError
from surveysync.schemas import AuthorizationContext, CaseBatchResult, CaseFailure, CaseRecord, ResponseRecord
from surveysync.sinks import ResponseSink
from surveysync.transport import is_success, read_json, response_excerpt


logger = logging.getLogger(__name__)

CASE_ID_FIELD = "Id"
RESPONSE_QUERY = {"offset": "0", "mergeMentions": "false"}


def _auth_headers(auth: AuthorizationContext) -> dict[str, str]:
    return {"Authorization": auth.header_value()}


class CaseRetriever:
    def __init__(self, session: requests.Session, *, timeout_seconds: float) -> None:
        self.session = session
        self.timeout_seconds = timeout_seconds

    def retrieve_cases(self, auth: AuthorizationContext, provider: ProviderSettings) -> list[CaseRecord]:
        body = build_filter(provider.project_id).serialize()
        headers = _auth_headers(auth)
        headers["Content-Type"] = "application/json"

        try:
            response = self.session.post(
                provider.respondents_url(),
                data=body,
                headers=headers,
                timeout=self.timeout_seconds,
            )
        except requests.Timeout as exc:
            raise FetchError("case query timed out", scope="run") from exc
        except requests.RequestException as exc:
            raise FetchError(f"case query failed: {exc}", scope="run") from exc

        if not is_success(response):
            raise FetchError(
                f"case query rejected with status {response.status_code}: {response_excerpt(response)}",
                scope="run",
                status_code=response.status_code,
            )

        cases = read_json(response)
        if not isinstance(cases, list):
            raise FetchError(
                "case data is empty or could not be deserialized",
                scope="run",
                status_code=response.status_code,
            )
        if not all(isinstance(case, Mapping) for case in cases):
            raise FetchError("case data contains non-object entries", scope="run", status_code=response.status_code)

        logger.info("retrieved cases", extra={"project_id": provider.project_id, "case_count": len(cases)})
        return [dict(case) for case in cases]


def extract_case_id(case: CaseRecord) -> str | None:
    raw = case.get(CASE_ID_FIELD)
    if raw is None:
        return None
    return str(raw) or None


class ResponseFetcher:
    def __init__(self, session: requests.Session, *, timeout_seconds: float) -> None:
        self.session = session
        self.timeout_seconds = timeout_seconds

    def fetch_response(self, auth: AuthorizationContext, provider: ProviderSettings, case_id: str) -> Any:
        try:
            response = self.session.get(
                provider.responses_url(case_id),
                params=RESPONSE_QUERY,
                headers=_auth_headers(auth),
                timeout=self.timeout_seconds,
            )
        except requests.Timeout as exc:
            raise FetchError("response request timed out", scope="case", case_id=case_id) from exc
        except requests.RequestException as exc:
            raise FetchError(f"response request failed: {exc}", scope="case", case_id=case_id) from exc

        if not is_success(response):
            raise FetchError(
                f"status code {response.status_code}",
                scope="case",
                status_code=response.status_code,
                case_id=case_id,
            )

        payload = read_json(response)
        if payload is None:
            raise FetchError(
                "response is empty or could not be deserialized",
                scope="case",
                status_code=response.status_code,
                case_id=case_id,
            )
        return payload

    def process_cases(
        self,
        auth: AuthorizationContext,
        provider: ProviderSettings,
        cases: list[CaseRecord],
        sink: ResponseSink,
        *,
        run_key: str,
        should_stop: Callable[[], bool] | None = None,
    ) -> CaseBatchResult:
        """Fetch and forward each case in order; one case failing never stops the rest."""
        attempted = 0
        succeeded = 0
        skipped = 0
        failures: list[CaseFailure] = []

        for index, case in enumerate(cases):
            if should_stop is not None and should_stop():
                logger.warning(
                    "stop requested, abandoning remaining cases",
                    extra={"run_key": run_key, "remaining": len(cases) - index},
                )
                return CaseBatchResult(attempted, succeeded, skipped, tuple(failures), cancelled=True)

            case_id = extract_case_id(case)
            if case_id is None:
                logger.warning("case id missing or empty, skipping", extra={"run_key": run_key, "case_index": index})
                skipped += 1
                continue

            attempted += 1
            logger.info("processing case", extra={"run_key": run_key, "case_id": case_id})
            try:
                payload = self.fetch_response(auth, provider, case_id)
                sink.accept(
                    ResponseRecord(
                        run_key=run_key,
                        project_id=provider.project_id,
                        case_id=case_id,
                        payload=payload,
                        fetched_at=datetime.now(UTC),
                    )
                )
            except FetchError as exc:
                logger.error(
                    "failed to retrieve case response",
                    extra={"run_key": run_key, "case_id": case_id, "status_code": exc.status_code, "error": str(exc)},
                )
                failures.append(CaseFailure(case_id=case_id, reason=str(exc), status_code=exc.status_code))
                continue
            except Exception as exc:
                logger.exception("failed to forward case response", extra={"run_key": run_key, "case_id": case_id})
                failures.append(CaseFailure(case_id=case_id, reason=f"sink error: {exc}"))
                continue
            succeeded += 1

        return CaseBatchResult(attempted, succeeded, skipped, tuple(failures))
