from dataclasses import dataclass, field
import json

from surveysync.schemas import ResponseRecord


class StubResponse:
    def __init__(self, status_code: int, text: str = "") -> None:
        self.status_code = status_code
        self.text = text

    def json(self) -> object:
        return json.loads(self.text)


def json_response(status_code: int, body: object) -> StubResponse:
    return StubResponse(status_code, json.dumps(body))


@dataclass
class StubCall:
    method: str
    url: str
    params: dict[str, str] | None
    data: bytes | None
    headers: dict[str, str]
    timeout: float | None


class StubSession:
    """Replays scripted responses in order and records every request."""

    def __init__(self, responses: list[object]) -> None:
        self._responses = list(responses)
        self.calls: list[StubCall] = []
        self.headers: dict[str, str] = {"Accept": "application/json"}

    def get(self, url: str, *, params=None, headers=None, timeout=None) -> object:
        return self._next(StubCall("GET", url, params, None, dict(headers or {}), timeout))

    def post(self, url: str, *, data=None, headers=None, timeout=None) -> object:
        return self._next(StubCall("POST", url, None, data, dict(headers or {}), timeout))

    def _next(self, call: StubCall) -> object:
        self.calls.append(call)
        if not self._responses:
            raise AssertionError(f"no stub response configured for {call.method} {call.url}")
        next_item = self._responses.pop(0)
        if isinstance(next_item, Exception):
            raise next_item
        return next_item

    def calls_to(self, fragment: str) -> list[StubCall]:
        return [call for call in self.calls if fragment in call.url]


@dataclass
class CollectingSink:
    records: list[ResponseRecord] = field(default_factory=list)
    fail_for: set[str] = field(default_factory=set)

    def accept(self, record: ResponseRecord) -> None:
        if record.case_id in self.fail_for:
            raise RuntimeError(f"sink unavailable for {record.case_id}")
        self.records.append(record)
