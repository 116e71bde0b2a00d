from typing import Any

import requests


def build_http_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"Accept": "application/json"})
    return session


def is_success(response: Any) -> bool:
    return 200 <= int(response.status_code) < 300


def read_json(response: Any) -> Any:
    """Return the decoded body, or ``None`` when it is empty or not JSON."""
    text = str(getattr(response, "text", "") or "")
    if not text.strip():
        return None
    try:
        return response.json()
    except ValueError:
        return None


def response_excerpt(response: Any) -> str:
    return str(getattr(response, "text", "") or "").strip()[:256]
