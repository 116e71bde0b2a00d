from collections.abc import Mapping
import logging

import requests

from surveysync.config import ProviderSettings
from surveysync.errors import AuthError
from surveysync.schemas import AuthorizationContext
from surveysync.transport import is_success, read_json


logger = logging.getLogger(__name__)


class SessionAuthenticator:
    """Exchanges provider credentials for a per-run authorization context.

    Nothing is cached between calls. The provider issues short-lived tokens,
    so every run authenticates from scratch.
    """

    def __init__(self, session: requests.Session, *, timeout_seconds: float) -> None:
        self.session = session
        self.timeout_seconds = timeout_seconds

    def authenticate(self, provider: ProviderSettings) -> AuthorizationContext:
        params = {
            "userInfo.username": provider.username,
            "userInfo.password": provider.password,
            "userInfo.context": provider.context,
        }
        try:
            response = self.session.get(provider.auth_url(), params=params, timeout=self.timeout_seconds)
        except requests.Timeout as exc:
            raise AuthError("authentication request timed out") from exc
        except requests.RequestException as exc:
            # The exception text carries the request URL, credentials included.
            raise AuthError(f"authentication request failed: {type(exc).__name__}") from exc

        if not is_success(response):
            raise AuthError(
                f"authentication rejected with status {response.status_code}",
                status_code=response.status_code,
            )

        body = read_json(response)
        if not isinstance(body, Mapping):
            raise AuthError(
                "authentication response is empty or could not be deserialized",
                status_code=response.status_code,
            )
        if not all(isinstance(key, str) and isinstance(value, str) for key, value in body.items()):
            raise AuthError(
                "authentication response is not a string mapping",
                status_code=response.status_code,
            )

        token = body.get("Token")
        if not isinstance(token, str) or not token.strip():
            raise AuthError("token not found in authentication response", status_code=response.status_code)

        logger.info("authentication successful", extra={"path": provider.auth_path})
        return AuthorizationContext(token=token, scheme=provider.auth_scheme)
