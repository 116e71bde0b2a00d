class SyncError(RuntimeError):
    pass


class ConfigurationError(SyncError):
    def __init__(self, missing: tuple[str, ...]) -> None:
        self.missing = missing
        super().__init__("missing required configuration: " + ", ".join(missing))


class AuthError(SyncError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class FetchError(SyncError):
    """Provider data could not be retrieved.

    ``scope`` is ``"run"`` for the bulk case query and ``"case"`` for a single
    case detail call.
    """

    def __init__(
        self,
        message: str,
        *,
        scope: str,
        status_code: int | None = None,
        case_id: str | None = None,
    ) -> None:
        self.scope = scope
        self.status_code = status_code
        self.case_id = case_id
        super().__init__(message)
