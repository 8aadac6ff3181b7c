"""Error taxonomy shared by the sync stages.

Only ``FatalError`` is allowed to end a stage early. Everything else is
caught at the record or page boundary, turned into a message on the stage's
error list, and the stage moves on.
"""


class SyncError(Exception):
    """Base class for pipeline errors."""


class FetchError(SyncError):
    """Network or HTTP failure reaching the external API."""


class ApiError(FetchError):
    """Non-2xx response from the external API."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"API error {status}: {message}")


class ValidationError(SyncError):
    """Upstream record is malformed or incomplete. Skipped, never fatal."""


class ConflictSkip(SyncError):
    """Uniqueness constraint hit on an idempotent insert.

    Callers treat this as "already present", not as a failure.
    """

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Already present: {key}")


class PersistenceError(SyncError):
    """Any storage failure other than a uniqueness conflict."""


class FatalError(SyncError):
    """Aborts the current stage immediately."""


class MissingApiKeyError(FatalError):
    """No API credential configured."""


class ApiAuthError(FatalError, ApiError):
    """Upstream rejected the credential (401/403)."""

    def __init__(self, status: int, message: str):
        ApiError.__init__(self, status, message)
