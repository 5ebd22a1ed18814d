from __future__ import annotations

"""Error taxonomy for harvest failures.

The codes are included in structured log lines so that a failed or degraded
job can be explained from the logs alone. Only ``SessionInitError`` and
``CredentialExpired`` end a job; the other two are raised and absorbed inside
the phase that can degrade.
"""


class ErrorCode:
    SESSION_INIT = "session_init_failed"
    CREDENTIAL_EXPIRED = "credential_expired"
    NAVIGATION_TIMEOUT = "navigation_timeout"
    EXTRACTION_EMPTY = "extraction_empty"
    INTERNAL = "internal_error"


class HarvestError(Exception):
    error_code = ErrorCode.INTERNAL

    def __init__(self, message: str, *, error_code: str | None = None) -> None:
        super().__init__(message)
        if error_code is not None:
            self.error_code = error_code

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class SessionInitError(HarvestError):
    """The browser engine could not be launched."""

    error_code = ErrorCode.SESSION_INIT


class CredentialExpired(HarvestError):
    """The site served a challenge page instead of content."""

    error_code = ErrorCode.CREDENTIAL_EXPIRED


class NavigationTimeout(HarvestError):
    error_code = ErrorCode.NAVIGATION_TIMEOUT


class ExtractionEmpty(HarvestError):
    error_code = ErrorCode.EXTRACTION_EMPTY


__all__ = [
    "ErrorCode",
    "HarvestError",
    "SessionInitError",
    "CredentialExpired",
    "NavigationTimeout",
    "ExtractionEmpty",
]
