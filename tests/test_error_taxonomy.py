from app.harvest.errors import (
    CredentialExpired,
    ErrorCode,
    ExtractionEmpty,
    HarvestError,
    NavigationTimeout,
    SessionInitError,
)


def test_subclasses_carry_their_codes() -> None:
    assert SessionInitError("x").error_code == ErrorCode.SESSION_INIT
    assert CredentialExpired("x").error_code == ErrorCode.CREDENTIAL_EXPIRED
    assert NavigationTimeout("x").error_code == ErrorCode.NAVIGATION_TIMEOUT
    assert ExtractionEmpty("x").error_code == ErrorCode.EXTRACTION_EMPTY
    assert HarvestError("x").error_code == ErrorCode.INTERNAL


def test_explicit_code_overrides_class_default() -> None:
    exc = HarvestError("boom", error_code=ErrorCode.NAVIGATION_TIMEOUT)

    assert exc.error_code == ErrorCode.NAVIGATION_TIMEOUT
    assert str(exc) == "boom"
    assert HarvestError.error_code == ErrorCode.INTERNAL
