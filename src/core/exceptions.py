"""
ScreenVault exception hierarchy.

All application-specific exceptions inherit from ScreenVaultError so the
session controller can log their ``code`` and convert them into
``Failure`` results in one place.
"""


class ScreenVaultError(Exception):
    """Base exception for all ScreenVault errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "SCREENVAULT_ERROR",
    ) -> None:
        self.detail = detail
        self.code = code
        super().__init__(detail)


class SessionAlreadyActiveError(ScreenVaultError):
    """Raised when trying to start a capture while one is already active."""

    def __init__(self) -> None:
        super().__init__(
            detail="A recording session is already active",
            code="SESSION_ALREADY_ACTIVE",
        )


class SessionNotActiveError(ScreenVaultError):
    """Raised when stopping a capture while no session is active."""

    def __init__(self) -> None:
        super().__init__(
            detail="No recording session is active",
            code="SESSION_NOT_ACTIVE",
        )


class CaptureAcquisitionError(ScreenVaultError):
    """Raised when a display or microphone stream cannot be acquired."""

    def __init__(self, detail: str = "Could not acquire capture stream") -> None:
        super().__init__(detail=detail, code="CAPTURE_ACQUISITION_ERROR")


class EncoderError(ScreenVaultError):
    """Raised when the encoder cannot be started or driven."""

    def __init__(self, detail: str = "Encoder failed") -> None:
        super().__init__(detail=detail, code="ENCODER_ERROR")
