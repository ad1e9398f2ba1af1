"""Exception hierarchy for the document registration client."""


class CrptError(Exception):
    """Base class for all client errors."""


class ConfigurationError(CrptError, ValueError):
    """Raised when a client or limiter is constructed with invalid settings."""


class SubmissionValidationError(CrptError, ValueError):
    """Raised when a document or signature is missing before submission."""


class AdmissionCancelledError(CrptError):
    """Raised when a caller waiting for a rate limit slot is cancelled."""

    def __init__(self, message: str = "Limiter closed while waiting for admission") -> None:
        super().__init__(message)
