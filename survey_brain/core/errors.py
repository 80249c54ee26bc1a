"""Error taxonomy shared by the API layer and the survey pipeline.

Every error surfaced to a caller carries a ``kind`` from :class:`ErrorKind`
and an HTTP status. The API turns these into ``{"error": kind, "message": ...}``.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    BAD_REQUEST = "bad_request"
    VALIDATION_ERROR = "validation_error"
    MODEL_ERROR = "model_error"
    DB_ERROR = "db_error"
    SERVER_ERROR = "server_error"


class SurveyBrainError(Exception):
    """Base class for errors that map to a JSON error response."""

    kind: ErrorKind = ErrorKind.SERVER_ERROR
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"error": self.kind.value, "message": self.message}


class BadRequestError(SurveyBrainError):
    """Malformed or missing caller input. Never retried."""

    kind = ErrorKind.BAD_REQUEST
    status_code = 400


class RequestValidationFailed(SurveyBrainError):
    """Well-formed caller input that is semantically invalid."""

    kind = ErrorKind.VALIDATION_ERROR
    status_code = 400


class ServerError(SurveyBrainError):
    kind = ErrorKind.SERVER_ERROR
    status_code = 500


@dataclass(frozen=True)
class ProviderFailure:
    """One provider's reason for not producing a usable result."""

    provider: str
    message: str


class ModelError(SurveyBrainError):
    """Every configured text-generation provider failed."""

    kind = ErrorKind.MODEL_ERROR
    status_code = 500

    def __init__(self, failures: list[ProviderFailure]):
        self.failures = list(failures)
        if self.failures:
            detail = "; ".join(f"{f.provider}: {f.message}" for f in self.failures)
            message = f"All providers failed ({detail})"
        else:
            message = "No text-generation providers configured"
        super().__init__(message)


class ProviderError(Exception):
    """A single provider attempt failed.

    Raised by provider adapters and consumed by the gateway, which falls
    through to the next provider. ``transient`` marks errors worth retrying
    (connection drops, timeouts, rate limits, 5xx).
    """

    def __init__(self, provider: str, message: str, transient: bool = False):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.transient = transient
