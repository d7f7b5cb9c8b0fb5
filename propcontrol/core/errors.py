"""
Error taxonomy for the rehab estimation pipeline.

Every failure a caller can see is its own type so the UI can render a
specific message ("photos unreadable" vs "AI response malformed" vs
"service unavailable"). Each class carries a stable ``code`` and the HTTP
status the API answers with.
"""

from __future__ import annotations

from typing import Any


class ConfigurationError(RuntimeError):
    """Raised at startup when required settings (e.g. the model API key) are missing."""


class EstimationError(Exception):
    code = "estimation_error"
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": self.message}


class InvalidInputError(EstimationError):
    """No photos, too many photos, or an unusable square footage hint."""
    code = "invalid_input"
    http_status = 400


class EncodingError(EstimationError):
    """Photo bytes could not be read or identified."""
    code = "photo_unreadable"
    http_status = 422

    def __init__(self, message: str, index: int | None = None):
        super().__init__(message)
        self.index = index


class ProviderFailure(EstimationError):
    """Base for failures talking to the model endpoint; keeps the raw payload."""
    http_status = 502

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload


class AuthError(ProviderFailure):
    code = "model_auth_failed"


class TransportError(ProviderFailure):
    code = "model_unreachable"
    http_status = 503


class ProviderError(ProviderFailure):
    code = "model_provider_error"

    def __init__(
        self,
        message: str,
        payload: Any = None,
        status_code: int | None = None,
        transient: bool = False,
    ):
        super().__init__(message, payload)
        self.status_code = status_code
        self.transient = transient
        if transient:
            self.http_status = 503


class MalformedResponseError(EstimationError):
    """The model answered with text that is not JSON."""
    code = "model_response_malformed"
    http_status = 502

    def __init__(self, message: str, raw_text: str):
        super().__init__(message)
        self.raw_text = raw_text


class SchemaViolationError(EstimationError):
    """The model answered with JSON that does not match the estimate schema."""
    code = "model_response_invalid"
    http_status = 502

    def __init__(self, field: str, reason: str, raw_text: str):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason
        self.raw_text = raw_text

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        out["field"] = self.field
        return out


class EstimationCancelledError(EstimationError):
    """The caller's cancel signal or deadline fired before the model answered."""
    code = "estimation_cancelled"
    http_status = 504


class CapabilityUnavailableError(EstimationError, NotImplementedError):
    """
    A capability exists in the API surface but has no backend in this
    deployment. Distinct from a failed request: retrying will not help.
    """
    code = "capability_unavailable"
    http_status = 501

    def __init__(self, capability: str, message: str):
        super().__init__(message)
        self.capability = capability
