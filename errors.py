from enum import Enum

from pydantic import BaseModel

class ErrorKind(str, Enum):
    EMPTY_INPUT = "empty_input"
    NOT_APPLICABLE = "not_applicable"
    NOT_ACTIVE = "not_active"
    INVALID_ACTIVATION = "invalid_activation"
    TOO_MANY_REQUESTS = "too_many_requests"
    TRANSPORT = "transport"
    REMOTE = "remote"
    UNKNOWN = "unknown"

class LicenseError(BaseModel):
    """
    Error value returned (not raised) by licensing operations.

    ``code`` is the licensing service's error code for remote errors and a
    local code otherwise.
    """
    kind: ErrorKind
    code: str
    message: str

    @classmethod
    def empty_input(cls, code: str = "empty_activation_key", message: str = "Empty activation key.") -> "LicenseError":
        return cls(kind=ErrorKind.EMPTY_INPUT, code=code, message=message)

    @classmethod
    def not_applicable(cls, message: str = "Not a premium product.") -> "LicenseError":
        return cls(kind=ErrorKind.NOT_APPLICABLE, code="not_premium", message=message)

    @classmethod
    def not_active(cls) -> "LicenseError":
        return cls(kind=ErrorKind.NOT_ACTIVE, code="not_active", message="License not active.")

    @classmethod
    def invalid_activation(cls, code: str = "invalid_activation_data", message: str = "Invalid activation data.") -> "LicenseError":
        return cls(kind=ErrorKind.INVALID_ACTIVATION, code=code, message=message)

    @classmethod
    def too_many_requests(cls) -> "LicenseError":
        return cls(kind=ErrorKind.TOO_MANY_REQUESTS, code="too_many_requests", message="Too many requests. Slow down.")

    @classmethod
    def transport(cls, message: str) -> "LicenseError":
        return cls(kind=ErrorKind.TRANSPORT, code="http_request_failed", message=message)

    @classmethod
    def remote(cls, code: str, message: str) -> "LicenseError":
        return cls(kind=ErrorKind.REMOTE, code=str(code), message=str(message))

    @classmethod
    def unknown(cls, message: str = "Unknown error.") -> "LicenseError":
        return cls(kind=ErrorKind.UNKNOWN, code="unknown_error", message=message)

def is_error(value) -> bool:
    return isinstance(value, LicenseError)
