"""Errors raised by the custodian HTTP client."""


class ClientError(Exception):
    """Base class for errors reported by the custodian API client."""

    status: int | None = None

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int | None:
        """HTTP status associated with the error, if any."""
        return self.status

    @property
    def is_retryable(self) -> bool:
        return False

    @property
    def is_auth_error(self) -> bool:
        return False


class APIError(ClientError):
    """Service-reported failure with a structured error envelope."""

    def __init__(self, code: str, message: str, status_code: int) -> None:
        super().__init__(message)
        self.code = code
        self.status = status_code

    def __str__(self) -> str:
        return f"API error ({self.status}): [{self.code}] {self.message}"

    @property
    def is_retryable(self) -> bool:
        return self.status is not None and self.status >= 500

    @property
    def is_auth_error(self) -> bool:
        return self.status in (401, 403)


class TransportError(ClientError):
    """Connection, DNS, TLS or timeout failure before a response arrived."""

    @property
    def is_retryable(self) -> bool:
        return True


class ResponseDecodeError(ClientError):
    """A response body (or a field inside it) could not be decoded."""


class UnauthorizedError(ClientError):
    status = 401

    def __init__(self, message: str = "invalid API key") -> None:
        super().__init__(message)

    @property
    def is_auth_error(self) -> bool:
        return True


class RateLimitedError(ClientError):
    status = 429

    def __init__(self, message: str = "rate limit exceeded") -> None:
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        return True


class QuotaExceededError(ClientError):
    pass


class KeyNotFoundError(ClientError):
    status = 404


class NamespaceNotFoundError(ClientError):
    status = 404


class OrgNotFoundError(ClientError):
    status = 404


class InvalidRequestError(ClientError):
    status = 400


class RemoteSigningError(ClientError):
    """The custodian accepted the request but could not produce a signature."""


class InvalidArgumentError(ClientError):
    """A request argument was rejected locally, before anything was sent."""
