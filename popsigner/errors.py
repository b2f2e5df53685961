"""Signer error taxonomy.

Every failure surfaced by a :class:`~popsigner.signer.Signer` or the batch
coordinator is a :class:`SignerError` carrying a :class:`SignerErrorKind`,
so callers can branch on ``err.kind`` instead of matching messages.
Lower-level client errors are translated with :func:`translate_client_error`.
"""

from enum import Enum

from .client import errors as client_errors


class SignerErrorKind(Enum):
    """Kinds of signer failure."""

    INVALID_INPUT = "invalid_input"
    DECODE = "decode"
    NETWORK = "network"
    RPC = "rpc"
    GRPC = "grpc"
    AUTHENTICATION = "authentication"
    RATE_LIMITED = "rate_limited"
    KEY_NOT_FOUND = "key_not_found"
    SIGNING_FAILED = "signing_failed"
    BATCH_PARTIAL_FAILURE = "batch_partial_failure"
    CONFIG = "config"


class SignerError(Exception):
    """Error during a signing operation."""

    kind: SignerErrorKind = SignerErrorKind.SIGNING_FAILED
    label = "signer error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        if not self.message:
            return self.label
        return f"{self.label}: {self.message}"

    @property
    def is_retryable(self) -> bool:
        """Whether the same call may succeed if repeated later."""
        return self.kind in (SignerErrorKind.RATE_LIMITED, SignerErrorKind.NETWORK)


class InvalidInputError(SignerError):
    kind = SignerErrorKind.INVALID_INPUT
    label = "invalid input"


class DecodeError(SignerError):
    kind = SignerErrorKind.DECODE
    label = "decode error"


class NetworkError(SignerError):
    kind = SignerErrorKind.NETWORK
    label = "network error"


class RpcError(SignerError):
    kind = SignerErrorKind.RPC
    label = "RPC error"


class GrpcError(SignerError):
    kind = SignerErrorKind.GRPC
    label = "gRPC error"


class AuthenticationError(SignerError):
    kind = SignerErrorKind.AUTHENTICATION
    label = "authentication error"


class RateLimitedError(SignerError):
    kind = SignerErrorKind.RATE_LIMITED
    label = "rate limit exceeded"


class KeyNotFoundError(SignerError):
    kind = SignerErrorKind.KEY_NOT_FOUND
    label = "key not found"


class SigningFailedError(SignerError):
    kind = SignerErrorKind.SIGNING_FAILED
    label = "signing failed"


class ConfigError(SignerError):
    kind = SignerErrorKind.CONFIG
    label = "configuration error"


class BatchPartialFailureError(SignerError):
    """Every item of a batch failed."""

    kind = SignerErrorKind.BATCH_PARTIAL_FAILURE
    label = "batch failed"

    def __init__(self, failed: int, total: int) -> None:
        super().__init__(f"{failed} failures out of {total} requests")
        self.failed = failed
        self.total = total


# Order matters: the first matching class wins.
_CLIENT_ERROR_KINDS: tuple[tuple[type[client_errors.ClientError], type[SignerError]], ...] = (
    (client_errors.UnauthorizedError, AuthenticationError),
    (client_errors.RateLimitedError, RateLimitedError),
    (client_errors.KeyNotFoundError, KeyNotFoundError),
    (client_errors.TransportError, NetworkError),
    (client_errors.ResponseDecodeError, DecodeError),
    (client_errors.InvalidArgumentError, InvalidInputError),
)


def translate_client_error(error: Exception) -> SignerError:
    """Map a lower-level error onto exactly one signer error kind.

    Unauthorized maps to AUTHENTICATION, rate limiting to RATE_LIMITED, a
    missing key to KEY_NOT_FOUND and transport failures to NETWORK. Anything
    else the service reports becomes SIGNING_FAILED. Signer errors are
    returned unchanged.

    Args:
        error: The error raised by the collaborator

    Returns:
        The translated SignerError (the caller raises it)

    """
    if isinstance(error, SignerError):
        return error

    for client_type, signer_type in _CLIENT_ERROR_KINDS:
        if isinstance(error, client_type):
            return signer_type(error.message)

    if isinstance(error, client_errors.APIError):
        return SigningFailedError(error.message)
    if isinstance(error, client_errors.ClientError):
        return SigningFailedError(str(error))
    return SigningFailedError(f"{type(error).__name__}: {error}")
