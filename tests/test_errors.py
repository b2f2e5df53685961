"""Tests for the signer error taxonomy."""

import pytest

from popsigner.client import errors as client_errors
from popsigner.errors import (
    BatchPartialFailureError,
    KeyNotFoundError,
    NetworkError,
    SignerError,
    SignerErrorKind,
    translate_client_error,
)


class TestTranslateClientError:
    """Every lower-level failure maps to exactly one kind."""

    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (client_errors.UnauthorizedError(), SignerErrorKind.AUTHENTICATION),
            (client_errors.RateLimitedError(), SignerErrorKind.RATE_LIMITED),
            (client_errors.KeyNotFoundError("gone"), SignerErrorKind.KEY_NOT_FOUND),
            (client_errors.TransportError("refused"), SignerErrorKind.NETWORK),
            (client_errors.ResponseDecodeError("bad json"), SignerErrorKind.DECODE),
            (client_errors.InvalidArgumentError("bad id"), SignerErrorKind.INVALID_INPUT),
            (client_errors.InvalidRequestError("rejected"), SignerErrorKind.SIGNING_FAILED),
            (client_errors.QuotaExceededError("quota"), SignerErrorKind.SIGNING_FAILED),
            (client_errors.RemoteSigningError("hsm"), SignerErrorKind.SIGNING_FAILED),
            (client_errors.APIError("boom", "server fell over", 500), SignerErrorKind.SIGNING_FAILED),
            (RuntimeError("unexpected"), SignerErrorKind.SIGNING_FAILED),
        ],
    )
    def test_kind(self, error: Exception, kind: SignerErrorKind) -> None:
        translated = translate_client_error(error)
        assert isinstance(translated, SignerError)
        assert translated.kind is kind

    def test_signer_errors_pass_through(self) -> None:
        original = NetworkError("down")
        assert translate_client_error(original) is original

    def test_api_error_keeps_service_message(self) -> None:
        translated = translate_client_error(client_errors.APIError("x", "server fell over", 502))
        assert "server fell over" in str(translated)

    def test_unknown_error_names_type(self) -> None:
        assert "RuntimeError" in str(translate_client_error(RuntimeError("x")))


class TestSignerError:
    """Messages and retry hints."""

    def test_rate_limited_message(self) -> None:
        translated = translate_client_error(client_errors.RateLimitedError())
        assert str(translated) == "rate limit exceeded: rate limit exceeded"
        assert translated.is_retryable

    def test_key_not_found_not_retryable(self) -> None:
        assert not KeyNotFoundError("x").is_retryable

    def test_batch_partial_failure_counts(self) -> None:
        error = BatchPartialFailureError(failed=4, total=4)
        assert error.failed == 4
        assert error.total == 4
        assert "4 failures out of 4 requests" in str(error)
        assert error.kind is SignerErrorKind.BATCH_PARTIAL_FAILURE
