"""Batch signing with partial-failure accounting."""

from __future__ import annotations

import base64
import binascii
import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from .errors import BatchPartialFailureError, DecodeError, translate_client_error
from .metrics import (
    BATCH_ITEMS_TOTAL,
    SIGNING_DURATION_SECONDS,
    SIGNING_ERRORS_TOTAL,
    SIGNING_REQUESTS_TOTAL,
)
from .models import (
    BatchSignature,
    BatchSignEntry,
    BatchSignItem,
    BatchSignRequestItem,
    BatchSignResult,
)
from .signer import SIGNATURE_LENGTH
from .types import PayloadB64

if TYPE_CHECKING:
    from .client.base import SigningBackend

logger = logging.getLogger(__name__)


def encode_item(item: BatchSignItem) -> BatchSignRequestItem:
    """Transport-encode one batch item (base64 payload)."""
    payload = PayloadB64(base64.b64encode(item.data).decode("ascii"))
    return BatchSignRequestItem(key_id=item.key_id, data=payload, prehashed=item.prehashed)


def decode_entry(entry: BatchSignEntry) -> BatchSignature:
    """Decode a successful batch entry.

    Raises:
        DecodeError: If the signature is not valid base64 or not 64 bytes

    """
    try:
        signature = base64.b64decode(entry.signature, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"invalid signature encoding for key {entry.key_id}: {e}") from e
    if len(signature) != SIGNATURE_LENGTH:
        raise DecodeError(
            f"signature for key {entry.key_id} must be {SIGNATURE_LENGTH} bytes, "
            f"got {len(signature)}"
        )
    return BatchSignature(key_id=entry.key_id, signature=signature, public_key=entry.public_key)


class BatchSigner:
    """Signs many independent (key, message) pairs in one remote round trip.

    Items that fail remotely are counted and dropped; the call only raises
    when every item failed. Results are matched to requests by key id and
    may come back in a different order than submitted. Entries for keys that
    were not submitted are ignored, and submitted items without an entry
    count as failed.
    """

    def __init__(self, backend: SigningBackend) -> None:
        self._backend = backend

    async def sign_batch(self, items: Sequence[BatchSignItem]) -> BatchSignResult:
        """Sign all ``items`` with a single batch request.

        Args:
            items: The (key, message, prehashed) entries to sign

        Returns:
            Successful signatures plus ``failed``/``total`` counts

        Raises:
            BatchPartialFailureError: If at least one item failed and none succeeded
            DecodeError: If a returned signature is malformed
            SignerError: Any translated failure of the batch request itself

        """
        total = len(items)
        if total == 0:
            return BatchSignResult(total=0)

        SIGNING_REQUESTS_TOTAL.labels(operation="sign_batch").inc()
        start_time = time.perf_counter()

        request = [encode_item(item) for item in items]
        try:
            entries = await self._backend.remote_sign_batch(request)
        except Exception as e:
            error = translate_client_error(e)
            SIGNING_ERRORS_TOTAL.labels(error_type=error.kind.value).inc()
            raise error from e

        SIGNING_DURATION_SECONDS.labels(operation="sign_batch").observe(
            time.perf_counter() - start_time
        )

        submitted = {item.key_id for item in items}
        result = BatchSignResult(total=total)
        for entry in entries:
            if entry.key_id not in submitted:
                logger.warning(f"Ignoring batch entry for unsubmitted key {entry.key_id}")
                continue
            if entry.error is not None:
                logger.debug(f"Batch item for key {entry.key_id} failed: {entry.error}")
                result.failed += 1
                continue
            result.signatures.append(decode_entry(entry))

        unanswered = total - len(result.signatures) - result.failed
        if unanswered > 0:
            logger.debug(f"{unanswered} batch items received no response entry")
            result.failed += unanswered

        BATCH_ITEMS_TOTAL.labels(outcome="signed").inc(len(result.signatures))
        BATCH_ITEMS_TOTAL.labels(outcome="failed").inc(result.failed)

        if result.failed and not result.signatures:
            SIGNING_ERRORS_TOTAL.labels(error_type="batch_partial_failure").inc()
            raise BatchPartialFailureError(failed=result.failed, total=total)

        if result.failed:
            logger.warning(f"Batch signing: {result.failed} of {total} items failed")

        return result
