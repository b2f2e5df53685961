"""Signing endpoints of the custodian API."""

from __future__ import annotations

import base64
import binascii
from typing import TYPE_CHECKING
from uuid import UUID

from popsigner.models import (
    BatchSignEntry,
    BatchSignRequestBody,
    BatchSignRequestItem,
    BatchSignResponseBody,
    SignRequestBody,
    SignResponse,
    SignResponseBody,
    VerifyRequestBody,
    VerifyResponseBody,
)

from .errors import ResponseDecodeError

if TYPE_CHECKING:
    from .http import Client


class SignClient:
    """Single and batch signing plus verification."""

    def __init__(self, client: Client) -> None:
        self._client = client

    async def sign(self, key_id: UUID, data: bytes, prehashed: bool = False) -> SignResponse:
        """Sign ``data`` with the key ``key_id``.

        Args:
            key_id: Key identifier
            data: Message bytes, or a 32-byte digest when ``prehashed``
            prehashed: Skip hashing on the custodian side

        Returns:
            The raw signature bytes and the public key the custodian reports

        Raises:
            ResponseDecodeError: If the returned signature is not valid base64

        """
        body = SignRequestBody(data=base64.b64encode(data).decode("ascii"), prehashed=prehashed)
        response = await self._client.post(f"/v1/keys/{key_id}/sign", body, SignResponseBody)

        try:
            signature = base64.b64decode(response.signature, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ResponseDecodeError(f"invalid signature encoding: {e}") from e

        return SignResponse(key_id=key_id, signature=signature, public_key=response.public_key)

    async def sign_batch(self, items: list[BatchSignRequestItem]) -> list[BatchSignEntry]:
        """Submit already transport-encoded items as one batch request.

        Entries come back as the custodian reports them, matched by ``key_id``
        and possibly reordered; decoding is left to the caller.
        """
        response = await self._client.post(
            "/v1/sign/batch", BatchSignRequestBody(requests=items), BatchSignResponseBody
        )
        return response.signatures

    async def verify(
        self, key_id: UUID, data: bytes, signature: bytes, prehashed: bool = False
    ) -> bool:
        body = VerifyRequestBody(
            data=base64.b64encode(data).decode("ascii"),
            signature=base64.b64encode(signature).decode("ascii"),
            prehashed=prehashed,
        )
        response = await self._client.post(f"/v1/keys/{key_id}/verify", body, VerifyResponseBody)
        return response.valid
