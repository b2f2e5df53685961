"""Collaborator contract the signing core depends on."""

from typing import Protocol, runtime_checkable
from uuid import UUID

from popsigner.models import BatchSignEntry, BatchSignRequestItem, Key, SignResponse


@runtime_checkable
class SigningBackend(Protocol):
    """Remote custodian operations needed by signers and the batch coordinator.

    Implementations raise :class:`popsigner.client.errors.ClientError`
    subclasses; the core translates them into signer errors.
    """

    async def get_key(self, key_id: UUID) -> Key: ...

    async def list_keys(self, namespace_id: UUID | None = None) -> list[Key]: ...

    async def remote_sign(self, key_id: UUID, data: bytes, prehashed: bool) -> SignResponse: ...

    async def remote_sign_batch(
        self, items: list[BatchSignRequestItem]
    ) -> list[BatchSignEntry]: ...

    async def remote_verify(
        self, key_id: UUID, data: bytes, signature: bytes, prehashed: bool
    ) -> bool: ...
