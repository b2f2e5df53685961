"""Key lookup operations."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote
from uuid import UUID

from popsigner.models import Key

from .errors import InvalidArgumentError

if TYPE_CHECKING:
    from .http import Client


def parse_namespace_id(namespace_id: UUID | str) -> UUID:
    """Validate a namespace identifier locally, before any request."""
    if isinstance(namespace_id, UUID):
        return namespace_id
    try:
        return UUID(namespace_id)
    except ValueError as e:
        raise InvalidArgumentError(f"invalid namespace id: {namespace_id!r}") from e


class KeysClient:
    """Read access to keys visible to the API key."""

    def __init__(self, client: Client) -> None:
        self._client = client

    async def get(self, key_id: UUID) -> Key:
        return await self._client.get(f"/v1/keys/{key_id}", Key)

    async def list(self, namespace_id: UUID | None = None) -> list[Key]:
        params = {"namespace_id": str(namespace_id)} if namespace_id is not None else None
        return await self._client.get("/v1/keys", list[Key], params=params)

    async def get_by_name(self, namespace_id: UUID | str, name: str) -> Key:
        """Look a key up by name within a namespace."""
        ns = parse_namespace_id(namespace_id)
        if not name:
            raise InvalidArgumentError("key name is required")
        return await self._client.get(f"/v1/keys/by-name/{ns}/{quote(name, safe='')}", Key)
