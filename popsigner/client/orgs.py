"""Organization and namespace lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from popsigner.models import Namespace, Organization

if TYPE_CHECKING:
    from .http import Client


class OrgsClient:
    def __init__(self, client: Client) -> None:
        self._client = client

    async def get_current(self) -> Organization:
        """Organization the API key belongs to."""
        return await self._client.get("/v1/org", Organization)

    async def list_namespaces(self) -> list[Namespace]:
        return await self._client.get("/v1/namespaces", list[Namespace])

    async def get_namespace(self, namespace_id: UUID) -> Namespace:
        return await self._client.get(f"/v1/namespaces/{namespace_id}", Namespace)
