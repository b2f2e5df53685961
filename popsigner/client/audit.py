"""Audit log queries."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from popsigner.models import AuditLog, PaginatedResponse

if TYPE_CHECKING:
    from .http import Client


class AuditClient:
    def __init__(self, client: Client) -> None:
        self._client = client

    async def list(
        self,
        *,
        event: str | None = None,
        resource_type: str | None = None,
        resource_id: UUID | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> PaginatedResponse[AuditLog]:
        """List audit log entries, newest first, filtered by the given fields."""
        params: dict[str, str] = {}
        if event is not None:
            params["event"] = event
        if resource_type is not None:
            params["resource_type"] = resource_type
        if resource_id is not None:
            params["resource_id"] = str(resource_id)
        if limit is not None:
            params["limit"] = str(limit)
        if offset is not None:
            params["offset"] = str(offset)
        return await self._client.get(
            "/v1/audit", PaginatedResponse[AuditLog], params=params or None
        )

    async def get(self, log_id: UUID) -> AuditLog:
        return await self._client.get(f"/v1/audit/{log_id}", AuditLog)

    async def list_for_resource(
        self, resource_type: str, resource_id: UUID
    ) -> PaginatedResponse[AuditLog]:
        return await self.list(resource_type=resource_type, resource_id=resource_id)
