from __future__ import annotations

import logging

from pydantic import ValidationError

from app.application.ports.service_catalog import ServiceCatalogPort
from app.domain.entities.service import Service
from app.infrastructure.supabase.records import ServiceRecord
from app.infrastructure.supabase.supabase_client import SupabaseClient


class SupabaseServiceCatalog(ServiceCatalogPort):
    def __init__(self, client: SupabaseClient, table: str = "services") -> None:
        self._client = client
        self._table = table
        self._logger = logging.getLogger(__name__)

    async def list_services(self) -> list[Service]:
        rows = await self._client.select(self._table, {"select": "*", "order": "name.asc"})
        services: list[Service] = []
        for row in rows:
            try:
                services.append(ServiceRecord.model_validate(row).to_entity())
            except (ValidationError, ValueError) as e:
                self._logger.warning("Skipping malformed service row", extra={"service": row.get("id"), "reason": str(e)})
                continue
        return services
