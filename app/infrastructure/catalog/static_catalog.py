from __future__ import annotations

from app.application.ports.service_catalog import ServiceCatalogPort
from app.domain.entities.service import Service
from app.infrastructure.catalog.catalog_data import SERVICE_CATALOG


class StaticServiceCatalog(ServiceCatalogPort):
    def __init__(self, services: list[Service] | None = None) -> None:
        self._services = list(services if services is not None else SERVICE_CATALOG)

    async def list_services(self) -> list[Service]:
        return sorted(self._services, key=lambda s: s.name)
