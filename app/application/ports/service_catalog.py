from __future__ import annotations

from abc import ABC, abstractmethod

from app.domain.entities.service import Service


class ServiceCatalogPort(ABC):
    @abstractmethod
    async def list_services(self) -> list[Service]:
        """List bookable services ordered by name."""
        raise NotImplementedError
