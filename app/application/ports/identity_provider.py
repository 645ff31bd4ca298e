from __future__ import annotations

from abc import ABC, abstractmethod

from app.domain.entities.identity import Identity


class IdentityProviderPort(ABC):
    @abstractmethod
    async def current_identity(self) -> Identity | None:
        """Return the authenticated customer, or None for guests."""
        raise NotImplementedError
