from __future__ import annotations

from app.application.ports.identity_provider import IdentityProviderPort
from app.domain.entities.identity import Identity


class StaticIdentityProvider(IdentityProviderPort):
    """Identity resolved once by the caller (request header, session, tests). None means guest."""

    def __init__(self, identity: Identity | None = None) -> None:
        self._identity = identity

    async def current_identity(self) -> Identity | None:
        return self._identity
