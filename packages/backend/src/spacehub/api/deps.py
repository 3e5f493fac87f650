"""Shared route dependencies: the identity store and service.

Learn: create_app() puts the long-lived collaborators (hasher, token
service, store provider) on app.state. These dependencies open one store
per request and assemble an IdentityService around it.
"""

from typing import AsyncIterator

from fastapi import Depends, Request

from spacehub.services.identity_service import IdentityService
from spacehub.store.base import IdentityStore


async def get_identity_store(request: Request) -> AsyncIterator[IdentityStore]:
    """FastAPI dependency — yields a store per request, auto-closes."""
    async with request.app.state.store_provider() as store:
        yield store


def get_identity_service(
    request: Request,
    store: IdentityStore = Depends(get_identity_store),
) -> IdentityService:
    state = request.app.state
    return IdentityService(
        store,
        state.hasher,
        state.tokens,
        hide_unknown_email=state.settings.hide_unknown_email,
    )
