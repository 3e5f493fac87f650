"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running
and the identity store is reachable.
"""

from fastapi import APIRouter, Depends

from spacehub import __version__
from spacehub.api.deps import get_identity_store
from spacehub.store.base import IdentityStore

router = APIRouter()


@router.get("/health")
async def health_check(store: IdentityStore = Depends(get_identity_store)):
    """Check server health and store connectivity."""
    checks = {"server": "ok", "version": __version__}
    checks["store"] = "ok" if await store.ping() else "error"

    status = "healthy" if checks["store"] == "ok" else "degraded"
    return {"status": status, **checks}
