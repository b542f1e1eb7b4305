from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from projects_api.core.container import Container, get_container

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(container: Annotated[Container, Depends(get_container)]) -> dict:
    """Health check endpoint.

    Returns a simple status response to verify the API is operational, plus
    the counters of both project caches. Not rate limited and not
    authenticated, so load balancers can poll it freely.

    Returns:
        dict: ``status`` set to "ok" and a ``caches`` list of cache stats.
    """

    return {
        "status": "ok",
        "caches": [container.project_cache.stats(), container.listing_cache.stats()],
    }
