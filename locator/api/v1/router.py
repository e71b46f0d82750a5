"""API v1 router module."""

from typing import Any, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from locator.api.v1.geocode import router as geocode_router
from locator.core.events import AppStateDict

router = APIRouter(default_response_class=JSONResponse)


@router.get("/health")
async def health_check(request: Request) -> dict[str, Any]:
    """Report whether the provider credential and cache backend are usable."""
    state: Optional[AppStateDict] = getattr(request.app.state, "locator", None)
    if state is None:
        return {"status": "starting", "components": {}}
    return await state.health_check()


router.include_router(geocode_router)
