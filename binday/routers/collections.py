from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from binday.auth import require_api_key
from binday.errors import (
    AddressIncomplete,
    BinCollectionUnavailable,
    BinDayError,
    ParseError,
    UpstreamError,
)
from binday.schemas import Address, ErrorOut, NextCollectionOut
from binday.services.lookup import CollectionService
from binday.services.scheduler import local_today

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["collections"])

_STATUS_FOR_ERROR: dict[type[BinDayError], int] = {
    AddressIncomplete: 422,
    BinCollectionUnavailable: 404,
    ParseError: 502,
    UpstreamError: 502,
}

# Strong references to sweeps started from the API so they aren't collected mid-run
_sweep_tasks: set[asyncio.Task] = set()


def get_service(request: Request) -> CollectionService:
    return request.app.state.collection_service


@router.get(
    "/next-collection",
    response_model=NextCollectionOut,
    responses={status: {"model": ErrorOut} for status in (404, 422, 502)},
)
async def next_collection(
    address_line: str | None = Query(None),
    postcode: str | None = Query(None),
    service: CollectionService = Depends(get_service),
):
    """Return the next bin collection for an address."""
    try:
        return await service.next_collection(
            Address(address_line=address_line, postal_code=postcode), local_today()
        )
    except BinDayError as e:
        status = _STATUS_FOR_ERROR.get(type(e), 500)
        logger.warning("Next collection lookup failed (%s): %s", type(e).__name__, e)
        raise HTTPException(status, e.user_message)


@router.post("/properties/refresh", status_code=202, dependencies=[Depends(require_api_key)])
async def refresh_stale_properties(service: CollectionService = Depends(get_service)):
    """Start a sweep of stale cached schedules in the background and return immediately."""
    task = asyncio.create_task(service.refresh_stale(local_today()))
    _sweep_tasks.add(task)
    task.add_done_callback(_sweep_tasks.discard)
    return {"status": "accepted"}
