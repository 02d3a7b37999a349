# backend/iocwatch/api/v1/routes_watchlist.py

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from iocwatch.schemas.watchlist import (
    ScanHistoryOut,
    WatchlistItemActiveUpdate,
    WatchlistItemCreate,
    WatchlistItemOut,
)
from iocwatch.services.watchlist.watchlist_store_service import watchlist_store_service

router = APIRouter(
    prefix="/watchlist",
    tags=["watchlist"],
)


def _not_found(item_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Watchlist item {item_id} not found",
    )


@router.get("", response_model=List[WatchlistItemOut], summary="List watched IOCs")
def list_watchlist(organization_id: Optional[str] = None) -> List[WatchlistItemOut]:
    return watchlist_store_service.list_items(organization_id=organization_id)


@router.post(
    "",
    response_model=WatchlistItemOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add an IOC to the watchlist",
)
def add_watchlist_item(payload: WatchlistItemCreate) -> WatchlistItemOut:
    return watchlist_store_service.create_item(payload)


@router.get("/{item_id}", response_model=WatchlistItemOut)
def get_watchlist_item(item_id: str) -> WatchlistItemOut:
    try:
        return watchlist_store_service.get_item(item_id)
    except KeyError:
        raise _not_found(item_id)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_watchlist_item(item_id: str) -> Response:
    try:
        watchlist_store_service.delete_item(item_id)
    except KeyError:
        raise _not_found(item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/{item_id}/active",
    response_model=WatchlistItemOut,
    summary="Enable / retire a watched IOC",
)
def toggle_watchlist_item(
    item_id: str, payload: WatchlistItemActiveUpdate
) -> WatchlistItemOut:
    try:
        return watchlist_store_service.set_active(item_id, payload.is_active)
    except KeyError:
        raise _not_found(item_id)


@router.get("/{item_id}/history", response_model=List[ScanHistoryOut])
def get_scan_history(
    item_id: str, limit: int = Query(50, ge=1, le=500)
) -> List[ScanHistoryOut]:
    try:
        watchlist_store_service.get_item(item_id)
    except KeyError:
        raise _not_found(item_id)
    return watchlist_store_service.list_history(item_id, limit=limit)
