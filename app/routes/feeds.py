"""
feeds.py
--------
Purpose:
    Serve the latest snapshot of the polled public feeds as presentation rows.

Usage:
    GET  /feeds/stability      - market-stability table
    GET  /feeds/airdrops       - airdrop-history table
    POST /feeds/{name}/reload  - fetch a feed now
"""

from fastapi import APIRouter, HTTPException, status

from app.models.api.feed_response import AirdropFeedResponse, StabilityFeedResponse
from app.services.feeds import registry
from app.services.feeds.airdrop import build_airdrop_rows, summarize_airdrops
from app.services.feeds.polling import PollingFeedClient
from app.services.feeds.stability import build_stability_rows, summarize_stability

router = APIRouter(prefix="/feeds", tags=["feeds"])


def _get_feed(name: str) -> PollingFeedClient:
    feed = registry.feed_registry.get(name)
    if feed is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Feed '{name}' is not configured"
        )
    return feed


@router.get("/stability", response_model=StabilityFeedResponse)
async def stability_feed():
    state = _get_feed(registry.STABILITY_FEED).state
    rows = build_stability_rows(state.data or [])
    return StabilityFeedResponse(
        loading=state.loading,
        error=state.error,
        rows=rows,
        summary=summarize_stability(rows),
        last_updated=state.last_updated,
    )


@router.get("/airdrops", response_model=AirdropFeedResponse)
async def airdrop_feed():
    state = _get_feed(registry.AIRDROP_FEED).state
    rows = build_airdrop_rows(state.data or [])
    return AirdropFeedResponse(
        loading=state.loading,
        error=state.error,
        rows=rows,
        summary=summarize_airdrops(rows),
        last_updated=state.last_updated,
    )


@router.post("/{name}/reload")
async def reload_feed(name: str):
    state = await _get_feed(name).reload()
    return {
        "feed": name,
        "loading": state.loading,
        "error": state.error,
        "last_updated": state.last_updated,
    }
