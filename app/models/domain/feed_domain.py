from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

StabilityStatus = Literal["stable", "warning", "unstable"]
AirdropStatus = Literal["ongoing", "announced", "completed"]


class StabilityItem(BaseModel):
    """One row of the market-stability feed, field names as published."""

    model_config = ConfigDict(extra="allow")

    n: str  # symbol or pair, e.g. "BTC/USDT"
    p: float | str | None = None  # price
    spr: float | str | None = None  # spread in bps
    md: float | str | None = None  # day-count metric
    st: str | None = None  # "green" / "yellow" / "red"


class StabilityRow(BaseModel):
    symbol: str
    base: str
    quote: str
    price: float | None
    price_display: str
    spread_bps: float | None
    spread_display: str
    quadruple_days: float | None
    quadruple_days_display: str
    status: StabilityStatus


class AirdropItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    token: str
    date: str | None = None
    time: str | None = None
    points: float | str | None = None
    type: str | None = None
    phase: int | None = None
    status: str | None = None
    amount: float | str | None = None
    name: str | None = None
    market_cap: float | str | None = None
    fdv: float | str | None = None
    created_timestamp: float | None = None
    updated_timestamp: float | None = None
    system_timestamp: float | None = None
    completed: bool | None = None
    contract_address: str | None = None
    chain_id: str | None = None


class AirdropRow(BaseModel):
    token: str
    name: str
    date: str
    time: str
    points_display: str
    amount_display: str
    status: AirdropStatus
    phase: int | None
    market_cap_display: str
    fdv_display: str


class FeedState(BaseModel):
    """Snapshot of a polled feed: last good payload plus the last error."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    data: Any = None
    error: str | None = None
    loading: bool = True
    last_updated: datetime | None = None
