from datetime import datetime

from pydantic import BaseModel

from app.models.domain.feed_domain import AirdropRow, StabilityRow


class StabilityFeedResponse(BaseModel):
    loading: bool
    error: str | None
    rows: list[StabilityRow]
    summary: dict[str, int]
    last_updated: datetime | None


class AirdropFeedResponse(BaseModel):
    loading: bool
    error: str | None
    rows: list[AirdropRow]
    summary: dict[str, int]
    last_updated: datetime | None
