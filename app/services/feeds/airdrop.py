"""Airdrop-history feed: parsing, ordering and presentation rows."""

import math
import re
from collections import Counter
from typing import Any

from pydantic import ValidationError

from app.infrastructure.observability.logging import get_logger
from app.models.domain.feed_domain import AirdropItem, AirdropRow, AirdropStatus

logger = get_logger(__name__)

STATUSES: tuple[AirdropStatus, ...] = ("ongoing", "announced", "completed")
_NUMERIC_RE = re.compile(r"^[-+]?\d+(\.\d+)?$")


def normalize_status(value: str | None) -> AirdropStatus:
    key = (value or "").lower()
    if key in STATUSES:
        return key
    if "ongoing" in key or "live" in key:
        return "ongoing"
    if "complete" in key or "finish" in key:
        return "completed"
    return "announced"


def _group(number: float) -> str:
    text = f"{number:,.2f}"
    return text.rstrip("0").rstrip(".")


def format_number(value: Any) -> str:
    """Up to two decimals with thousands separators; non-numeric text is echoed."""
    if value is None or value == "":
        return "-"
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, float)):
        return _group(float(value)) if math.isfinite(value) else "-"

    text = str(value)
    trimmed = text.strip()
    if not trimmed:
        return "-"
    sanitized = trimmed.replace(",", "")
    if not _NUMERIC_RE.match(sanitized):
        return text
    return _group(float(sanitized))


def _event_time(item: AirdropItem) -> float:
    for candidate in (item.updated_timestamp, item.system_timestamp, item.created_timestamp):
        if candidate is not None:
            return candidate
    return 0


def parse_airdrop_feed(payload: Any) -> list[AirdropItem]:
    """Decode {"airdrops": [...]} newest first."""
    raw_items = payload.get("airdrops") if isinstance(payload, dict) else None
    if not isinstance(raw_items, list):
        return []

    items = []
    for raw in raw_items:
        try:
            items.append(AirdropItem.model_validate(raw))
        except ValidationError as e:
            logger.warning("Skipping malformed airdrop item", error=str(e))

    return sorted(items, key=_event_time, reverse=True)


def build_airdrop_row(item: AirdropItem) -> AirdropRow:
    return AirdropRow(
        token=item.token,
        name=item.name or "-",
        date=item.date or "-",
        time=item.time or "-",
        points_display=format_number(item.points),
        amount_display=format_number(item.amount),
        status=normalize_status(item.status),
        phase=item.phase,
        market_cap_display=format_number(item.market_cap),
        fdv_display=format_number(item.fdv),
    )


def build_airdrop_rows(items: list[AirdropItem]) -> list[AirdropRow]:
    return [build_airdrop_row(item) for item in items]


def summarize_airdrops(rows: list[AirdropRow]) -> dict[str, int]:
    counts = Counter(row.status for row in rows)
    return {status: counts.get(status, 0) for status in STATUSES}
