"""Market-stability feed: parsing and presentation rows."""

import math
from collections import Counter
from typing import Any

from pydantic import ValidationError

from app.infrastructure.observability.logging import get_logger
from app.models.domain.feed_domain import StabilityItem, StabilityRow, StabilityStatus

logger = get_logger(__name__)

STATUSES: tuple[StabilityStatus, ...] = ("stable", "warning", "unstable")


def to_number(value: Any) -> float | None:
    """Finite float for numbers and numeric strings, else None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def resolve_status(st: str | None) -> StabilityStatus:
    normalized = (st or "").lower()
    if "green" in normalized:
        return "stable"
    if "yellow" in normalized:
        return "warning"
    return "unstable"


def format_number(value: Any, fraction_digits: int = 2) -> str:
    """Fixed decimals with thousands separators; "-" for missing values."""
    if value is None or value == "":
        return "-"
    number = to_number(value)
    if number is None:
        return value if isinstance(value, str) else "-"
    return f"{number:,.{fraction_digits}f}"


def parse_stability_feed(payload: Any) -> list[StabilityItem]:
    """Decode {"items": [...]}, skipping entries that do not fit the row shape."""
    raw_items = payload.get("items") if isinstance(payload, dict) else None
    if not isinstance(raw_items, list):
        return []

    items = []
    for raw in raw_items:
        try:
            items.append(StabilityItem.model_validate(raw))
        except ValidationError as e:
            logger.warning("Skipping malformed stability item", error=str(e))
    return items


def build_stability_row(item: StabilityItem) -> StabilityRow:
    price = to_number(item.p)
    spread = to_number(item.spr)
    margin_days = to_number(item.md)
    quadruple_days = margin_days * 4 if margin_days is not None else None

    pair = item.n.split("/")
    base, quote = (pair[0], pair[1]) if len(pair) == 2 else (item.n, "")

    if quadruple_days is not None:
        quadruple_display = format_number(quadruple_days, 0)
    else:
        quadruple_display = "-" if item.md in (None, "") else str(item.md)

    return StabilityRow(
        symbol=item.n,
        base=base,
        quote=quote,
        price=round(price, 6) if price is not None else None,
        price_display=format_number(price, 6) if price is not None else str(item.p or "-"),
        spread_bps=spread,
        spread_display=format_number(spread, 4),
        quadruple_days=quadruple_days,
        quadruple_days_display=quadruple_display,
        status=resolve_status(item.st),
    )


def build_stability_rows(items: list[StabilityItem]) -> list[StabilityRow]:
    return [build_stability_row(item) for item in items]


def summarize_stability(rows: list[StabilityRow]) -> dict[str, int]:
    counts = Counter(row.status for row in rows)
    return {status: counts.get(status, 0) for status in STATUSES}
