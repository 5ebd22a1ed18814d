from __future__ import annotations

import re
import time
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from .config import HarvestSettings
from .models import HarvestResult, ReviewRecord
from .utils import now_iso

MINUTE_MS = 60_000
HOUR_MS = 3_600_000
DAY_MS = 86_400_000
WEEK_MS = 604_800_000
MONTH_MS = 2_592_000_000
YEAR_MS = 31_536_000_000

UNIT_MS = {
    "minute": MINUTE_MS,
    "hour": HOUR_MS,
    "day": DAY_MS,
    "week": WEEK_MS,
    "month": MONTH_MS,
    "year": YEAR_MS,
}

_RELATIVE_DATE = re.compile(
    r"\b(\d+|an?|one)\s+(minute|hour|day|week|month|year)s?\b", re.IGNORECASE
)

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %Y",
    "%b %Y",
)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _to_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def parse_absolute_date(value: str) -> Optional[int]:
    """Return epoch milliseconds for a calendar date string, else ``None``.

    Dates without a zone are taken as UTC.
    """

    candidate = (value or "").strip()
    if not candidate:
        return None

    iso_candidate = candidate[:-1] + "+00:00" if candidate.endswith("Z") else candidate
    try:
        return _to_ms(datetime.fromisoformat(iso_candidate))
    except ValueError:
        pass

    for fmt in _DATE_FORMATS:
        try:
            return _to_ms(datetime.strptime(candidate, fmt))
        except ValueError:
            continue
    return None


def parse_relative_date(value: str, now_ms: Optional[int] = None) -> Optional[int]:
    """Resolve ``"<n> <unit>(s) ago"`` against ``now_ms``; ``None`` if no match."""

    match = _RELATIVE_DATE.search(value or "")
    if not match:
        return None
    amount_raw = match.group(1).lower()
    amount = int(amount_raw) if amount_raw.isdigit() else 1
    unit = UNIT_MS[match.group(2).lower()]
    base = _now_ms() if now_ms is None else now_ms
    return base - amount * unit


def review_date_key(value: str, now_ms: Optional[int] = None) -> int:
    """Recency key in epoch milliseconds; unparseable dates sort as 0."""

    absolute = parse_absolute_date(value)
    if absolute is not None:
        return absolute
    relative = parse_relative_date(value, now_ms)
    if relative is not None:
        return relative
    return 0


def dedupe_records(records: Iterable[ReviewRecord]) -> List[ReviewRecord]:
    """Drop exact duplicates, keeping the first occurrence."""

    seen = set()
    unique = []
    for record in records:
        if record in seen:
            continue
        seen.add(record)
        unique.append(record)
    return unique


def finalize(
    records: Iterable[ReviewRecord],
    target_id: str,
    settings: Optional[HarvestSettings] = None,
    *,
    now_ms: Optional[int] = None,
) -> HarvestResult:
    """Filter to the target rating tier and order newest first.

    ``sorted`` is stable, so reviews with equal keys keep extraction order.
    """

    settings = settings or HarvestSettings()
    now_ms = _now_ms() if now_ms is None else now_ms

    matching = [
        record
        for record in dedupe_records(records)
        if record.rating_stars is not None and record.rating_stars == settings.target_rating
    ]
    ordered = sorted(
        matching,
        key=lambda record: review_date_key(record.review_date_raw, now_ms),
        reverse=True,
    )
    return HarvestResult(
        scraped_at=now_iso(),
        target_id=target_id,
        filter_description=settings.filter_description,
        sort_description=settings.sort_description,
        reviews=tuple(ordered),
    )


__all__ = [
    "finalize",
    "dedupe_records",
    "review_date_key",
    "parse_absolute_date",
    "parse_relative_date",
]
