"""Period aggregation of ticket records.

Folds raw ticket records (or pre-aggregated daily rows) into calendar
buckets and derives per-period ratio metrics.  Pure functions, no DB access.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Iterable

from repair_analytics.analytics.periods import (
    Granularity,
    format_key,
    format_label,
    period_start,
    to_date,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawRecord:
    """A single ticket as read from the store."""
    timestamp: Any  # datetime, date or ISO string
    entity_id: Any
    amount: float | None = None
    paid: bool | None = None


@dataclass(frozen=True)
class DailyTrendRow:
    """Pre-aggregated daily ticket figures."""
    date: Any
    ticket_count: int
    unique_customers: int
    total_revenue: float


@dataclass
class PeriodBucket:
    """Mutable per-period accumulator used during a single aggregation pass."""
    key: str
    label: str
    start: date
    record_count: int = 0
    entities: set = field(default_factory=set)
    entity_total: int = 0
    total_amount: float = 0.0

    def add(self, count: int, amount: float, entity_id: Any = None, entity_count: int = 0) -> None:
        self.record_count += count
        self.total_amount += amount
        if entity_id is not None:
            self.entities.add(entity_id)
        self.entity_total += entity_count

    def finalize(self) -> PeriodMetric:
        distinct = len(self.entities) + self.entity_total
        count = max(self.record_count, 0)
        return PeriodMetric(
            period=self.label,
            key=self.key,
            start=self.start,
            count=count,
            distinct_entities=distinct,
            total_amount=self.total_amount,
            average_value=self.total_amount / count if count > 0 else 0.0,
            value_per_entity=self.total_amount / distinct if distinct > 0 else 0.0,
        )


@dataclass(frozen=True)
class PeriodMetric:
    """Read-only metrics for one finalized period."""
    period: str
    key: str
    start: date
    count: int
    distinct_entities: int
    total_amount: float
    average_value: float
    value_per_entity: float


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _safe_amount(val) -> float:
    """Convert an amount to float, treating missing, bad or non-finite values as 0."""
    if val is None:
        return 0.0
    try:
        amount = float(val)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def _as_datetime(val) -> datetime | None:
    if isinstance(val, datetime):
        return val
    if isinstance(val, str) and ("T" in val or ":" in val):
        try:
            return datetime.fromisoformat(val.strip().replace("Z", "+00:00"))
        except ValueError:
            pass
    d = to_date(val)
    if d is None:
        return None
    return datetime(d.year, d.month, d.day)


def _end_bound(val) -> datetime | None:
    """Upper window bound; a bare date covers the whole day."""
    upper = _as_datetime(val)
    if upper is None or isinstance(val, datetime):
        return upper
    if isinstance(val, str) and ("T" in val or ":" in val):
        return upper
    return upper + timedelta(days=1) - timedelta(microseconds=1)


def _comparable(ts: datetime, bound: datetime) -> datetime:
    # Naive bounds compare against the wall-clock time of aware timestamps
    if ts.tzinfo is not None and bound.tzinfo is None:
        return ts.replace(tzinfo=None)
    if ts.tzinfo is None and bound.tzinfo is not None:
        return ts.replace(tzinfo=bound.tzinfo)
    return ts


def _in_window(ts: datetime, start, end) -> bool:
    if start is not None:
        lower = _as_datetime(start)
        if lower is not None and _comparable(ts, lower) < lower:
            return False
    if end is not None:
        upper = _end_bound(end)
        if upper is not None and _comparable(ts, upper) > upper:
            return False
    return True


def _bucket_for(
    buckets: dict[str, PeriodBucket],
    day: date,
    granularity: Granularity,
) -> PeriodBucket:
    start = period_start(day, granularity)
    key = format_key(start, granularity)
    bucket = buckets.get(key)
    if bucket is None:
        bucket = PeriodBucket(key=key, label=format_label(start, granularity), start=start)
        buckets[key] = bucket
    return bucket


def _finalize(buckets: dict[str, PeriodBucket]) -> list[PeriodMetric]:
    return [buckets[key].finalize() for key in sorted(buckets)]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def aggregate_records(
    records: Iterable[RawRecord],
    granularity: Granularity | str,
    start=None,
    end=None,
    predicate: Callable[[RawRecord], bool] | None = None,
) -> list[PeriodMetric]:
    """Bucket raw records into periods and return metrics sorted by key.

    Records outside the inclusive ``[start, end]`` window, records rejected
    by *predicate*, and records with an unparseable timestamp are skipped.
    """
    granularity = Granularity(granularity)
    buckets: dict[str, PeriodBucket] = {}
    skipped = 0

    for record in records:
        if predicate is not None and not predicate(record):
            continue
        ts = _as_datetime(record.timestamp)
        if ts is None:
            skipped += 1
            continue
        if not _in_window(ts, start, end):
            continue
        bucket = _bucket_for(buckets, ts.date(), granularity)
        bucket.add(1, _safe_amount(record.amount), entity_id=record.entity_id)

    if skipped:
        logger.debug("Skipped %d records with unparseable timestamps", skipped)

    return _finalize(buckets)


def aggregate_paid_records(
    records: Iterable[RawRecord],
    granularity: Granularity | str,
    start=None,
    end=None,
) -> list[PeriodMetric]:
    """Same as :func:`aggregate_records`, restricted to paid records."""
    return aggregate_records(
        records, granularity, start=start, end=end,
        predicate=lambda record: record.paid is True,
    )


def roll_up_daily(
    rows: Iterable[DailyTrendRow],
    granularity: Granularity | str,
) -> list[PeriodMetric]:
    """Re-aggregate pre-aggregated daily rows into coarser periods.

    Unique customers are summed across days, so for coarser periods
    ``distinct_entities`` is an upper bound on the true distinct count.
    """
    granularity = Granularity(granularity)
    buckets: dict[str, PeriodBucket] = {}

    for row in rows:
        day = to_date(row.date)
        if day is None:
            continue
        bucket = _bucket_for(buckets, day, granularity)
        bucket.add(
            max(int(row.ticket_count or 0), 0),
            _safe_amount(row.total_revenue),
            entity_count=max(int(row.unique_customers or 0), 0),
        )

    return _finalize(buckets)


def metrics_to_rows(metrics: list[PeriodMetric]) -> list[dict]:
    """Flatten metrics into dashboard-friendly dicts."""
    return [
        {
            "period": m.period,
            "key": m.key,
            "ticket_count": m.count,
            "unique_customers": m.distinct_entities,
            "total_revenue": round(m.total_amount, 2),
            "average_value": round(m.average_value, 2),
            "value_per_customer": round(m.value_per_entity, 2),
        }
        for m in metrics
    ]
