"""Queries feeding the analytics engine.

Each function issues a single query and returns a complete in-memory batch.
Store errors are logged and re-raised unchanged; there is no retry.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from repair_analytics.analytics.aggregator import DailyTrendRow, RawRecord
from repair_analytics.analytics.periods import to_date
from repair_analytics.db.models import DailyTicketTrend, Ticket

logger = logging.getLogger(__name__)


def _created_until(end):
    """Upper bound on ``created_at``; a bare date covers the whole day."""
    if isinstance(end, datetime) or (isinstance(end, str) and ("T" in end or ":" in end)):
        return Ticket.created_at <= end
    day = to_date(end)
    if day is None:
        return Ticket.created_at <= end
    return Ticket.created_at < day + timedelta(days=1)


def _as_day(value):
    # The trends view is keyed by calendar date
    day = to_date(value)
    return day if day is not None else value


async def fetch_ticket_records(
    session: AsyncSession,
    start=None,
    end=None,
    paid_only: bool = False,
    paid_status: str | None = None,
) -> list[RawRecord]:
    """Fetch tickets as raw records, oldest first.

    With *paid_only*, only tickets whose ``payment_status`` equals
    *paid_status* (default ``settings.paid_status_value``) are returned.
    """
    paid_status = paid_status or settings.paid_status_value
    stmt = select(
        Ticket.id,
        Ticket.created_at,
        Ticket.user_id,
        Ticket.final_cost,
        Ticket.payment_status,
    ).order_by(Ticket.created_at.asc())
    if start is not None:
        stmt = stmt.where(Ticket.created_at >= start)
    if end is not None:
        stmt = stmt.where(_created_until(end))
    if paid_only:
        stmt = stmt.where(Ticket.payment_status == paid_status)

    try:
        result = await session.execute(stmt)
        rows = result.mappings().all()
    except Exception:
        logger.exception("Failed to fetch ticket records")
        await session.rollback()
        raise

    records = [
        RawRecord(
            timestamp=row["created_at"],
            entity_id=row["user_id"],
            amount=float(row["final_cost"]) if row["final_cost"] is not None else None,
            paid=row["payment_status"] == paid_status,
        )
        for row in rows
    ]
    logger.debug("Fetched %d ticket records (paid_only=%s)", len(records), paid_only)
    return records


async def fetch_daily_trends(
    session: AsyncSession,
    start=None,
    end=None,
) -> list[DailyTrendRow]:
    """Fetch the pre-aggregated daily ticket view, oldest first."""
    stmt = select(
        DailyTicketTrend.date,
        DailyTicketTrend.ticket_count,
        DailyTicketTrend.unique_customers,
        DailyTicketTrend.total_revenue,
    ).order_by(DailyTicketTrend.date.asc())
    if start is not None:
        stmt = stmt.where(DailyTicketTrend.date >= _as_day(start))
    if end is not None:
        stmt = stmt.where(DailyTicketTrend.date <= _as_day(end))

    try:
        result = await session.execute(stmt)
        rows = result.mappings().all()
    except Exception:
        logger.exception("Failed to fetch daily ticket trends")
        await session.rollback()
        raise

    return [
        DailyTrendRow(
            date=row["date"],
            ticket_count=int(row["ticket_count"] or 0),
            unique_customers=int(row["unique_customers"] or 0),
            total_revenue=float(row["total_revenue"] or 0),
        )
        for row in rows
    ]
