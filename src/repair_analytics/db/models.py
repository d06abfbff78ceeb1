"""Read models for the ticket tables the analytics engine queries."""

from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class Ticket(Base):
    """A repair ticket.  Only the columns the analytics need are mapped."""

    __tablename__ = "tickets"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), nullable=True, index=True)  # customer
    status = Column(String(32), nullable=True)
    payment_status = Column(String(32), nullable=True)  # "paid" | "unpaid" | "partial"
    final_cost = Column(Numeric(12, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)


class DailyTicketTrend(Base):
    """Row of the ``daily_ticket_trends`` materialized view."""

    __tablename__ = "daily_ticket_trends"

    date = Column(Date, primary_key=True)
    ticket_count = Column(Integer, nullable=False, default=0)
    unique_customers = Column(Integer, nullable=False, default=0)
    total_revenue = Column(Numeric(14, 2), nullable=False, default=0)
