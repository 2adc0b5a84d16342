import uuid
from datetime import date
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Date, ForeignKey, UniqueConstraint
from app.core.base import Base, TimestampedTenantMixin

# Recurring weekly schedule: weekday 0=Sun..6=Sat, minutes past midnight
class WorkHourRule(Base, TimestampedTenantMixin):
    __tablename__ = "barber_work_hours"
    barber_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("barber.id"), index=True)
    weekday: Mapped[int] = mapped_column(Integer)  # 0..6
    start_minute: Mapped[int] = mapped_column(Integer)  # e.g., 9*60
    end_minute: Mapped[int] = mapped_column(Integer)    # e.g., 18*60

# Recurring non-bookable window (lunch, etc.)
class BreakRule(Base, TimestampedTenantMixin):
    __tablename__ = "barber_breaks"
    barber_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("barber.id"), index=True)
    weekday: Mapped[int] = mapped_column(Integer)
    start_minute: Mapped[int] = mapped_column(Integer)
    end_minute: Mapped[int] = mapped_column(Integer)
    kind: Mapped[str] = mapped_column(String(32), default="lunch")
    note: Mapped[str | None] = mapped_column(String(255), nullable=True)

# One-off override for a calendar date (vacation, sick day)
class DateException(Base, TimestampedTenantMixin):
    __tablename__ = "barber_exceptions"
    __table_args__ = (UniqueConstraint("barber_id", "exception_date", name="uq_barber_exception_date"),)
    barber_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("barber.id"), index=True)
    exception_date: Mapped[date] = mapped_column(Date)
    is_closed: Mapped[bool] = mapped_column(default=True)
    note: Mapped[str | None] = mapped_column(String(255), nullable=True)
