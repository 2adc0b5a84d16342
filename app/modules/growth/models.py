import uuid
from datetime import date, time
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Float, Numeric, Date, Time, ForeignKey, UniqueConstraint
from app.core.base import Base, TimestampedTenantMixin

# Derived signal tables. Each is keyed by a natural business key and rewritten by the growth sync.

class ClientBehavior(Base, TimestampedTenantMixin):
    __tablename__ = "client_behavior"
    __table_args__ = (UniqueConstraint("client_id", "org_id", name="uq_client_behavior_client_org"),)

    client_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("client.id"))
    client_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    client_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)

    total_appointments: Mapped[int] = mapped_column(Integer, default=0)
    completed: Mapped[int] = mapped_column(Integer, default=0)
    cancelled: Mapped[int] = mapped_column(Integer, default=0)
    no_show: Mapped[int] = mapped_column(Integer, default=0)
    cancel_rate: Mapped[float] = mapped_column(Float, default=0.0)
    classification: Mapped[str] = mapped_column(String(16), default="normal")  # normal | at_risk | blocked

    last_appointment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_completed_date: Mapped[date | None] = mapped_column(Date, nullable=True)


class EmptySlot(Base, TimestampedTenantMixin):
    __tablename__ = "empty_slots"
    __table_args__ = (UniqueConstraint("barber_id", "slot_date", "slot_time", name="uq_empty_slot_barber_date_time"),)

    barber_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("barber.id"))
    slot_date: Mapped[date] = mapped_column(Date, index=True)
    slot_time: Mapped[time] = mapped_column(Time)
    status: Mapped[str] = mapped_column(String(16), default="open")  # open | notified | filled


class ReactivationQueueEntry(Base, TimestampedTenantMixin):
    __tablename__ = "reactivation_queue"
    __table_args__ = (UniqueConstraint("client_id", "org_id", name="uq_reactivation_client_org"),)

    client_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("client.id"))
    client_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    client_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    days_inactive: Mapped[int] = mapped_column(Integer, default=0)
    last_appointment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="pending")  # pending | sent | returned
    queued_on: Mapped[date] = mapped_column(Date)  # day the client entered the queue


class MoneyLostAlert(Base, TimestampedTenantMixin):
    __tablename__ = "money_lost_alerts"
    __table_args__ = (UniqueConstraint("org_id", "alert_date", name="uq_money_lost_org_date"),)

    alert_date: Mapped[date] = mapped_column(Date)
    empty_slots_count: Mapped[int] = mapped_column(Integer, default=0)
    cancellations_count: Mapped[int] = mapped_column(Integer, default=0)
    no_shows_count: Mapped[int] = mapped_column(Integer, default=0)
    estimated_loss: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    cancel_rate: Mapped[float] = mapped_column(Float, default=0.0)
    is_critical: Mapped[bool] = mapped_column(default=False)
    is_dismissed: Mapped[bool] = mapped_column(default=False)


class BarberScore(Base, TimestampedTenantMixin):
    __tablename__ = "barber_score"
    __table_args__ = (UniqueConstraint("barber_id", "org_id", name="uq_barber_score_barber_org"),)

    barber_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("barber.id"))
    total_appointments: Mapped[int] = mapped_column(Integer, default=0)
    completed_appointments: Mapped[int] = mapped_column(Integer, default=0)
    canceled_appointments: Mapped[int] = mapped_column(Integer, default=0)
    no_show_clients: Mapped[int] = mapped_column(Integer, default=0)
    revenue: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    cancel_rate: Mapped[float] = mapped_column(Float, default=0.0)
    score: Mapped[int] = mapped_column(Integer, default=0)
