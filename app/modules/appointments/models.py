import uuid
from datetime import date, time
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Date, Time, ForeignKey, Index
from app.core.base import Base, TimestampedTenantMixin

PENDING = "pending"
CONFIRMED = "confirmed"
COMPLETED = "completed"
CANCELLED = "cancelled"
NO_SHOW = "no_show"

STATUSES = (PENDING, CONFIRMED, COMPLETED, CANCELLED, NO_SHOW)
# statuses that hold a slot on the barber's agenda
OCCUPYING_STATUSES = (PENDING, CONFIRMED, COMPLETED)

class Appointment(Base, TimestampedTenantMixin):
    __table_args__ = (
        Index("ix_appointment_barber_day", "barber_id", "appointment_date"),
    )

    barber_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("barber.id"), nullable=True)
    client_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("client.id"), nullable=True)
    service_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("service.id"), nullable=True)

    appointment_date: Mapped[date] = mapped_column(Date, index=True)
    appointment_time: Mapped[time] = mapped_column(Time)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=30)

    status: Mapped[str] = mapped_column(String(24), default=PENDING)  # pending, confirmed, completed, cancelled, no_show
