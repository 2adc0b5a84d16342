import uuid
from datetime import date
from typing import Sequence, Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func
from app.modules.appointments.models import Appointment, OCCUPYING_STATUSES, CANCELLED, NO_SHOW

class AppointmentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_booked_for_day(self, org_id: uuid.UUID, barber_id: uuid.UUID, day: date, statuses: Iterable[str] = OCCUPYING_STATUSES) -> Sequence[Appointment]:
        q = select(Appointment).where(and_(
            Appointment.org_id == org_id,
            Appointment.barber_id == barber_id,
            Appointment.appointment_date == day,
            Appointment.status.in_(tuple(statuses)),
            Appointment.deleted_at.is_(None),
        )).order_by(Appointment.appointment_time)
        res = await self.session.execute(q)
        return res.scalars().all()

    async def list_history(self, org_id: uuid.UUID) -> Sequence[Appointment]:
        q = select(Appointment).where(
            Appointment.org_id == org_id,
            Appointment.deleted_at.is_(None),
        ).order_by(Appointment.appointment_date, Appointment.appointment_time, Appointment.id)
        res = await self.session.execute(q)
        return res.scalars().all()

    async def day_status_counts(self, org_id: uuid.UUID, day: date) -> dict[str, int]:
        q = select(Appointment.status, func.count(Appointment.id)).where(
            Appointment.org_id == org_id,
            Appointment.appointment_date == day,
            Appointment.deleted_at.is_(None),
        ).group_by(Appointment.status)
        res = await self.session.execute(q)
        counts = {status: int(n) for status, n in res.all()}
        counts.setdefault(CANCELLED, 0)
        counts.setdefault(NO_SHOW, 0)
        return counts
