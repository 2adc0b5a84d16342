import uuid
from decimal import Decimal
from typing import Sequence
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from app.modules.directory.models import Barber, Service

class DirectoryRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_tenant_ids(self) -> list[uuid.UUID]:
        # every shop with a barber on file, active or not: client signals keep ageing
        q = select(Barber.org_id).where(Barber.deleted_at.is_(None)).distinct().order_by(Barber.org_id)
        res = await self.session.execute(q)
        return list(res.scalars().all())

    async def list_barbers(self, org_id: uuid.UUID) -> Sequence[Barber]:
        q = select(Barber).where(
            Barber.org_id == org_id,
            Barber.active.is_(True),
            Barber.deleted_at.is_(None),
        ).order_by(Barber.name, Barber.id)
        res = await self.session.execute(q)
        return res.scalars().all()

    async def get_barber(self, org_id: uuid.UUID, barber_id: uuid.UUID) -> Barber | None:
        q = select(Barber).where(
            Barber.id == barber_id,
            Barber.org_id == org_id,
            Barber.deleted_at.is_(None),
        )
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def barber_ids(self, org_id: uuid.UUID) -> set[uuid.UUID]:
        # includes inactive barbers: their history still counts
        q = select(Barber.id).where(Barber.org_id == org_id, Barber.deleted_at.is_(None))
        res = await self.session.execute(q)
        return set(res.scalars().all())

    async def service_prices(self, org_id: uuid.UUID) -> dict[uuid.UUID, Decimal]:
        q = select(Service.id, Service.price).where(Service.org_id == org_id, Service.deleted_at.is_(None))
        res = await self.session.execute(q)
        return {sid: Decimal(price or 0) for sid, price in res.all()}

    async def average_service_price(self, org_id: uuid.UUID) -> Decimal | None:
        q = select(func.avg(Service.price)).where(
            Service.org_id == org_id,
            Service.active.is_(True),
            Service.deleted_at.is_(None),
            Service.price > 0,
        )
        res = await self.session.execute(q)
        avg = res.scalar_one_or_none()
        return Decimal(str(avg)) if avg is not None else None
