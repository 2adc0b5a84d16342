import uuid
from datetime import date, time
from typing import Sequence, Iterable, Mapping
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.modules.directory.models import Client
from app.modules.growth.models import (
    ClientBehavior, EmptySlot, ReactivationQueueEntry, MoneyLostAlert, BarberScore
)
from app.modules.growth.behavior import BehaviorStats
from app.modules.growth.reactivation import ReactivationPlan
from app.modules.growth.loss import LossEstimate
from app.modules.growth.scores import ScoreStats

OPEN = "open"
NOTIFIED = "notified"
FILLED = "filled"

def _assign(obj, **fields) -> None:
    # only touch attributes whose value changed so unchanged rows emit no UPDATE
    for k, v in fields.items():
        if getattr(obj, k) != v:
            setattr(obj, k, v)

class GrowthRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ---- clients (contact lookup) ----
    async def client_contacts(self, org_id: uuid.UUID, client_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, dict]:
        ids = list(client_ids)
        if not ids:
            return {}
        q = select(Client.id, Client.full_name, Client.phone).where(
            Client.org_id == org_id, Client.id.in_(ids), Client.deleted_at.is_(None)
        )
        res = await self.session.execute(q)
        return {cid: {"name": name, "phone": phone} for cid, name, phone in res.all()}

    # ---- empty slots ----
    async def list_slot_rows(self, org_id: uuid.UUID, barber_id: uuid.UUID, day: date) -> Sequence[EmptySlot]:
        q = select(EmptySlot).where(
            EmptySlot.org_id == org_id,
            EmptySlot.barber_id == barber_id,
            EmptySlot.slot_date == day,
        )
        res = await self.session.execute(q)
        return res.scalars().all()

    async def sync_empty_slots(self, org_id: uuid.UUID, barber_id: uuid.UUID, day: date, open_times: Sequence[time]) -> int:
        """Upsert one row per open slot keyed by (barber, date, time).

        Rows that are no longer open become `filled`; a `notified` row that is
        still open keeps its status.
        """
        rows = {r.slot_time: r for r in await self.list_slot_rows(org_id, barber_id, day)}
        wanted = set(open_times)
        for t in open_times:
            row = rows.get(t)
            if row is None:
                self.session.add(EmptySlot(org_id=org_id, barber_id=barber_id, slot_date=day, slot_time=t, status=OPEN))
            elif row.status == FILLED:
                row.status = OPEN
        for t, row in rows.items():
            if t not in wanted and row.status != FILLED:
                row.status = FILLED
        await self.session.flush()
        return len(wanted)

    async def fill_unresolved_slots(self, org_id: uuid.UUID, day: date, resolved_barber_ids: Iterable[uuid.UUID]) -> int:
        """Mark `filled` every non-filled row for `day` whose barber got no slot pass this run.

        Covers barbers that were deactivated or whose rules no longer produce a schedule.
        """
        resolved = set(resolved_barber_ids)
        q = select(EmptySlot).where(
            EmptySlot.org_id == org_id,
            EmptySlot.slot_date == day,
            EmptySlot.status != FILLED,
        )
        res = await self.session.execute(q)
        n = 0
        for row in res.scalars().all():
            if row.barber_id not in resolved:
                row.status = FILLED
                n += 1
        await self.session.flush()
        return n

    async def list_empty_slots(self, org_id: uuid.UUID, day: date, status: str | None = OPEN) -> Sequence[EmptySlot]:
        cond = [EmptySlot.org_id == org_id, EmptySlot.slot_date == day, EmptySlot.deleted_at.is_(None)]
        if status:
            cond.append(EmptySlot.status == status)
        res = await self.session.execute(select(EmptySlot).where(*cond).order_by(EmptySlot.slot_time, EmptySlot.barber_id))
        return res.scalars().all()

    # ---- client behavior ----
    async def sync_client_behavior(self, org_id: uuid.UUID, stats: Sequence[BehaviorStats], contacts: Mapping[uuid.UUID, dict]) -> int:
        res = await self.session.execute(select(ClientBehavior).where(ClientBehavior.org_id == org_id))
        rows = {r.client_id: r for r in res.scalars().all()}
        seen = set()
        for st in stats:
            seen.add(st.client_id)
            contact = contacts.get(st.client_id) or {}
            fields = dict(
                client_name=contact.get("name"),
                client_phone=contact.get("phone"),
                total_appointments=st.total_appointments,
                completed=st.completed,
                cancelled=st.cancelled,
                no_show=st.no_show,
                cancel_rate=st.cancel_rate,
                classification=st.classification,
                last_appointment_date=st.last_appointment_date,
                last_completed_date=st.last_completed_date,
            )
            row = rows.get(st.client_id)
            if row is None:
                self.session.add(ClientBehavior(org_id=org_id, client_id=st.client_id, **fields))
            else:
                _assign(row, **fields)
        for cid, row in rows.items():
            if cid not in seen:
                await self.session.delete(row)
        await self.session.flush()
        return len(seen)

    async def list_client_behavior(self, org_id: uuid.UUID, classification: str | None = None, limit: int = 100, offset: int = 0) -> Sequence[ClientBehavior]:
        cond = [ClientBehavior.org_id == org_id, ClientBehavior.deleted_at.is_(None)]
        if classification:
            cond.append(ClientBehavior.classification == classification)
        q = select(ClientBehavior).where(*cond).order_by(ClientBehavior.cancel_rate.desc(), ClientBehavior.client_id).limit(limit).offset(offset)
        res = await self.session.execute(q)
        return res.scalars().all()

    # ---- reactivation queue ----
    async def purge_deleted_reactivation_entries(self, org_id: uuid.UUID) -> int:
        # soft-deleted entries still hold the (client, org) key; drop them so the client can be queued afresh
        q = select(ReactivationQueueEntry).where(
            ReactivationQueueEntry.org_id == org_id,
            ReactivationQueueEntry.deleted_at.is_not(None),
        )
        res = await self.session.execute(q)
        rows = res.scalars().all()
        for row in rows:
            await self.session.delete(row)
        await self.session.flush()
        return len(rows)

    async def reactivation_entries(self, org_id: uuid.UUID) -> dict[uuid.UUID, ReactivationQueueEntry]:
        res = await self.session.execute(select(ReactivationQueueEntry).where(
            ReactivationQueueEntry.org_id == org_id,
            ReactivationQueueEntry.deleted_at.is_(None),
        ))
        return {r.client_id: r for r in res.scalars().all()}

    async def apply_reactivation_plan(self, org_id: uuid.UUID, plan: ReactivationPlan, existing: Mapping[uuid.UUID, ReactivationQueueEntry], contacts: Mapping[uuid.UUID, dict]) -> int:
        for item in plan.upserts:
            contact = contacts.get(item.client_id) or {}
            fields = dict(
                client_name=contact.get("name"),
                client_phone=contact.get("phone"),
                days_inactive=item.days_inactive,
                last_appointment_date=item.last_appointment_date,
                status=item.status,
                queued_on=item.queued_on,
            )
            row = existing.get(item.client_id)
            if row is None:
                self.session.add(ReactivationQueueEntry(org_id=org_id, client_id=item.client_id, **fields))
            else:
                _assign(row, **fields)
        for cid in plan.deletes:
            await self.session.delete(existing[cid])
        await self.session.flush()
        return len(plan.upserts)

    async def list_reactivation_queue(self, org_id: uuid.UUID, status: str | None = "pending", limit: int = 100, offset: int = 0) -> Sequence[ReactivationQueueEntry]:
        cond = [ReactivationQueueEntry.org_id == org_id, ReactivationQueueEntry.deleted_at.is_(None)]
        if status:
            cond.append(ReactivationQueueEntry.status == status)
        q = select(ReactivationQueueEntry).where(*cond).order_by(ReactivationQueueEntry.days_inactive.desc(), ReactivationQueueEntry.client_id).limit(limit).offset(offset)
        res = await self.session.execute(q)
        return res.scalars().all()

    async def get_reactivation_entry(self, org_id: uuid.UUID, entry_id: uuid.UUID) -> ReactivationQueueEntry | None:
        q = select(ReactivationQueueEntry).where(ReactivationQueueEntry.id == entry_id, ReactivationQueueEntry.org_id == org_id)
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    # ---- money lost alerts ----
    async def get_alert(self, org_id: uuid.UUID, day: date) -> MoneyLostAlert | None:
        q = select(MoneyLostAlert).where(MoneyLostAlert.org_id == org_id, MoneyLostAlert.alert_date == day)
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def get_alert_by_id(self, org_id: uuid.UUID, alert_id: uuid.UUID) -> MoneyLostAlert | None:
        q = select(MoneyLostAlert).where(MoneyLostAlert.id == alert_id, MoneyLostAlert.org_id == org_id)
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def upsert_money_lost_alert(self, org_id: uuid.UUID, day: date, est: LossEstimate) -> MoneyLostAlert | None:
        """Write today's alert. `is_dismissed` is only set on insert.

        A day without any signal creates no row; an existing row is brought
        back in line with the current figures.
        """
        row = await self.get_alert(org_id, day)
        if row is None and not est.has_signal:
            return None
        fields = dict(
            empty_slots_count=est.empty_slots,
            cancellations_count=est.cancellations,
            no_shows_count=est.no_shows,
            estimated_loss=est.estimated_loss,
            cancel_rate=est.cancel_rate,
            is_critical=est.is_critical,
        )
        if row is None:
            row = MoneyLostAlert(org_id=org_id, alert_date=day, is_dismissed=False, **fields)
            self.session.add(row)
        else:
            _assign(row, **fields)
        await self.session.flush()
        return row

    # ---- barber scores ----
    async def sync_barber_scores(self, org_id: uuid.UUID, scores: Sequence[ScoreStats]) -> int:
        res = await self.session.execute(select(BarberScore).where(BarberScore.org_id == org_id))
        rows = {r.barber_id: r for r in res.scalars().all()}
        for sc in scores:
            fields = dict(
                total_appointments=sc.total_appointments,
                completed_appointments=sc.completed_appointments,
                canceled_appointments=sc.canceled_appointments,
                no_show_clients=sc.no_show_clients,
                revenue=sc.revenue,
                cancel_rate=sc.cancel_rate,
                score=sc.score,
            )
            row = rows.get(sc.barber_id)
            if row is None:
                self.session.add(BarberScore(org_id=org_id, barber_id=sc.barber_id, **fields))
            else:
                _assign(row, **fields)
        await self.session.flush()
        return len(scores)

    async def list_barber_scores(self, org_id: uuid.UUID) -> Sequence[BarberScore]:
        q = select(BarberScore).where(BarberScore.org_id == org_id, BarberScore.deleted_at.is_(None)).order_by(BarberScore.score.desc(), BarberScore.barber_id)
        res = await self.session.execute(q)
        return res.scalars().all()
