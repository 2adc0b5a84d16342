"""
End to end runs of the growth sync against an in-memory database.
"""
import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.modules.appointments.repository import AppointmentRepository
from app.modules.directory.models import Barber
from app.modules.directory.repository import DirectoryRepository
from app.modules.growth.models import ClientBehavior, EmptySlot, ReactivationQueueEntry, MoneyLostAlert, BarberScore
from app.modules.growth.policy import GrowthPolicy
from app.modules.growth.service import GrowthSyncService, SYNC_TOPIC
from app.modules.availability.calendar import weekday_of
DAY = date(2026, 10, 19)

WD = weekday_of(DAY)
DERIVED = (ClientBehavior, EmptySlot, ReactivationQueueEntry, MoneyLostAlert, BarberScore)


def make_service(session_factory, bus, cache, today=DAY):
    return GrowthSyncService(session_factory, policy=GrowthPolicy(), cache=cache, bus=bus, today=lambda: today, concurrency=1)


async def fetch(session_factory, model, org_id):
    async with session_factory() as s:
        res = await s.execute(select(model).where(model.org_id == org_id))
        return res.scalars().all()


async def snapshot(session_factory):
    skip = {"created_at", "updated_at"}
    out = {}
    async with session_factory() as s:
        for model in DERIVED:
            cols = [c.name for c in model.__table__.columns if c.name not in skip]
            res = await s.execute(select(model))
            out[model.__tablename__] = sorted(
                (tuple(str(getattr(r, c)) for c in cols) for r in res.scalars().all())
            )
    return out


async def seed_shop(seed, org_id):
    """One barber working 09:00-11:00 on DAY, three clients with mixed history."""
    barber = await seed.barber(org_id)
    svc = await seed.service(org_id, price="40.00")
    await seed.work_hours(barber, WD, 9 * 60, 11 * 60)

    ana = await seed.client(org_id, "Ana", "11911110000")
    bruno = await seed.client(org_id, "Bruno", "11922220000")
    caio = await seed.client(org_id, "Caio", "11933330000")

    await seed.appointment(barber, ana, DAY, time(9, 30), "confirmed")
    await seed.appointment(barber, bruno, DAY, time(10, 0), "cancelled")
    await seed.appointment(barber, bruno, date(2026, 8, 1), time(10, 0), "cancelled")
    await seed.appointment(barber, bruno, date(2026, 7, 1), time(10, 0), "cancelled")
    await seed.appointment(barber, bruno, date(2026, 6, 1), time(10, 0), "completed")
    await seed.appointment(barber, caio, date(2026, 8, 1), time(9, 0), "completed", service=svc)
    await seed.s.commit()
    return dict(barber=barber, service=svc, ana=ana, bruno=bruno, caio=caio)


async def test_full_run_writes_every_signal(seed, session_factory, bus, cache):
    org = uuid.uuid4()
    shop = await seed_shop(seed, org)

    summary = await make_service(session_factory, bus, cache).run()

    assert summary.tenants_processed == 1
    assert summary.errors == 0

    slots = await fetch(session_factory, EmptySlot, org)
    assert sorted(r.slot_time for r in slots) == [time(9, 0), time(10, 0), time(10, 30)]
    assert {r.status for r in slots} == {"open"}

    behavior = {r.client_id: r for r in await fetch(session_factory, ClientBehavior, org)}
    assert len(behavior) == 3
    bruno = behavior[shop["bruno"].id]
    assert (bruno.total_appointments, bruno.cancelled, bruno.classification) == (4, 3, "blocked")
    assert bruno.cancel_rate == 0.75
    assert behavior[shop["ana"].id].classification == "normal"
    assert behavior[shop["caio"].id].client_name == "Caio"

    [entry] = await fetch(session_factory, ReactivationQueueEntry, org)
    assert entry.client_id == shop["caio"].id
    assert entry.status == "pending"
    assert entry.days_inactive == 79
    assert entry.client_phone == "11933330000"

    [alert] = await fetch(session_factory, MoneyLostAlert, org)
    assert alert.alert_date == DAY
    assert (alert.empty_slots_count, alert.cancellations_count, alert.no_shows_count) == (3, 1, 0)
    assert alert.estimated_loss == Decimal("160.00")
    assert alert.cancel_rate == 0.5
    assert alert.is_critical
    assert not alert.is_dismissed

    [score] = await fetch(session_factory, BarberScore, org)
    assert score.barber_id == shop["barber"].id
    assert (score.total_appointments, score.completed_appointments, score.canceled_appointments) == (6, 2, 3)
    assert score.revenue == Decimal("40.00")
    assert score.score == 21


async def test_second_run_changes_nothing(seed, session_factory, bus, cache):
    org = uuid.uuid4()
    await seed_shop(seed, org)
    service = make_service(session_factory, bus, cache)

    await service.run()
    first = await snapshot(session_factory)
    await service.run()
    assert await snapshot(session_factory) == first


async def test_sent_status_survives_and_return_removes_entry(seed, session_factory, bus, cache):
    org = uuid.uuid4()
    shop = await seed_shop(seed, org)
    await make_service(session_factory, bus, cache).run()

    async with session_factory() as s:
        entry = (await s.execute(select(ReactivationQueueEntry).where(ReactivationQueueEntry.org_id == org))).scalar_one()
        entry.status = "sent"
        await s.commit()

    await make_service(session_factory, bus, cache).run()
    [entry] = await fetch(session_factory, ReactivationQueueEntry, org)
    assert entry.status == "sent"

    next_day = DAY + timedelta(days=1)
    await seed.appointment(shop["barber"], shop["caio"], next_day, time(9, 0), "completed")
    await seed.s.commit()
    await make_service(session_factory, bus, cache, today=next_day).run()

    assert await fetch(session_factory, ReactivationQueueEntry, org) == []


async def test_failing_tenant_does_not_stop_the_others(seed, session_factory, bus, cache, monkeypatch):
    orgs = [uuid.uuid4() for _ in range(3)]
    for org in orgs:
        barber = await seed.barber(org)
        await seed.work_hours(barber, WD, 9 * 60, 10 * 60)
        client = await seed.client(org)
        await seed.appointment(barber, client, DAY, time(9, 0), "completed")
    await seed.s.commit()
    broken = orgs[1]

    original = AppointmentRepository.list_history

    async def flaky(self, org_id):
        if org_id == broken:
            raise RuntimeError("history unavailable")
        return await original(self, org_id)

    monkeypatch.setattr(AppointmentRepository, "list_history", flaky)

    summary = await make_service(session_factory, bus, cache).run()

    assert summary.tenants_processed == 2
    assert summary.errors == 1
    for org in (orgs[0], orgs[2]):
        assert len(await fetch(session_factory, ClientBehavior, org)) == 1
    # the broken tenant's partial work is rolled back
    assert await fetch(session_factory, EmptySlot, broken) == []
    assert await fetch(session_factory, ClientBehavior, broken) == []
    assert {e[1] for e in bus.events} == {str(orgs[0]), str(orgs[2])}


async def test_tenant_listing_failure_propagates(session_factory, bus, cache, monkeypatch):
    async def down(self):
        raise RuntimeError("database unreachable")

    monkeypatch.setattr(DirectoryRepository, "list_tenant_ids", down)
    with pytest.raises(RuntimeError):
        await make_service(session_factory, bus, cache).run()


async def test_dismissed_alert_stays_dismissed(seed, session_factory, bus, cache):
    org = uuid.uuid4()
    shop = await seed_shop(seed, org)
    await make_service(session_factory, bus, cache).run()

    async with session_factory() as s:
        alert = (await s.execute(select(MoneyLostAlert).where(MoneyLostAlert.org_id == org))).scalar_one()
        alert.is_dismissed = True
        await s.commit()

    await seed.appointment(shop["barber"], shop["ana"], DAY, time(10, 30), "no_show")
    await seed.s.commit()
    await make_service(session_factory, bus, cache).run()

    [alert] = await fetch(session_factory, MoneyLostAlert, org)
    assert alert.is_dismissed
    assert alert.no_shows_count == 1


async def test_booked_slots_turn_filled_and_notified_is_kept(seed, session_factory, bus, cache):
    org = uuid.uuid4()
    shop = await seed_shop(seed, org)
    await make_service(session_factory, bus, cache).run()

    async with session_factory() as s:
        res = await s.execute(select(EmptySlot).where(EmptySlot.org_id == org, EmptySlot.slot_time == time(10, 30)))
        res.scalar_one().status = "notified"
        await s.commit()

    await seed.appointment(shop["barber"], shop["ana"], DAY, time(9, 0), "pending")
    await seed.s.commit()
    await make_service(session_factory, bus, cache).run()

    status = {r.slot_time: r.status for r in await fetch(session_factory, EmptySlot, org)}
    assert status == {time(9, 0): "filled", time(10, 0): "open", time(10, 30): "notified"}


async def test_bad_calendar_is_a_warning_and_other_barbers_still_run(seed, session_factory, bus, cache):
    org = uuid.uuid4()
    broken = await seed.barber(org, "Alfa")
    await seed.work_hours(broken, WD, 9 * 60, 12 * 60)
    await seed.work_hours(broken, WD, 11 * 60, 13 * 60)
    fine = await seed.barber(org, "Beto")
    await seed.work_hours(fine, WD, 9 * 60, 10 * 60)
    await seed.s.commit()

    summary = await make_service(session_factory, bus, cache).run()

    assert summary.tenants_processed == 1
    assert summary.errors == 0
    assert summary.warnings == 1
    slots = await fetch(session_factory, EmptySlot, org)
    assert {r.barber_id for r in slots} == {fine.id}


async def test_quiet_day_writes_no_alert(seed, session_factory, bus, cache):
    org = uuid.uuid4()
    await seed.barber(org)
    await seed.s.commit()

    summary = await make_service(session_factory, bus, cache).run()

    assert summary.tenants_processed == 1
    assert await fetch(session_factory, MoneyLostAlert, org) == []


async def test_completion_event_and_contact_cache(seed, session_factory, bus, cache):
    org = uuid.uuid4()
    shop = await seed_shop(seed, org)
    await make_service(session_factory, bus, cache).run()

    [(topic, key, value)] = bus.events
    assert topic == SYNC_TOPIC
    assert key == str(org)
    assert value["date"] == DAY.isoformat()
    assert value["empty_slots"] == 3
    assert value["queued"] == 1
    assert await cache.get(f"client:{org}:{shop['caio'].id}") == {"name": "Caio", "phone": "11933330000"}


async def test_sync_tenant_only_touches_that_tenant(seed, session_factory, bus, cache):
    mine, other = uuid.uuid4(), uuid.uuid4()
    await seed_shop(seed, mine)
    await seed_shop(seed, other)

    summary = await make_service(session_factory, bus, cache).sync_tenant(mine)

    assert summary.tenants_processed == 1
    assert len(await fetch(session_factory, ClientBehavior, mine)) == 3
    assert await fetch(session_factory, ClientBehavior, other) == []


async def test_rows_of_misconfigured_barber_are_filled(seed, session_factory, bus, cache):
    org = uuid.uuid4()
    barber = await seed.barber(org)
    await seed.work_hours(barber, WD, 9 * 60, 10 * 60)
    await seed.s.commit()
    await make_service(session_factory, bus, cache).run()
    assert len(await fetch(session_factory, EmptySlot, org)) == 2

    await seed.work_hours(barber, WD, 9 * 60 + 30, 11 * 60)
    await seed.s.commit()
    summary = await make_service(session_factory, bus, cache).run()

    assert summary.warnings == 1
    assert {r.status for r in await fetch(session_factory, EmptySlot, org)} == {"filled"}
    [alert] = await fetch(session_factory, MoneyLostAlert, org)
    assert alert.empty_slots_count == 0


async def test_rows_of_deactivated_barber_are_filled(seed, session_factory, bus, cache):
    org = uuid.uuid4()
    shop = await seed_shop(seed, org)
    await make_service(session_factory, bus, cache).run()

    async with session_factory() as s:
        barber = await s.get(Barber, shop["barber"].id)
        barber.active = False
        await s.commit()
    summary = await make_service(session_factory, bus, cache).run()

    assert summary.tenants_processed == 1
    assert {r.status for r in await fetch(session_factory, EmptySlot, org)} == {"filled"}
    [alert] = await fetch(session_factory, MoneyLostAlert, org)
    assert alert.empty_slots_count == 0


async def test_shop_without_active_barbers_keeps_ageing(seed, session_factory, bus, cache):
    org = uuid.uuid4()
    barber = await seed.barber(org)
    client = await seed.client(org)
    await seed.appointment(barber, client, DAY - timedelta(days=40), time(9, 0), "completed")
    await seed.s.commit()
    await make_service(session_factory, bus, cache).run()
    [entry] = await fetch(session_factory, ReactivationQueueEntry, org)
    assert entry.days_inactive == 40

    async with session_factory() as s:
        (await s.get(Barber, barber.id)).active = False
        await s.commit()
    summary = await make_service(session_factory, bus, cache, today=DAY + timedelta(days=10)).run()

    assert summary.tenants_processed == 1
    [entry] = await fetch(session_factory, ReactivationQueueEntry, org)
    assert entry.days_inactive == 50


async def test_soft_deleted_queue_entry_is_replaced(seed, session_factory, bus, cache):
    org = uuid.uuid4()
    shop = await seed_shop(seed, org)
    await make_service(session_factory, bus, cache).run()

    async with session_factory() as s:
        entry = (await s.execute(select(ReactivationQueueEntry).where(ReactivationQueueEntry.org_id == org))).scalar_one()
        entry.status = "sent"
        entry.deleted_at = datetime.now(timezone.utc)
        await s.commit()
    await make_service(session_factory, bus, cache).run()

    [entry] = await fetch(session_factory, ReactivationQueueEntry, org)
    assert entry.client_id == shop["caio"].id
    assert entry.deleted_at is None
    assert entry.status == "pending"
