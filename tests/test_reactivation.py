import uuid
from datetime import date, timedelta
from types import SimpleNamespace

from app.modules.growth.behavior import BehaviorStats, NORMAL, AT_RISK, BLOCKED
from app.modules.growth.policy import GrowthPolicy
from app.modules.growth.reactivation import build_reactivation_plan, PENDING, SENT, RETURNED

POLICY = GrowthPolicy()
TODAY = date(2026, 10, 19)


def stats(last_days_ago, classification=NORMAL, completed_days_ago=None):
    return BehaviorStats(
        client_id=uuid.uuid4(),
        total_appointments=3,
        classification=classification,
        last_appointment_date=TODAY - timedelta(days=last_days_ago),
        last_completed_date=TODAY - timedelta(days=completed_days_ago) if completed_days_ago is not None else None,
    )


def entry(status, queued_days_ago=10):
    return SimpleNamespace(status=status, queued_on=TODAY - timedelta(days=queued_days_ago))


def test_new_inactive_client_is_queued_pending():
    st = stats(45)
    plan = build_reactivation_plan([st], {}, TODAY, POLICY)
    [item] = plan.upserts
    assert item.client_id == st.client_id
    assert item.status == PENDING
    assert item.days_inactive == 45
    assert item.queued_on == TODAY
    assert plan.deletes == []


def test_threshold_is_strictly_more_than_inactive_days():
    assert build_reactivation_plan([stats(30)], {}, TODAY, POLICY).upserts == []
    assert len(build_reactivation_plan([stats(31)], {}, TODAY, POLICY).upserts) == 1


def test_blocked_clients_are_never_queued():
    plan = build_reactivation_plan([stats(90, classification=BLOCKED)], {}, TODAY, POLICY)
    assert plan.upserts == []


def test_at_risk_clients_are_queued():
    plan = build_reactivation_plan([stats(90, classification=AT_RISK)], {}, TODAY, POLICY)
    assert len(plan.upserts) == 1


def test_sent_status_survives_recompute():
    st = stats(60, completed_days_ago=60)
    plan = build_reactivation_plan([st], {st.client_id: entry(SENT, queued_days_ago=20)}, TODAY, POLICY)
    [item] = plan.upserts
    assert item.status == SENT
    assert item.queued_on == TODAY - timedelta(days=20)
    assert item.days_inactive == 60


def test_returned_status_survives_recompute():
    st = stats(60)
    plan = build_reactivation_plan([st], {st.client_id: entry(RETURNED)}, TODAY, POLICY)
    assert plan.upserts[0].status == RETURNED


def test_client_who_came_back_is_removed():
    st = stats(2, completed_days_ago=2)
    plan = build_reactivation_plan([st], {st.client_id: entry(SENT, queued_days_ago=20)}, TODAY, POLICY)
    assert plan.upserts == []
    assert plan.deletes == [st.client_id]


def test_client_who_came_back_and_lapsed_again_restarts_pending():
    st = stats(40, completed_days_ago=40)
    plan = build_reactivation_plan([st], {st.client_id: entry(SENT, queued_days_ago=90)}, TODAY, POLICY)
    [item] = plan.upserts
    assert item.status == PENDING
    assert item.queued_on == TODAY


def test_entries_for_unknown_or_blocked_clients_are_dropped():
    gone = uuid.uuid4()
    blocked = stats(90, classification=BLOCKED)
    plan = build_reactivation_plan([blocked], {gone: entry(PENDING), blocked.client_id: entry(PENDING)}, TODAY, POLICY)
    assert sorted(plan.deletes, key=str) == sorted([gone, blocked.client_id], key=str)


def test_plan_is_idempotent_once_applied():
    st = stats(45)
    first = build_reactivation_plan([st], {}, TODAY, POLICY)
    stored = {i.client_id: SimpleNamespace(status=i.status, queued_on=i.queued_on) for i in first.upserts}
    second = build_reactivation_plan([st], stored, TODAY, POLICY)
    assert [(i.client_id, i.status, i.queued_on, i.days_inactive) for i in second.upserts] == \
           [(i.client_id, i.status, i.queued_on, i.days_inactive) for i in first.upserts]
    assert second.deletes == []
