import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping

from app.modules.appointments.models import COMPLETED, CANCELLED, NO_SHOW


@dataclass
class ScoreStats:
    barber_id: uuid.UUID
    total_appointments: int = 0
    completed_appointments: int = 0
    canceled_appointments: int = 0
    no_show_clients: int = 0
    revenue: Decimal = Decimal("0.00")
    cancel_rate: float = 0.0
    score: int = 0


def score_of(total: int, completed: int, cancelled: int, no_show: int) -> int:
    if total <= 0:
        return 0
    raw = 100 * completed / total - 50 * no_show / total - 25 * cancelled / total
    return max(0, min(100, round(raw)))


def compute_barber_scores(barber_ids: Iterable[uuid.UUID], appointments: Iterable, prices: Mapping[uuid.UUID, Decimal]) -> list[ScoreStats]:
    scores = {bid: ScoreStats(barber_id=bid) for bid in barber_ids}
    for a in appointments:
        st = scores.get(a.barber_id)
        if st is None:
            continue
        st.total_appointments += 1
        if a.status == COMPLETED:
            st.completed_appointments += 1
            st.revenue += prices.get(a.service_id, Decimal("0.00"))
        elif a.status == CANCELLED:
            st.canceled_appointments += 1
        elif a.status == NO_SHOW:
            st.no_show_clients += 1

    out = []
    for bid in sorted(scores, key=str):
        st = scores[bid]
        if st.total_appointments:
            st.cancel_rate = st.canceled_appointments / st.total_appointments
        st.score = score_of(st.total_appointments, st.completed_appointments, st.canceled_appointments, st.no_show_clients)
        st.revenue = Decimal(st.revenue).quantize(Decimal("0.01"))
        out.append(st)
    return out
