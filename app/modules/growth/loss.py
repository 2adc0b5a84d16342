from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from app.modules.growth.policy import GrowthPolicy

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class LossEstimate:
    empty_slots: int
    cancellations: int
    no_shows: int
    estimated_loss: Decimal
    cancel_rate: float
    is_critical: bool

    @property
    def has_signal(self) -> bool:
        return (self.empty_slots + self.cancellations + self.no_shows) > 0


def estimate_loss(empty_slots: int, cancellations: int, no_shows: int, total_appointments: int, avg_price: Decimal, policy: GrowthPolicy) -> LossEstimate:
    lost_units = empty_slots + cancellations + no_shows
    loss = (Decimal(lost_units) * Decimal(avg_price)).quantize(CENTS, rounding=ROUND_HALF_UP)
    rate = cancellations / total_appointments if total_appointments > 0 else 0.0
    critical = rate > policy.critical_cancel_rate or empty_slots > policy.critical_empty_slots
    return LossEstimate(
        empty_slots=empty_slots,
        cancellations=cancellations,
        no_shows=no_shows,
        estimated_loss=loss,
        cancel_rate=rate,
        is_critical=critical,
    )
