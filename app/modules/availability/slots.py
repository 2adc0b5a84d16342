from datetime import date, time
from typing import Iterable

from app.modules.availability.calendar import WorkCalendar, minute_of, time_of

DEFAULT_SLOT_MINUTES = 30


def generate_slots(calendar: WorkCalendar, day: date, slot_minutes: int = DEFAULT_SLOT_MINUTES, honor_breaks: bool = True) -> list[time]:
    """Candidate start times for `day`.

    Each work window is walked from its own start in `slot_minutes` steps; a
    slot is offered only if the whole step fits before the window's end.
    Raises CalendarConfigError for inconsistent rules.
    """
    windows = calendar.windows_for(day)
    if not windows:
        return []
    breaks = calendar.breaks_for(day) if honor_breaks else []

    out: list[int] = []
    for w in windows:
        cur = w.start
        while cur + slot_minutes <= w.end:
            if not any(b.overlaps(cur, cur + slot_minutes) for b in breaks):
                out.append(cur)
            cur += slot_minutes
    return [time_of(m) for m in sorted(set(out))]


def busy_interval(start: time, duration_minutes: int) -> tuple[int, int]:
    """[start, end) in minutes held by a booking. A zero duration still holds its start minute."""
    begin = minute_of(start)
    return begin, begin + max(duration_minutes or 0, 1)


def resolve_open_slots(candidates: Iterable[time], bookings: Iterable[tuple[time, int]], slot_minutes: int = DEFAULT_SLOT_MINUTES) -> list[time]:
    """Candidates whose whole slot is clear of every booking, order preserved."""
    busy = [busy_interval(start, duration) for start, duration in bookings]
    out = []
    for t in candidates:
        s = minute_of(t)
        e = s + slot_minutes
        if not any(b < e and s < be for b, be in busy):
            out.append(t)
    return out
