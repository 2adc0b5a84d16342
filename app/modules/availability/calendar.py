"""
Weekly availability for one barber.

A WorkCalendar is built from the persisted rules (work hours, breaks, date
exceptions) and answers questions about a single calendar date. Times are
minutes past midnight; weekdays follow 0=Sunday..6=Saturday.
"""
import uuid
from dataclasses import dataclass, field
from datetime import date, time
from typing import Iterable

from app.modules.growth.errors import CalendarConfigError

MINUTES_PER_DAY = 24 * 60


def weekday_of(day: date) -> int:
    # date.weekday() is 0=Monday; rules are stored 0=Sunday
    return (day.weekday() + 1) % 7


def minute_of(t: time) -> int:
    return t.hour * 60 + t.minute


def time_of(minute: int) -> time:
    return time(minute // 60, minute % 60)


@dataclass(frozen=True, order=True)
class Window:
    start: int
    end: int

    def overlaps(self, start: int, end: int) -> bool:
        return start < self.end and end > self.start


@dataclass
class WorkCalendar:
    barber_id: uuid.UUID | None = None
    work_hours: dict[int, list[Window]] = field(default_factory=dict)
    breaks: dict[int, list[Window]] = field(default_factory=dict)
    closed_dates: set[date] = field(default_factory=set)

    @classmethod
    def from_rules(cls, barber_id: uuid.UUID | None, work_hours: Iterable, breaks: Iterable = (), exceptions: Iterable = ()) -> "WorkCalendar":
        cal = cls(barber_id=barber_id)
        for r in work_hours:
            cal.work_hours.setdefault(r.weekday, []).append(Window(r.start_minute, r.end_minute))
        for b in breaks:
            cal.breaks.setdefault(b.weekday, []).append(Window(b.start_minute, b.end_minute))
        for ex in exceptions:
            if ex.is_closed:
                cal.closed_dates.add(ex.exception_date)
        return cal

    def is_closed(self, day: date) -> bool:
        return day in self.closed_dates

    def windows_for(self, day: date) -> list[Window]:
        """Work windows for the date, sorted. Empty when closed or no rules.

        Raises CalendarConfigError when the weekday's rules are inverted or overlap.
        """
        if self.is_closed(day):
            return []
        weekday = weekday_of(day)
        windows = sorted(self.work_hours.get(weekday, []))
        _validate(self.barber_id, weekday, windows, what="work hours")
        return windows

    def breaks_for(self, day: date) -> list[Window]:
        weekday = weekday_of(day)
        windows = sorted(self.breaks.get(weekday, []))
        for w in windows:
            if not (0 <= w.start < w.end <= MINUTES_PER_DAY):
                raise CalendarConfigError(self.barber_id, weekday, f"invalid break {w.start}-{w.end}")
        return windows

    def is_available(self, day: date, start: int, length: int, honor_breaks: bool = True) -> bool:
        """True if [start, start+length) sits inside one work window and clear of breaks."""
        end = start + length
        if not any(w.start <= start and end <= w.end for w in self.windows_for(day)):
            return False
        if honor_breaks and any(b.overlaps(start, end) for b in self.breaks_for(day)):
            return False
        return True


def _validate(barber_id, weekday: int, windows: list[Window], what: str):
    prev: Window | None = None
    for w in windows:
        if not (0 <= w.start < w.end <= MINUTES_PER_DAY):
            raise CalendarConfigError(barber_id, weekday, f"invalid {what} {w.start}-{w.end}")
        if prev is not None and w.start < prev.end:
            raise CalendarConfigError(barber_id, weekday, f"overlapping {what} {prev.start}-{prev.end} and {w.start}-{w.end}")
        prev = w
