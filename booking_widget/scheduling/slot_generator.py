"""
Fixed-grid appointment slot generator.

Turns a contractor's weekly working hours and the bookings already on
their calendar into a per-day grid of candidate slots. Every slot boundary
is a whole number of slot lengths from the configured day start; there is
no search for smaller gaps between bookings.

Each slot is checked twice:
  - blocked: it overlaps a booking widened by the buffer on both sides
  - past cutoff: it starts before ``now + lead_time_hours``

A blocked slot is reported as ``booked`` even when it is also past cutoff.

The generator performs no I/O. Identical inputs and ``now`` always give
identical output.

Usage:
    generator = SlotGenerator(working_hours, GridPolicy(slot_duration_minutes=60,
                                                        buffer_minutes=30,
                                                        lead_time_hours=24,
                                                        tz=ZoneInfo("America/New_York")))
    days = generator.generate(date(2026, 10, 19), date(2026, 10, 23), bookings, now)
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Sequence
from zoneinfo import ZoneInfo

from booking_widget.schemas.availability_schema import DayAvailability, Slot, SlotReason
from booking_widget.schemas.booking_schema import ConfirmedBooking
from booking_widget.schemas.policy_schema import DAY_NAMES, WeeklyWorkingHours
from booking_widget.utils import format_time_display, minutes_to_time_string

logger = logging.getLogger(__name__)

DAY_ABBREVIATIONS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


@dataclass(frozen=True)
class GridPolicy:
    """The parts of a booking policy that shape the grid for one query."""

    slot_duration_minutes: int
    buffer_minutes: int
    lead_time_hours: int
    tz: ZoneInfo

    def __post_init__(self) -> None:
        if self.slot_duration_minutes <= 0:
            raise ValueError(
                f"slot_duration_minutes must be > 0, got {self.slot_duration_minutes}"
            )
        if self.buffer_minutes < 0:
            raise ValueError(f"buffer_minutes must be >= 0, got {self.buffer_minutes}")
        if self.lead_time_hours < 0:
            raise ValueError(f"lead_time_hours must be >= 0, got {self.lead_time_hours}")


@dataclass(frozen=True)
class BlockedInterval:
    """Minutes since local midnight occupied by a booking plus its buffer."""

    start: int
    end: int


def day_name_for(day: date) -> str:
    """Weekday key into WeeklyWorkingHours."""
    return DAY_NAMES[day.isoweekday() % 7]


def day_label_for(day: date) -> str:
    """Short label such as "Mon, Oct 19", independent of the process locale."""
    return f"{DAY_ABBREVIATIONS[day.weekday()]}, {MONTH_ABBREVIATIONS[day.month - 1]} {day.day}"


def ranges_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
    """Half-open overlap test. Touching intervals do not overlap."""
    return start1 < end2 and end1 > start2


def to_local(moment: datetime, tz: ZoneInfo) -> datetime:
    """Express an instant in the contractor's zone. Naive values are already local."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def local_instant(day: date, minutes: int, tz: ZoneInfo) -> datetime:
    """The UTC instant at which a local wall-clock time on ``day`` occurs."""
    local = datetime.combine(day, time(minutes // 60, minutes % 60), tzinfo=tz)
    return local.astimezone(timezone.utc)


class SlotGenerator:
    """Builds DayAvailability grids from working hours and confirmed bookings."""

    def __init__(self, working_hours: WeeklyWorkingHours, policy: GridPolicy) -> None:
        self._hours = working_hours
        self._policy = policy

    @property
    def policy(self) -> GridPolicy:
        return self._policy

    def cutoff(self, now: datetime) -> datetime:
        """Earliest bookable instant, in UTC."""
        return to_local(now, self._policy.tz).astimezone(timezone.utc) + timedelta(
            hours=self._policy.lead_time_hours
        )

    def blocked_interval(self, booking: ConfirmedBooking) -> BlockedInterval:
        """Booking span widened by the buffer on both sides."""
        local = to_local(booking.scheduled_date, self._policy.tz)
        start = local.hour * 60 + local.minute
        duration = booking.estimated_duration or self._policy.slot_duration_minutes
        buffer = self._policy.buffer_minutes
        return BlockedInterval(start=start - buffer, end=start + duration + buffer)

    def _bookings_by_day(
        self, bookings: Iterable[ConfirmedBooking]
    ) -> dict[date, list[BlockedInterval]]:
        by_day: dict[date, list[BlockedInterval]] = defaultdict(list)
        for booking in bookings:
            day = to_local(booking.scheduled_date, self._policy.tz).date()
            by_day[day].append(self.blocked_interval(booking))
        return by_day

    def generate(
        self,
        start_date: date,
        end_date: date,
        bookings: Sequence[ConfirmedBooking],
        now: datetime,
    ) -> dict[str, DayAvailability]:
        """Generate every day in ``[start_date, end_date]``, keyed by ISO date."""
        blocked_by_day = self._bookings_by_day(bookings)
        cutoff = self.cutoff(now)

        days: dict[str, DayAvailability] = {}
        current = start_date
        while current <= end_date:
            days[current.isoformat()] = self._generate_day(
                current, blocked_by_day.get(current, []), cutoff
            )
            current += timedelta(days=1)

        logger.debug(
            "Generated %d day(s) from %s to %s with %d booking(s)",
            len(days), start_date, end_date, len(bookings),
        )
        return days

    def generate_day(
        self, day: date, bookings: Sequence[ConfirmedBooking], now: datetime
    ) -> DayAvailability:
        """Generate a single day. Bookings on other days are ignored."""
        blocked = self._bookings_by_day(bookings).get(day, [])
        return self._generate_day(day, blocked, self.cutoff(now))

    def span_is_free(
        self,
        day: date,
        start_minutes: int,
        duration: int,
        bookings: Sequence[ConfirmedBooking],
    ) -> bool:
        """Whether ``[start, start + duration)`` on ``day`` clears every buffered booking.

        A job can run longer than one grid step, so a free slot does not
        guarantee the whole appointment fits.
        """
        end_minutes = start_minutes + duration
        return not any(
            ranges_overlap(start_minutes, end_minutes, b.start, b.end)
            for b in self._bookings_by_day(bookings).get(day, [])
        )

    def _generate_day(
        self, day: date, blocked: list[BlockedInterval], cutoff: datetime
    ) -> DayAvailability:
        day_name = day_name_for(day)
        hours = self._hours.for_day(day_name)

        if not hours.enabled:
            return DayAvailability(
                date=day, day_name=day_name, day_label=day_label_for(day)
            )

        step = self._policy.slot_duration_minutes
        day_end = hours.end_minutes
        slots: list[Slot] = []

        slot_start = hours.start_minutes
        while slot_start + step <= day_end:
            slot_end = slot_start + step

            is_blocked = any(
                ranges_overlap(slot_start, slot_end, b.start, b.end) for b in blocked
            )
            is_past_cutoff = local_instant(day, slot_start, self._policy.tz) < cutoff

            if is_blocked:
                reason = SlotReason.BOOKED
            elif is_past_cutoff:
                reason = SlotReason.PAST_CUTOFF
            else:
                reason = None

            start_str = minutes_to_time_string(slot_start)
            end_str = minutes_to_time_string(slot_end)
            slots.append(Slot(
                start=start_str,
                end=end_str,
                start_display=format_time_display(start_str),
                end_display=format_time_display(end_str),
                available=reason is None,
                reason=reason,
            ))
            slot_start = slot_end

        available_count = sum(1 for s in slots if s.available)
        return DayAvailability(
            date=day,
            day_name=day_name,
            day_label=day_label_for(day),
            slots=slots,
            available=available_count > 0,
            available_count=available_count,
        )
