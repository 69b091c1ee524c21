"""
Availability query surface for the booking widget.

Three read operations built on the slot generator:
  - get_available_slots: full slot map for a date range
  - check_slot_availability: one slot on one day
  - get_next_available_dates: quick-pick list of days with capacity

None of them raise for expected states. Disabled booking, unknown
contractors and unreachable stores come back as results with ``error`` set.
Availability is recomputed from fresh reads on every call.
"""

import asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from booking_widget.config import settings
from booking_widget.logging_context import get_contractor_logger, set_contractor_id
from booking_widget.scheduling import GridPolicy, SlotGenerator
from booking_widget.scheduling.slot_generator import local_instant, to_local
from booking_widget.schemas.availability_schema import (
    AvailabilityResponse,
    AvailableDate,
    NextAvailableDates,
    SlotCheckResult,
)
from booking_widget.schemas.booking_schema import (
    BLOCKING_STATUSES,
    ConfirmedBooking,
    JobStatus,
    to_confirmed_bookings,
)
from booking_widget.schemas.policy_schema import ContractorSettings
from booking_widget.tools.contractor_settings import get_booking_settings
from booking_widget.tools.stores import (
    ContractorStore,
    JobStore,
    StoreUnavailableError,
    job_store,
)

logger = get_contractor_logger(__name__)

BOOKING_DISABLED = "Online booking is not enabled"
SERVICE_NOT_ALLOWED = "Selected service type is not available for online booking"
TEMPORARILY_UNAVAILABLE = "Availability is temporarily unavailable"
DATE_NOT_AVAILABLE = "Date not available"
SLOT_NOT_FOUND = "Time slot not found"
INVALID_DURATION = "Duration must be a positive number of minutes"
INVALID_COUNT = "Count must be at least 1"


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def _refusal(contractor: ContractorSettings) -> Optional[str]:
    """Error to report when the contractor cannot take online bookings."""
    if contractor.error:
        return contractor.error
    if not contractor.policy.enabled:
        return BOOKING_DISABLED
    return None


def bookable_range(contractor: ContractorSettings, now: datetime) -> tuple[date, date]:
    """First and last contractor-local dates that may be queried."""
    local_now = to_local(now, contractor.zone)
    return (
        local_now.date(),
        (local_now + timedelta(days=contractor.policy.max_advance_days)).date(),
    )


async def load_bookings(
    contractor: ContractorSettings,
    start_date: date,
    end_date: date,
    jobs: JobStore,
    statuses: frozenset[JobStatus] = BLOCKING_STATUSES,
) -> list[ConfirmedBooking]:
    """Fetch bookings starting on any local day in ``[start_date, end_date]``."""
    tz = contractor.zone
    records = await asyncio.wait_for(
        jobs.list_jobs(
            contractor.contractor_id,
            local_instant(start_date, 0, tz),
            local_instant(end_date + timedelta(days=1), 0, tz),
            statuses,
        ),
        settings.store.fetch_timeout_sec,
    )
    return to_confirmed_bookings(records, statuses)


def build_generator(
    contractor: ContractorSettings, slot_duration: int
) -> SlotGenerator:
    policy = contractor.policy
    return SlotGenerator(
        contractor.working_hours,
        GridPolicy(
            slot_duration_minutes=slot_duration,
            buffer_minutes=policy.buffer_minutes,
            lead_time_hours=policy.lead_time_hours,
            tz=contractor.zone,
        ),
    )


async def _compute(
    contractor: ContractorSettings,
    start_date: date,
    end_date: date,
    slot_duration: int,
    now: datetime,
    jobs: JobStore,
) -> AvailabilityResponse:
    policy = contractor.policy
    first, last = bookable_range(contractor, now)
    start_date, end_date = max(start_date, first), min(end_date, last)

    response = AvailabilityResponse(
        success=True,
        contractor_id=contractor.contractor_id,
        start_date=start_date,
        end_date=end_date,
        slot_duration_minutes=slot_duration,
        lead_time_hours=policy.lead_time_hours,
        generated_at=datetime.now(timezone.utc),
    )
    if start_date > end_date:
        return response

    try:
        bookings = await load_bookings(contractor, start_date, end_date, jobs)
    except (StoreUnavailableError, asyncio.TimeoutError) as exc:
        logger.error(
            "Could not load bookings for %s: %s", contractor.contractor_id, exc
        )
        return AvailabilityResponse(
            contractor_id=contractor.contractor_id, error=TEMPORARILY_UNAVAILABLE
        )

    generator = build_generator(contractor, slot_duration)
    response.slots = generator.generate(start_date, end_date, bookings, now)
    return response


async def get_available_slots(
    contractor_id: str,
    start_date: date,
    end_date: date,
    service_type: Optional[str] = None,
    now: Optional[datetime] = None,
    contractors: Optional[ContractorStore] = None,
    jobs: Optional[JobStore] = None,
) -> AvailabilityResponse:
    """
    Slot map for every day in ``[start_date, end_date]``.

    The range is clamped to today .. today + max_advance_days in the
    contractor's zone. The grid step comes from the service's duration
    override when one is configured, otherwise the policy default.
    """
    set_contractor_id(contractor_id)
    contractor = await get_booking_settings(contractor_id, contractors)

    refusal = _refusal(contractor)
    if refusal:
        return AvailabilityResponse(contractor_id=contractor_id, error=refusal)
    if not contractor.policy.allows_service(service_type):
        return AvailabilityResponse(contractor_id=contractor_id, error=SERVICE_NOT_ALLOWED)

    return await _compute(
        contractor,
        start_date,
        end_date,
        contractor.policy.slot_duration_for(service_type),
        _now(now),
        jobs or job_store,
    )


async def check_slot_availability(
    contractor_id: str,
    date_str: str,
    time_str: str,
    duration: Optional[int] = None,
    now: Optional[datetime] = None,
    contractors: Optional[ContractorStore] = None,
    jobs: Optional[JobStore] = None,
) -> SlotCheckResult:
    """
    Check one slot. ``time_str`` must be a grid boundary; off-grid times are
    reported as not found rather than snapped. ``duration`` replaces the
    grid step for this check.
    """
    set_contractor_id(contractor_id)
    if duration is not None and duration <= 0:
        return SlotCheckResult(available=False, error=INVALID_DURATION)
    try:
        day = date.fromisoformat(date_str)
    except ValueError:
        return SlotCheckResult(available=False, error=DATE_NOT_AVAILABLE)

    contractor = await get_booking_settings(contractor_id, contractors)
    refusal = _refusal(contractor)
    if refusal:
        return SlotCheckResult(available=False, error=refusal)

    result = await _compute(
        contractor,
        day,
        day,
        duration or contractor.policy.slot_duration_minutes,
        _now(now),
        jobs or job_store,
    )
    if result.error:
        return SlotCheckResult(available=False, error=result.error)

    day_slots = result.slots.get(day.isoformat())
    if day_slots is None:
        return SlotCheckResult(available=False, error=DATE_NOT_AVAILABLE)

    slot = next((s for s in day_slots.slots if s.start == time_str), None)
    if slot is None:
        return SlotCheckResult(available=False, error=SLOT_NOT_FOUND)

    return SlotCheckResult(available=slot.available, reason=slot.reason, slot=slot)


async def get_next_available_dates(
    contractor_id: str,
    count: Optional[int] = None,
    now: Optional[datetime] = None,
    contractors: Optional[ContractorStore] = None,
    jobs: Optional[JobStore] = None,
) -> NextAvailableDates:
    """The first ``count`` days between the lead-time cutoff and the advance window with free slots."""
    set_contractor_id(contractor_id)
    if count is None:
        count = settings.query.next_available_count
    if count < 1:
        return NextAvailableDates(error=INVALID_COUNT)
    now = _now(now)

    contractor = await get_booking_settings(contractor_id, contractors)
    refusal = _refusal(contractor)
    if refusal:
        return NextAvailableDates(error=refusal)

    policy = contractor.policy
    local_now = to_local(now, contractor.zone)
    start_date = (local_now + timedelta(hours=policy.lead_time_hours)).date()
    end_date = (local_now + timedelta(days=policy.max_advance_days)).date()

    result = await _compute(
        contractor,
        start_date,
        end_date,
        policy.slot_duration_minutes,
        now,
        jobs or job_store,
    )
    if result.error:
        return NextAvailableDates(error=result.error)

    dates = [
        AvailableDate(
            date=day.date,
            day_label=day.day_label,
            available_slots=day.available_count,
        )
        for day in sorted(result.slots.values(), key=lambda d: d.date)
        if day.available
    ]
    return NextAvailableDates(dates=dates[:count])
