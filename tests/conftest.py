"""Shared test fixtures and helpers."""

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

import pytest

from booking_widget.scheduling import GridPolicy, SlotGenerator
from booking_widget.schemas.booking_schema import ConfirmedBooking, JobRecord, JobStatus
from booking_widget.schemas.policy_schema import default_working_hours
from booking_widget.tools import stores
from booking_widget.tools.rate_limit import booking_limiter

TZ = ZoneInfo("America/New_York")
CONTRACTOR_ID = "contractor-1"

# Week of Monday 2026-10-19.
SATURDAY_BEFORE = (2026, 10, 17)
MONDAY = (2026, 10, 19)
TUESDAY = (2026, 10, 20)
WEDNESDAY = (2026, 10, 21)


def local(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Timezone-aware wall-clock time in the test contractor's zone."""
    return datetime(year, month, day, hour, minute, tzinfo=TZ)


def make_generator(
    slot_duration: int = 60,
    buffer: int = 30,
    lead_time_hours: int = 24,
    working_hours=None,
) -> SlotGenerator:
    return SlotGenerator(
        working_hours or default_working_hours(),
        GridPolicy(
            slot_duration_minutes=slot_duration,
            buffer_minutes=buffer,
            lead_time_hours=lead_time_hours,
            tz=TZ,
        ),
    )


def make_booking(when: datetime, duration: Optional[int] = 60) -> ConfirmedBooking:
    return ConfirmedBooking(scheduled_date=when, estimated_duration=duration)


def make_job(
    when: datetime,
    duration: Optional[int] = 60,
    status: JobStatus = JobStatus.SCHEDULED,
) -> JobRecord:
    return JobRecord(scheduled_date=when, estimated_duration=duration, status=status)


def make_contractor(
    enabled: bool = True,
    working_hours: Optional[dict] = None,
    timezone: str = "America/New_York",
    service_types: Optional[list] = None,
    **policy,
) -> dict:
    """Contractor document in its stored camelCase shape."""
    document = {
        "businessName": "Reliable Home Services",
        "timezone": timezone,
        "bookingWidget": {"enabled": enabled, **policy},
        "serviceTypes": service_types or [],
    }
    if working_hours is not None:
        document["scheduling"] = {"workingHours": working_hours}
    return document


@pytest.fixture(autouse=True)
def reset_stores():
    stores.reset()
    booking_limiter.reset()
    yield
    stores.reset()
    booking_limiter.reset()


@pytest.fixture
def contractor_store():
    return stores.contractor_store


@pytest.fixture
def job_store():
    return stores.job_store


@pytest.fixture
def enabled_contractor(contractor_store):
    contractor_store.put(
        CONTRACTOR_ID,
        make_contractor(leadTimeHours=24, slotDurationMinutes=60, bufferMinutes=30),
    )
    return CONTRACTOR_ID
