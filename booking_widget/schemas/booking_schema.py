"""Job and booking data models."""

import re
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from pydantic import Field, field_validator

from booking_widget.schemas.base import WidgetModel

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class JobStatus(str, Enum):
    """Lifecycle status of a job owned by the jobs subsystem."""

    PENDING_CONFIRMATION = "pending_confirmation"
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Jobs in these states occupy the contractor's calendar.
BLOCKING_STATUSES: frozenset[JobStatus] = frozenset({
    JobStatus.SCHEDULED,
    JobStatus.CONFIRMED,
    JobStatus.ASSIGNED,
    JobStatus.IN_PROGRESS,
})

# Widget bookings awaiting contractor confirmation also hold their slot.
HOLDING_STATUSES: frozenset[JobStatus] = BLOCKING_STATUSES | {JobStatus.PENDING_CONFIRMATION}


class JobRecord(WidgetModel):
    """Raw job document as stored for a contractor."""

    id: Optional[str] = None
    scheduled_date: datetime
    estimated_duration: Optional[int] = Field(default=None, gt=0)
    status: JobStatus
    service_type: Optional[str] = None
    service_type_name: Optional[str] = None
    description: str = ""
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    service_address: Optional[str] = None
    confirmation_code: Optional[str] = None
    source: Optional[str] = None
    referral_source: Optional[str] = None

    @field_validator("scheduled_date")
    @classmethod
    def _require_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("scheduled_date must be timezone-aware")
        return value


class ConfirmedBooking(WidgetModel):
    """A job that blocks calendar time. The only booking type the generator accepts."""

    job_id: Optional[str] = None
    scheduled_date: datetime
    estimated_duration: Optional[int] = Field(default=None, gt=0)


def to_confirmed_bookings(
    jobs: Iterable[JobRecord],
    statuses: frozenset[JobStatus] = BLOCKING_STATUSES,
) -> list[ConfirmedBooking]:
    """Keep only jobs whose status occupies time and convert them."""
    return [
        ConfirmedBooking(
            job_id=job.id,
            scheduled_date=job.scheduled_date,
            estimated_duration=job.estimated_duration,
        )
        for job in jobs
        if job.status in statuses
    ]


class BookingRequest(WidgetModel):
    """Booking submitted from the widget."""

    contractor_id: str = Field(min_length=1)
    service_type: str = Field(min_length=1)
    date: str
    time: str
    customer_name: str = Field(min_length=1)
    customer_email: str
    customer_phone: Optional[str] = None
    service_address: Optional[str] = None
    description: Optional[str] = None
    referral_source: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date().isoformat()

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        return datetime.strptime(value.strip(), "%H:%M").strftime("%H:%M")

    @field_validator("customer_email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not EMAIL_RE.match(value):
            raise ValueError("Invalid email address")
        return value


class BookingResponse(WidgetModel):
    """Booking creation result."""

    success: bool
    message: str
    booking_id: Optional[str] = None
    confirmation_code: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    scheduled_time: Optional[str] = None
    service_type: Optional[str] = None
    company_name: Optional[str] = None
