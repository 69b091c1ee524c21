"""
Widget booking creation.

Validates a customer's booking request against the contractor's policy and
writes a new job in ``pending_confirmation``. The slot is re-checked inside
the job store's per-contractor transaction, so two customers racing for the
same slot cannot both succeed.
"""

import asyncio
import secrets
from datetime import date, datetime, timezone
from typing import Optional, Union

from pydantic import ValidationError

from booking_widget.logging_context import get_contractor_logger, set_contractor_id
from booking_widget.scheduling.slot_generator import local_instant
from booking_widget.schemas.availability_schema import SlotReason
from booking_widget.schemas.booking_schema import (
    HOLDING_STATUSES,
    BookingRequest,
    BookingResponse,
    JobRecord,
    JobStatus,
)
from booking_widget.tools.availability import (
    BOOKING_DISABLED,
    DATE_NOT_AVAILABLE,
    SERVICE_NOT_ALLOWED,
    SLOT_NOT_FOUND,
    TEMPORARILY_UNAVAILABLE,
    bookable_range,
    build_generator,
    load_bookings,
)
from booking_widget.tools.contractor_settings import get_booking_settings
from booking_widget.tools.rate_limit import SlidingWindowRateLimiter, booking_limiter
from booking_widget.tools.stores import (
    ContractorStore,
    JobStore,
    StoreUnavailableError,
    job_store,
)
from booking_widget.utils import format_phone_e164, normalize_phone, parse_time_to_minutes

logger = get_contractor_logger(__name__)

CONFIRMATION_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CONFIRMATION_CODE_LENGTH = 6
MIN_PHONE_DIGITS = 10

SLOT_TAKEN = "This time slot is no longer available. Please select a different time."
SLOT_TOO_SOON = "This time slot is too soon to book online. Please select a later time."
BOOKING_CONFIRMED = "Booking confirmed! You will receive an email confirmation shortly."
RATE_LIMITED = "Too many booking requests. Please try again later."


def generate_confirmation_code() -> str:
    """Six characters without look-alike letters or digits."""
    return "".join(
        secrets.choice(CONFIRMATION_ALPHABET) for _ in range(CONFIRMATION_CODE_LENGTH)
    )


def _failure(message: str) -> BookingResponse:
    return BookingResponse(success=False, message=message)


def _validation_message(exc: ValidationError) -> str:
    missing = [
        ".".join(str(part) for part in err["loc"])
        for err in exc.errors()
        if err["type"] in ("missing", "string_too_short")
    ]
    if missing:
        return f"Missing required fields: {', '.join(missing)}."
    first = exc.errors()[0]
    field_name = ".".join(str(part) for part in first["loc"])
    return f"Invalid {field_name}: {first['msg']}"


async def create_booking(
    request: Union[BookingRequest, dict],
    now: Optional[datetime] = None,
    contractors: Optional[ContractorStore] = None,
    jobs: Optional[JobStore] = None,
    client_key: Optional[str] = None,
    limiter: Optional[SlidingWindowRateLimiter] = None,
) -> BookingResponse:
    """Create a job for a widget booking if the requested slot is still free.

    ``client_key`` identifies the caller (usually its IP address) for rate
    limiting. Requests without a key are not limited.
    """
    if client_key is not None:
        allowed, _ = (limiter or booking_limiter).check(client_key)
        if not allowed:
            return _failure(RATE_LIMITED)

    if not isinstance(request, BookingRequest):
        try:
            request = BookingRequest.model_validate(request)
        except ValidationError as exc:
            return _failure(_validation_message(exc))

    set_contractor_id(request.contractor_id)
    jobs = jobs or job_store
    now = now or datetime.now(timezone.utc)

    contractor = await get_booking_settings(request.contractor_id, contractors)
    if contractor.error:
        return _failure(contractor.error)
    policy = contractor.policy
    if not policy.enabled:
        return _failure(BOOKING_DISABLED)

    phone = (request.customer_phone or "").strip()
    if policy.require_phone and not phone:
        return _failure("Phone number is required")
    if phone and len(normalize_phone(phone).lstrip("+")) < MIN_PHONE_DIGITS:
        return _failure("Invalid phone number")
    address = (request.service_address or "").strip()
    if policy.require_address and not address:
        return _failure("Service address is required")
    if not policy.allows_service(request.service_type):
        return _failure(SERVICE_NOT_ALLOWED)

    day = date.fromisoformat(request.date)
    first, last = bookable_range(contractor, now)
    if not first <= day <= last:
        return _failure(DATE_NOT_AVAILABLE)

    generator = build_generator(contractor, policy.slot_duration_for(request.service_type))
    service = next((s for s in contractor.service_types if s.id == request.service_type), None)

    try:
        async with jobs.transaction(request.contractor_id):
            holding = await load_bookings(contractor, day, day, jobs, HOLDING_STATUSES)
            day_slots = generator.generate_day(day, holding, now)
            slot = next((s for s in day_slots.slots if s.start == request.time), None)
            if slot is None:
                return _failure(SLOT_NOT_FOUND)
            if slot.reason == SlotReason.BOOKED:
                logger.info(
                    "Rejected booking for %s %s: slot taken", request.date, request.time
                )
                return _failure(SLOT_TAKEN)
            if slot.reason == SlotReason.PAST_CUTOFF:
                return _failure(SLOT_TOO_SOON)

            start_minutes = parse_time_to_minutes(request.time)
            duration = contractor.duration_for(request.service_type)
            if not generator.span_is_free(day, start_minutes, duration, holding):
                logger.info(
                    "Rejected booking for %s %s: %d-minute job overlaps another",
                    request.date, request.time, duration,
                )
                return _failure(SLOT_TAKEN)

            code = generate_confirmation_code()
            scheduled = local_instant(day, start_minutes, contractor.zone).astimezone(
                contractor.zone
            )
            job = JobRecord(
                scheduled_date=scheduled,
                estimated_duration=duration,
                status=JobStatus.PENDING_CONFIRMATION,
                service_type=request.service_type,
                service_type_name=service.name if service else request.service_type,
                description=request.description or "",
                customer_name=request.customer_name.strip(),
                customer_email=request.customer_email,
                customer_phone=format_phone_e164(phone) if phone else None,
                service_address=address or None,
                confirmation_code=code,
                source="booking_widget",
                referral_source=request.referral_source,
            )
            job_id = await jobs.add_job(request.contractor_id, job)
    except (StoreUnavailableError, asyncio.TimeoutError) as exc:
        logger.error("Could not create booking for %s: %s", request.contractor_id, exc)
        return _failure(TEMPORARILY_UNAVAILABLE)

    logger.info(
        "Booking created: job %s (%s) on %s at %s",
        job_id, code, request.date, request.time,
    )
    return BookingResponse(
        success=True,
        message=BOOKING_CONFIRMED,
        booking_id=job_id,
        confirmation_code=code,
        scheduled_date=scheduled,
        scheduled_time=request.time,
        service_type=job.service_type_name,
        company_name=contractor.business_name or "Service Provider",
    )
