"""Tests for widget booking creation."""

import asyncio

import pytest

from booking_widget.schemas.booking_schema import BookingRequest, JobStatus
from booking_widget.tools.availability import (
    BOOKING_DISABLED,
    DATE_NOT_AVAILABLE,
    SERVICE_NOT_ALLOWED,
    SLOT_NOT_FOUND,
    TEMPORARILY_UNAVAILABLE,
)
from booking_widget.tools.booking import (
    CONFIRMATION_ALPHABET,
    RATE_LIMITED,
    SLOT_TAKEN,
    SLOT_TOO_SOON,
    create_booking,
    generate_confirmation_code,
)
from booking_widget.tools.rate_limit import SlidingWindowRateLimiter
from tests.conftest import (
    CONTRACTOR_ID,
    MONDAY,
    SATURDAY_BEFORE,
    TUESDAY,
    local,
    make_contractor,
    make_job,
)

SAT_NOW = local(*SATURDAY_BEFORE, 10, 0)


def _request(**overrides) -> dict:
    payload = {
        "contractorId": CONTRACTOR_ID,
        "serviceType": "plumbing",
        "date": "2026-10-19",
        "time": "10:00",
        "customerName": "Jane Doe",
        "customerEmail": "Jane.Doe@Example.com",
        "customerPhone": "(555) 123-4567",
        "serviceAddress": "42 Oak Avenue",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def bookable(contractor_store):
    contractor_store.put(
        CONTRACTOR_ID,
        make_contractor(
            allowedServices=["plumbing", "hvac"],
            service_types=[{"id": "plumbing", "name": "Plumbing Service", "duration": 90}],
        ),
    )
    return CONTRACTOR_ID


class TestCreateBooking:
    @pytest.mark.asyncio
    async def test_happy_path(self, bookable, job_store):
        result = await create_booking(_request(), now=SAT_NOW)
        assert result.success, result.message
        assert len(result.confirmation_code) == 6
        assert result.scheduled_time == "10:00"
        assert result.service_type == "Plumbing Service"
        assert result.company_name == "Reliable Home Services"

        job = job_store.get_job(bookable, result.booking_id)
        assert job.status == JobStatus.PENDING_CONFIRMATION
        assert job.scheduled_date == local(*MONDAY, 10, 0)
        assert job.estimated_duration == 90
        assert job.customer_email == "jane.doe@example.com"
        assert job.customer_phone == "+15551234567"
        assert job.source == "booking_widget"

    @pytest.mark.asyncio
    async def test_accepts_request_model(self, bookable):
        request = BookingRequest.model_validate(_request(time="9:00"))
        assert request.time == "09:00"
        result = await create_booking(request, now=SAT_NOW)
        assert result.success

    @pytest.mark.asyncio
    async def test_same_slot_cannot_be_booked_twice(self, bookable):
        first = await create_booking(_request(), now=SAT_NOW)
        second = await create_booking(_request(customerEmail="other@example.com"), now=SAT_NOW)
        assert first.success
        assert not second.success
        assert second.message == SLOT_TAKEN

    @pytest.mark.asyncio
    async def test_concurrent_requests_for_one_slot(self, bookable):
        results = await asyncio.gather(*[
            create_booking(_request(customerName=f"Customer {i}"), now=SAT_NOW)
            for i in range(5)
        ])
        assert sum(r.success for r in results) == 1
        assert {r.message for r in results if not r.success} == {SLOT_TAKEN}

    @pytest.mark.asyncio
    async def test_existing_job_blocks(self, bookable, job_store):
        job_store.put(bookable, make_job(local(*MONDAY, 11, 0), 60, JobStatus.ASSIGNED))
        result = await create_booking(_request(), now=SAT_NOW)
        assert result.message == SLOT_TAKEN


class TestValidation:
    @pytest.mark.asyncio
    async def test_missing_fields(self, bookable):
        payload = _request()
        del payload["customerEmail"]
        result = await create_booking(payload, now=SAT_NOW)
        assert not result.success
        assert "Missing required fields" in result.message
        assert "customerEmail" in result.message

    @pytest.mark.asyncio
    async def test_invalid_email(self, bookable):
        result = await create_booking(_request(customerEmail="not-an-email"), now=SAT_NOW)
        assert not result.success
        assert "email" in result.message.lower()

    @pytest.mark.asyncio
    async def test_phone_required(self, bookable):
        result = await create_booking(_request(customerPhone=None), now=SAT_NOW)
        assert result.message == "Phone number is required"

    @pytest.mark.asyncio
    async def test_phone_too_short(self, bookable):
        result = await create_booking(_request(customerPhone="12345"), now=SAT_NOW)
        assert result.message == "Invalid phone number"

    @pytest.mark.asyncio
    async def test_address_required(self, bookable):
        result = await create_booking(_request(serviceAddress="  "), now=SAT_NOW)
        assert result.message == "Service address is required"

    @pytest.mark.asyncio
    async def test_optional_contact_fields(self, contractor_store):
        contractor_store.put(
            CONTRACTOR_ID, make_contractor(requirePhone=False, requireAddress=False)
        )
        result = await create_booking(
            _request(customerPhone=None, serviceAddress=None), now=SAT_NOW
        )
        assert result.success

    @pytest.mark.asyncio
    async def test_service_not_allowed(self, bookable):
        result = await create_booking(_request(serviceType="roofing"), now=SAT_NOW)
        assert result.message == SERVICE_NOT_ALLOWED

    @pytest.mark.asyncio
    async def test_booking_disabled(self, contractor_store):
        contractor_store.put(CONTRACTOR_ID, make_contractor(enabled=False))
        result = await create_booking(_request(), now=SAT_NOW)
        assert result.message == BOOKING_DISABLED


class TestSlotRules:
    @pytest.mark.asyncio
    async def test_off_grid_time(self, bookable):
        result = await create_booking(_request(time="10:15"), now=SAT_NOW)
        assert result.message == SLOT_NOT_FOUND

    @pytest.mark.asyncio
    async def test_inside_lead_time(self, bookable):
        now = local(*MONDAY, 7, 0)
        result = await create_booking(_request(), now=now)
        assert result.message == SLOT_TOO_SOON

    @pytest.mark.asyncio
    async def test_beyond_advance_window(self, bookable):
        result = await create_booking(_request(date="2027-02-01"), now=SAT_NOW)
        assert result.message == DATE_NOT_AVAILABLE

    @pytest.mark.asyncio
    async def test_store_unavailable(self, bookable, job_store):
        job_store.available = False
        result = await create_booking(_request(), now=SAT_NOW)
        assert result.message == TEMPORARILY_UNAVAILABLE


class TestConfirmationCode:
    def test_code_alphabet(self):
        for _ in range(20):
            code = generate_confirmation_code()
            assert len(code) == 6
            assert set(code) <= set(CONFIRMATION_ALPHABET)


class TestJobLength:
    @pytest.fixture
    def long_service(self, contractor_store):
        contractor_store.put(
            CONTRACTOR_ID,
            make_contractor(
                bufferMinutes=0,
                service_types=[{"id": "plumbing", "name": "Plumbing Service", "duration": 90}],
            ),
        )
        return CONTRACTOR_ID

    @pytest.mark.asyncio
    async def test_job_longer_than_slot_cannot_run_into_next_job(self, long_service, job_store):
        job_store.put(long_service, make_job(local(*MONDAY, 11, 0), 60))
        # The 10:00 grid slot is free, but a 90-minute job would run to 11:30.
        result = await create_booking(_request(), now=SAT_NOW)
        assert not result.success
        assert result.message == SLOT_TAKEN
        jobs = await job_store.list_jobs(
            long_service, local(*MONDAY), local(*TUESDAY), frozenset(JobStatus)
        )
        assert len(jobs) == 1

    @pytest.mark.asyncio
    async def test_job_that_fits_before_next_job(self, long_service, job_store):
        job_store.put(long_service, make_job(local(*MONDAY, 11, 0), 60))
        result = await create_booking(_request(time="09:00"), now=SAT_NOW)
        assert result.success, result.message
        assert job_store.get_job(long_service, result.booking_id).estimated_duration == 90


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_limits_per_client(self, bookable):
        limiter = SlidingWindowRateLimiter(limit=2, window_sec=3600)
        times = ["08:00", "11:00", "14:00"]
        results = [
            await create_booking(_request(time=t), now=SAT_NOW, client_key="203.0.113.7", limiter=limiter)
            for t in times
        ]
        assert [r.success for r in results] == [True, True, False]
        assert results[2].message == RATE_LIMITED

        other = await create_booking(
            _request(time="14:00"), now=SAT_NOW, client_key="198.51.100.2", limiter=limiter
        )
        assert other.success

    @pytest.mark.asyncio
    async def test_failed_attempts_count(self, bookable):
        limiter = SlidingWindowRateLimiter(limit=1, window_sec=3600)
        first = await create_booking({}, client_key="203.0.113.7", limiter=limiter)
        assert "Missing required fields" in first.message
        second = await create_booking(_request(), now=SAT_NOW, client_key="203.0.113.7", limiter=limiter)
        assert second.message == RATE_LIMITED
