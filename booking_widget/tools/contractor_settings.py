"""
Contractor booking settings accessor.

Reads the contractor document and normalizes it into ContractorSettings.
Lookups never raise: an unknown contractor, unreadable settings or an
unreachable store all yield the default settings with ``error`` set, so the
widget can always render something for any contractor id.
"""

import asyncio
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ValidationError

from booking_widget.config import settings
from booking_widget.logging_context import get_contractor_logger
from booking_widget.schemas.policy_schema import (
    DAY_NAMES,
    BookingPolicy,
    ContractorSettings,
    DayHours,
    ServiceType,
    WeeklyWorkingHours,
    default_working_hours,
)
from booking_widget.tools.stores import ContractorStore, StoreUnavailableError, contractor_store

logger = get_contractor_logger(__name__)

CONTRACTOR_NOT_FOUND = "Contractor not found"
INVALID_SETTINGS = "Invalid booking settings"
SETTINGS_UNAVAILABLE = "Booking settings unavailable"


def _drop_nulls(data: dict) -> dict:
    """Treat explicit nulls in stored documents as missing fields."""
    return {key: value for key, value in data.items() if value is not None}


def _mapping(value: Any, field_name: str) -> dict:
    """A stored sub-document. Missing or null is empty, anything else must be an object."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"{field_name} must be an object, got {type(value).__name__}")
    return value


def _resolve_timezone(name: Any) -> str:
    fallback = settings.widget.default_timezone
    if not name:
        return fallback
    if isinstance(name, str):
        try:
            ZoneInfo(name)
            return name
        except (ZoneInfoNotFoundError, ValueError):
            pass
    logger.warning("Unknown timezone %r, falling back to %s", name, fallback)
    return fallback


def _parse_working_hours(raw: dict) -> WeeklyWorkingHours:
    if not raw:
        return default_working_hours()
    return WeeklyWorkingHours(**{
        day: DayHours.model_validate(_drop_nulls(raw[day]))
        for day in DAY_NAMES
        if isinstance(raw.get(day), dict)
    })


def default_settings(contractor_id: str, error: Optional[str] = None) -> ContractorSettings:
    """Fresh default settings, optionally annotated with an error."""
    return ContractorSettings(
        contractor_id=contractor_id,
        timezone=settings.widget.default_timezone,
        error=error,
    )


def parse_contractor_document(contractor_id: str, document: dict) -> ContractorSettings:
    """Normalize a stored contractor document. Raises ValidationError or TypeError on bad data."""
    document = _mapping(document, "contractor document")
    widget = _drop_nulls(_mapping(document.get("bookingWidget"), "bookingWidget"))
    scheduling = _mapping(document.get("scheduling"), "scheduling")
    service_types = document.get("serviceTypes") or []
    if not isinstance(service_types, list):
        raise TypeError(f"serviceTypes must be a list, got {type(service_types).__name__}")
    return ContractorSettings(
        contractor_id=contractor_id,
        policy=BookingPolicy.model_validate(widget),
        working_hours=_parse_working_hours(
            _mapping(scheduling.get("workingHours"), "workingHours")
        ),
        service_types=[ServiceType.model_validate(st) for st in service_types],
        timezone=_resolve_timezone(document.get("timezone")),
        business_name=document.get("businessName") or document.get("companyName"),
        logo_url=document.get("logoUrl"),
        service_area=document.get("serviceArea"),
    )


async def get_booking_settings(
    contractor_id: str, store: Optional[ContractorStore] = None
) -> ContractorSettings:
    """Fetch and normalize a contractor's booking settings."""
    store = store or contractor_store
    try:
        document = await asyncio.wait_for(
            store.get_contractor(contractor_id), settings.store.fetch_timeout_sec
        )
    except (StoreUnavailableError, asyncio.TimeoutError) as exc:
        logger.error("Could not load settings for %s: %s", contractor_id, exc)
        return default_settings(contractor_id, SETTINGS_UNAVAILABLE)

    if document is None:
        logger.info("Contractor %s not found, using defaults", contractor_id)
        return default_settings(contractor_id, CONTRACTOR_NOT_FOUND)

    try:
        return parse_contractor_document(contractor_id, document)
    except (ValidationError, TypeError) as exc:
        logger.warning("Invalid booking settings for %s: %s", contractor_id, exc)
        return default_settings(contractor_id, INVALID_SETTINGS)


async def update_booking_settings(
    contractor_id: str,
    policy: BookingPolicy,
    store: Optional[ContractorStore] = None,
) -> None:
    """Replace a contractor's booking policy. Store errors propagate."""
    store = store or contractor_store
    await store.update_contractor(
        contractor_id, {"bookingWidget": policy.model_dump(by_alias=True)}
    )
    logger.info(
        "Booking settings updated for %s (enabled=%s)", contractor_id, policy.enabled
    )
