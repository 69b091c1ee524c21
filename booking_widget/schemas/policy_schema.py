"""Contractor booking policy and weekly working-hours models."""

from typing import Any, Optional
from zoneinfo import ZoneInfo

from pydantic import Field, field_validator, model_validator

from booking_widget.schemas.base import WidgetModel
from booking_widget.utils import parse_time_to_minutes

# Index matches date.isoweekday() % 7 (Sunday first).
DAY_NAMES: tuple[str, ...] = (
    "sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday",
)

# (enabled, start, end) per weekday; materialized into fresh models on every read.
_WORKING_HOURS_TEMPLATE: dict[str, tuple[bool, str, str]] = {
    "monday": (True, "08:00", "17:00"),
    "tuesday": (True, "08:00", "17:00"),
    "wednesday": (True, "08:00", "17:00"),
    "thursday": (True, "08:00", "17:00"),
    "friday": (True, "08:00", "17:00"),
    "saturday": (False, "09:00", "14:00"),
    "sunday": (False, "09:00", "14:00"),
}


class DayHours(WidgetModel):
    """Open/closed window for one weekday, in contractor-local time."""

    enabled: bool = False
    start: str = "09:00"
    end: str = "17:00"

    @field_validator("start", "end")
    @classmethod
    def _check_time(cls, value: str) -> str:
        parse_time_to_minutes(value)
        return value.strip()

    @property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return parse_time_to_minutes(self.end)


class WeeklyWorkingHours(WidgetModel):
    """Recurring weekly schedule. A weekday absent from stored data is closed."""

    sunday: DayHours = Field(default_factory=DayHours)
    monday: DayHours = Field(default_factory=DayHours)
    tuesday: DayHours = Field(default_factory=DayHours)
    wednesday: DayHours = Field(default_factory=DayHours)
    thursday: DayHours = Field(default_factory=DayHours)
    friday: DayHours = Field(default_factory=DayHours)
    saturday: DayHours = Field(default_factory=DayHours)

    def for_day(self, day_name: str) -> DayHours:
        return getattr(self, day_name)


def default_working_hours() -> WeeklyWorkingHours:
    """Build a new copy of the default Mon-Fri 08:00-17:00 schedule."""
    return WeeklyWorkingHours(**{
        day: DayHours(enabled=enabled, start=start, end=end)
        for day, (enabled, start, end) in _WORKING_HOURS_TEMPLATE.items()
    })


class Customization(WidgetModel):
    """Display-only widget styling."""

    primary_color: str = "#10b981"
    button_text: str = "Book Now"
    header_text: str = "Schedule Service"


class BookingPolicy(WidgetModel):
    """Per-contractor booking rules. Every field has an onboarding default."""

    enabled: bool = False
    lead_time_hours: int = Field(default=24, ge=0)
    max_advance_days: int = Field(default=30, ge=0)
    slot_duration_minutes: int = Field(default=60, gt=0)
    service_durations: dict[str, int] = Field(default_factory=dict)
    buffer_minutes: int = Field(default=30, ge=0)
    allowed_services: list[str] = Field(default_factory=list)
    require_phone: bool = True
    require_address: bool = True
    customization: Customization = Field(default_factory=Customization)

    @field_validator("service_durations")
    @classmethod
    def _check_service_durations(cls, value: dict[str, int]) -> dict[str, int]:
        for service, minutes in value.items():
            if minutes <= 0:
                raise ValueError(f"duration for {service!r} must be > 0, got {minutes}")
        return value

    def slot_duration_for(self, service_type: Optional[str] = None) -> int:
        """Grid step for a query, honouring a per-service override."""
        if service_type and service_type in self.service_durations:
            return self.service_durations[service_type]
        return self.slot_duration_minutes

    def allows_service(self, service_type: Optional[str]) -> bool:
        if not service_type or not self.allowed_services:
            return True
        return service_type in self.allowed_services


class ServiceType(WidgetModel):
    """A service the contractor offers, as listed in the contractor document."""

    id: str
    name: str
    duration: Optional[int] = Field(default=None, gt=0)

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            data.setdefault("id", data.get("value"))
            data.setdefault("name", data.get("label") or data.get("id"))
        return data


class ContractorSettings(WidgetModel):
    """Fully-populated view of a contractor's booking configuration.

    ``error`` is set when the contractor could not be loaded; the rest of the
    fields then hold defaults and the contractor must not be treated as
    bookable.
    """

    contractor_id: str
    policy: BookingPolicy = Field(default_factory=BookingPolicy)
    working_hours: WeeklyWorkingHours = Field(default_factory=default_working_hours)
    service_types: list[ServiceType] = Field(default_factory=list)
    timezone: str
    business_name: Optional[str] = None
    logo_url: Optional[str] = None
    service_area: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_bookable(self) -> bool:
        return self.error is None and self.policy.enabled

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def duration_for(self, service_type: Optional[str] = None) -> int:
        """Appointment length for a service: policy override, then catalog, then default."""
        if service_type and service_type in self.policy.service_durations:
            return self.policy.service_durations[service_type]
        for service in self.service_types:
            if service.id == service_type and service.duration:
                return service.duration
        return self.policy.slot_duration_minutes
