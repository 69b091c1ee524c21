"""Slot grid and availability query result models."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from booking_widget.schemas.base import WidgetModel


class SlotReason(str, Enum):
    """Why a slot cannot be booked."""

    BOOKED = "booked"
    PAST_CUTOFF = "past_cutoff"


class Slot(WidgetModel):
    """One fixed-width candidate appointment on the grid."""

    start: str
    end: str
    start_display: str
    end_display: str
    available: bool
    reason: Optional[SlotReason] = None

    @model_validator(mode="after")
    def _reason_matches_availability(self) -> "Slot":
        if self.available != (self.reason is None):
            raise ValueError("reason must be set exactly when the slot is unavailable")
        return self


class DayAvailability(WidgetModel):
    """All slots for a single calendar day plus a rollup."""

    date: date
    day_name: str
    day_label: str
    slots: list[Slot] = Field(default_factory=list)
    available: bool = False
    available_count: int = 0


class AvailabilityResponse(WidgetModel):
    """Result of a range query. ``error`` is set for expected refusals."""

    success: bool = False
    contractor_id: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    slot_duration_minutes: Optional[int] = None
    lead_time_hours: Optional[int] = None
    slots: dict[str, DayAvailability] = Field(default_factory=dict)
    generated_at: Optional[datetime] = None
    error: Optional[str] = None


class SlotCheckResult(WidgetModel):
    """Result of a single-slot availability check."""

    available: bool
    reason: Optional[SlotReason] = None
    slot: Optional[Slot] = None
    error: Optional[str] = None


class AvailableDate(WidgetModel):
    """Quick-pick summary of a day that still has capacity."""

    date: date
    day_label: str
    available_slots: int


class NextAvailableDates(WidgetModel):
    """Result of a next-available-dates query."""

    dates: list[AvailableDate] = Field(default_factory=list)
    error: Optional[str] = None
