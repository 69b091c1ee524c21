"""Public contractor info and embed code for the booking widget."""

from html import escape
from typing import Optional, Sequence, Union

from booking_widget.config import settings
from booking_widget.logging_context import set_contractor_id
from booking_widget.schemas.base import WidgetModel
from booking_widget.schemas.policy_schema import Customization
from booking_widget.tools.availability import BOOKING_DISABLED
from booking_widget.tools.contractor_settings import get_booking_settings
from booking_widget.tools.stores import ContractorStore


class PublicBookingSettings(WidgetModel):
    enabled: bool
    allowed_services: list[str]
    lead_time_hours: int
    max_advance_days: int
    slot_duration_minutes: int
    require_phone: bool
    require_address: bool


class PublicServiceType(WidgetModel):
    id: str
    name: str
    duration: int


class ContractorInfo(WidgetModel):
    """Fields that are safe to expose to anonymous widget visitors."""

    id: str
    company_name: str
    logo_url: Optional[str] = None
    service_area: Optional[str] = None
    booking: PublicBookingSettings
    customization: Customization
    service_types: list[PublicServiceType]


class ContractorInfoResult(WidgetModel):
    info: Optional[ContractorInfo] = None
    error: Optional[str] = None


async def get_contractor_info(
    contractor_id: str, contractors: Optional[ContractorStore] = None
) -> ContractorInfoResult:
    """Public profile, booking rules and bookable services for a contractor."""
    set_contractor_id(contractor_id)
    contractor = await get_booking_settings(contractor_id, contractors)
    if contractor.error:
        return ContractorInfoResult(error=contractor.error)
    policy = contractor.policy
    if not policy.enabled:
        return ContractorInfoResult(error=BOOKING_DISABLED)

    return ContractorInfoResult(info=ContractorInfo(
        id=contractor_id,
        company_name=contractor.business_name or "Service Provider",
        logo_url=contractor.logo_url,
        service_area=contractor.service_area,
        booking=PublicBookingSettings(
            enabled=True,
            allowed_services=list(policy.allowed_services),
            lead_time_hours=policy.lead_time_hours,
            max_advance_days=policy.max_advance_days,
            slot_duration_minutes=policy.slot_duration_minutes,
            require_phone=policy.require_phone,
            require_address=policy.require_address,
        ),
        customization=policy.customization.model_copy(),
        service_types=[
            PublicServiceType(
                id=st.id, name=st.name, duration=contractor.duration_for(st.id)
            )
            for st in contractor.service_types
            if policy.allows_service(st.id)
        ],
    ))


def build_embed_code(
    contractor_id: str,
    color: Optional[str] = None,
    allowed_services: Union[Sequence[str], str, None] = None,
    base_url: Optional[str] = None,
) -> str:
    """HTML snippet that loads the widget script for a contractor.

    ``allowed_services`` may be a list or an already comma-separated string.
    """
    base_url = (base_url or settings.widget.base_url).rstrip("/")
    color = color or settings.widget.default_color
    if isinstance(allowed_services, str):
        allowed_services = allowed_services.split(",")
    services = [s.strip() for s in allowed_services or [] if s.strip()]

    services_attr = (
        f'\n  data-services="{escape(",".join(services))}"' if services else ""
    )
    return (
        f'<div id="{escape(settings.widget.container_id)}"></div>\n'
        f"<script\n"
        f'  src="{escape(base_url)}/widget/booking.js"\n'
        f'  data-contractor="{escape(contractor_id)}"\n'
        f'  data-color="{escape(color)}"{services_attr}\n'
        f"></script>"
    )
