"""
Booking widget command-line entry point.

Runs the availability queries, booking creation and embed-code generation
against a JSON data file, or against a built-in demo contractor when no file
is given.

Usage:
    python main.py slots demo-contractor --start 2026-10-20 --end 2026-10-23
    python main.py check demo-contractor 2026-10-21 10:00
    python main.py next demo-contractor --count 3
    python main.py book demo-contractor plumbing 2026-10-21 10:00 \\
        --name "Jane Doe" --email jane@example.com --phone 5551234567 --address "1 Main St"
    python main.py embed demo-contractor --services plumbing,hvac
    python main.py --data contractors.json slots acme-plumbing

Data file shape:
    {"contractors": {"<id>": {<contractor document>}},
     "jobs": {"<id>": [{<job document>}, ...]}}
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from booking_widget.config import settings
from booking_widget.schemas.booking_schema import JobRecord
from booking_widget.tools import stores
from booking_widget.tools.availability import (
    check_slot_availability,
    get_available_slots,
    get_next_available_dates,
)
from booking_widget.tools.booking import create_booking
from booking_widget.tools.widget_info import build_embed_code, get_contractor_info

logger = logging.getLogger(__name__)

DEMO_CONTRACTOR_ID = "demo-contractor"


def _demo_data() -> dict:
    in_two_days = datetime.now(timezone.utc) + timedelta(days=2)
    return {
        "contractors": {
            DEMO_CONTRACTOR_ID: {
                "businessName": "Reliable Home Services",
                "timezone": settings.widget.default_timezone,
                "bookingWidget": {
                    "enabled": True,
                    "allowedServices": ["plumbing", "hvac"],
                    "serviceDurations": {"hvac": 90},
                },
                "serviceTypes": [
                    {"id": "plumbing", "name": "Plumbing Service", "duration": 60},
                    {"id": "hvac", "name": "HVAC Service", "duration": 90},
                    {"id": "electrical", "name": "Electrical Service"},
                ],
            }
        },
        "jobs": {
            DEMO_CONTRACTOR_ID: [
                {
                    "scheduledDate": in_two_days.replace(
                        hour=15, minute=0, second=0, microsecond=0
                    ).isoformat(),
                    "estimatedDuration": 120,
                    "status": "scheduled",
                }
            ]
        },
    }


def load_data(path: Optional[Path]) -> None:
    """Populate the in-memory stores from a data file or the demo seed."""
    data = json.loads(path.read_text()) if path else _demo_data()
    for contractor_id, document in data.get("contractors", {}).items():
        stores.contractor_store.put(contractor_id, document)
    for contractor_id, jobs in data.get("jobs", {}).items():
        for raw in jobs:
            job = JobRecord.model_validate(raw)
            stores.job_store.put(contractor_id, job)
    logger.debug("Loaded data from %s", path or "demo seed")


def _print(model) -> None:
    print(model.model_dump_json(by_alias=True, indent=2))


async def _run(args: argparse.Namespace) -> int:
    if args.command == "slots":
        start = args.start or date.today()
        end = args.end or start + timedelta(days=6)
        result = await get_available_slots(args.contractor_id, start, end, args.service)
        _print(result)
        return 1 if result.error else 0

    if args.command == "check":
        result = await check_slot_availability(
            args.contractor_id, args.date, args.time, args.duration
        )
        _print(result)
        return 1 if result.error else 0

    if args.command == "next":
        result = await get_next_available_dates(args.contractor_id, args.count)
        _print(result)
        return 1 if result.error else 0

    if args.command == "book":
        result = await create_booking({
            "contractorId": args.contractor_id,
            "serviceType": args.service,
            "date": args.date,
            "time": args.time,
            "customerName": args.name,
            "customerEmail": args.email,
            "customerPhone": args.phone,
            "serviceAddress": args.address,
            "description": args.description,
        }, client_key=args.client_ip)
        _print(result)
        return 0 if result.success else 1

    if args.command == "info":
        result = await get_contractor_info(args.contractor_id)
        _print(result)
        return 1 if result.error else 0

    print(build_embed_code(args.contractor_id, args.color, args.services))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Booking widget availability tools")
    parser.add_argument("--data", type=Path, help="JSON file with contractors and jobs")
    sub = parser.add_subparsers(dest="command", required=True)

    slots = sub.add_parser("slots", help="Slot map for a date range")
    slots.add_argument("contractor_id")
    slots.add_argument("--start", type=date.fromisoformat)
    slots.add_argument("--end", type=date.fromisoformat)
    slots.add_argument("--service")

    check = sub.add_parser("check", help="Check a single slot")
    check.add_argument("contractor_id")
    check.add_argument("date")
    check.add_argument("time")
    check.add_argument("--duration", type=int)

    nxt = sub.add_parser("next", help="Next dates with open slots")
    nxt.add_argument("contractor_id")
    nxt.add_argument("--count", type=int)

    book = sub.add_parser("book", help="Create a widget booking")
    book.add_argument("contractor_id")
    book.add_argument("service")
    book.add_argument("date")
    book.add_argument("time")
    book.add_argument("--name", required=True)
    book.add_argument("--email", required=True)
    book.add_argument("--phone")
    book.add_argument("--address")
    book.add_argument("--description")
    book.add_argument("--client-ip", help="Caller address used for rate limiting")

    info = sub.add_parser("info", help="Public contractor info")
    info.add_argument("contractor_id")

    embed = sub.add_parser("embed", help="Print the widget embed code")
    embed.add_argument("contractor_id")
    embed.add_argument("--color")
    embed.add_argument("--services", help="Comma-separated allowed services")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command != "embed":
        load_data(args.data)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
