from booking_widget.scheduling.slot_generator import (
    BlockedInterval,
    GridPolicy,
    SlotGenerator,
    day_label_for,
    day_name_for,
    ranges_overlap,
)

__all__ = [
    "SlotGenerator",
    "GridPolicy",
    "BlockedInterval",
    "day_name_for",
    "day_label_for",
    "ranges_overlap",
]
