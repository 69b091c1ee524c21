"""Contractor-scoped logging.

Each widget request serves exactly one contractor. The tools record that id
with ``set_contractor_id`` and every log line written while the request is
handled shows it, including lines from modules that use a plain
``logging.getLogger``:

    2026-10-19 09:00:00 [booking_widget.tools.booking] [contractor-123] INFO: Booking created: ...
"""

import logging
from contextvars import ContextVar

NO_CONTRACTOR = "-"

LOG_FORMAT = "%(asctime)s [%(name)s] [%(contractor_id)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_contractor_id: ContextVar[str] = ContextVar("contractor_id", default=NO_CONTRACTOR)


def set_contractor_id(contractor_id: str) -> None:
    """Tag log records in the current async context with ``contractor_id``."""
    _contractor_id.set(contractor_id)


class ContractorIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "contractor_id"):
            record.contractor_id = _contractor_id.get()  # type: ignore[attr-defined]
        return True


def _add_filter(target: logging.Filterer) -> None:
    if not any(isinstance(f, ContractorIdFilter) for f in target.filters):
        target.addFilter(ContractorIdFilter())


def configure_logging(level: str) -> None:
    """Configure root logging so every handler renders the contractor id."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )
    for handler in logging.getLogger().handlers:
        _add_filter(handler)


def get_contractor_logger(name: str) -> logging.Logger:
    """Logger whose records carry ``contractor_id`` for any handler, caplog included."""
    logger = logging.getLogger(name)
    _add_filter(logger)
    return logger
