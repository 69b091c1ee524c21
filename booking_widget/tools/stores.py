"""
In-memory contractor and job stores.

In production these are backed by the document database (one contractor
document with a ``jobs`` sub-collection per contractor). The query surface
only depends on the two protocols below, so any async client that raises
``StoreUnavailableError`` on transport failure can be dropped in.
"""

import asyncio
import copy
import logging
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional, Protocol

from booking_widget.schemas.booking_schema import JobRecord, JobStatus

logger = logging.getLogger(__name__)


class StoreUnavailableError(Exception):
    """Raised when the underlying data store cannot be reached."""


class ContractorStore(Protocol):
    async def get_contractor(self, contractor_id: str) -> Optional[dict]: ...

    async def update_contractor(self, contractor_id: str, fields: dict) -> None: ...


class JobStore(Protocol):
    async def list_jobs(
        self,
        contractor_id: str,
        start: datetime,
        end: datetime,
        statuses: frozenset[JobStatus],
    ) -> list[JobRecord]: ...

    async def add_job(self, contractor_id: str, job: JobRecord) -> str: ...

    def transaction(self, contractor_id: str): ...


class InMemoryContractorStore:
    """Contractor documents keyed by id, stored in their camelCase wire shape."""

    def __init__(self) -> None:
        self._docs: dict[str, dict] = {}
        self.available = True

    def _check(self) -> None:
        if not self.available:
            raise StoreUnavailableError("contractor store is unavailable")

    def put(self, contractor_id: str, document: dict) -> None:
        self._docs[contractor_id] = copy.deepcopy(document)

    async def get_contractor(self, contractor_id: str) -> Optional[dict]:
        self._check()
        doc = self._docs.get(contractor_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def update_contractor(self, contractor_id: str, fields: dict) -> None:
        self._check()
        if contractor_id not in self._docs:
            raise KeyError(f"Contractor {contractor_id} not found")
        self._docs[contractor_id].update(copy.deepcopy(fields))
        logger.info("Contractor %s updated: %s", contractor_id, ", ".join(fields))

    def reset(self) -> None:
        self._docs.clear()
        self.available = True


class InMemoryJobStore:
    """Jobs per contractor with a per-contractor write lock."""

    def __init__(self) -> None:
        self._jobs: dict[str, dict[str, JobRecord]] = defaultdict(dict)
        self._locks: dict[str, asyncio.Lock] = {}
        self.available = True

    def _check(self) -> None:
        if not self.available:
            raise StoreUnavailableError("job store is unavailable")

    async def list_jobs(
        self,
        contractor_id: str,
        start: datetime,
        end: datetime,
        statuses: frozenset[JobStatus],
    ) -> list[JobRecord]:
        """Jobs with ``start <= scheduled_date < end`` in one of ``statuses``."""
        self._check()
        jobs = [
            job.model_copy()
            for job in self._jobs[contractor_id].values()
            if job.status in statuses and start <= job.scheduled_date < end
        ]
        return sorted(jobs, key=lambda j: j.scheduled_date)

    def put(self, contractor_id: str, job: JobRecord) -> str:
        job_id = job.id or uuid.uuid4().hex[:20]
        self._jobs[contractor_id][job_id] = job.model_copy(update={"id": job_id})
        return job_id

    async def add_job(self, contractor_id: str, job: JobRecord) -> str:
        self._check()
        return self.put(contractor_id, job)

    @asynccontextmanager
    async def transaction(self, contractor_id: str) -> AsyncIterator[None]:
        """Serialize check-then-write sequences for one contractor."""
        lock = self._locks.setdefault(contractor_id, asyncio.Lock())
        async with lock:
            yield

    def get_job(self, contractor_id: str, job_id: str) -> Optional[JobRecord]:
        return self._jobs[contractor_id].get(job_id)

    def reset(self) -> None:
        self._jobs.clear()
        self._locks.clear()
        self.available = True


contractor_store = InMemoryContractorStore()
job_store = InMemoryJobStore()


def reset() -> None:
    """Clear both default stores. Used by test fixtures for isolation."""
    contractor_store.reset()
    job_store.reset()
