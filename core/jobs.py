"""Job store for long-running generation runs, polled by callers."""

import copy
import logging
import threading
import time
import uuid
from abc import ABC, abstractmethod

from config.defaults import DEFAULTS
from core.state import GenerationJob

logger = logging.getLogger(__name__)


class JobStore(ABC):
    """Key-value store of GenerationJob records.

    Only the task driving a job calls update(); pollers call get() and
    receive a snapshot.
    """

    @abstractmethod
    def create(self, kind="book") -> GenerationJob:
        """Create and store a new job in the initializing state."""

    @abstractmethod
    def update(self, job_id, **changes):
        """Apply changes to a job. Returns the updated snapshot, or None if
        the job is gone (expired or dropped by the caller)."""

    @abstractmethod
    def get(self, job_id):
        """Return a snapshot of the job, or None if not found/expired."""

    @abstractmethod
    def drop(self, job_id):
        """Forget a job. Its driving task keeps running; updates are ignored."""


class InMemoryJobStore(JobStore):
    """Process-local store with TTL expiry and a size cap.

    TTL counts from a job's last update, and only once it has finished, so
    a long book run stays pollable for as long as it is running.
    """

    def __init__(self, ttl=None, max_jobs=None):
        self.ttl = ttl or DEFAULTS["job_ttl"]
        self.max_jobs = max_jobs or DEFAULTS["max_jobs"]
        self._jobs = {}
        self._lock = threading.Lock()

    def _expired(self, job, now):
        return job.terminal and now - job.updated_at > self.ttl

    def _cleanup(self):
        """Remove expired jobs, then the oldest beyond the cap. Called under _lock.

        Finished jobs are evicted before running ones.
        """
        now = time.time()
        expired = [jid for jid, job in self._jobs.items() if self._expired(job, now)]
        for jid in expired:
            del self._jobs[jid]
        if len(self._jobs) > self.max_jobs:
            by_age = sorted(self._jobs.items(), key=lambda x: (not x[1].terminal, x[1].updated_at))
            for jid, _ in by_age[:len(self._jobs) - self.max_jobs]:
                del self._jobs[jid]

    def create(self, kind="book"):
        job = GenerationJob(id=str(uuid.uuid4()), kind=kind)
        with self._lock:
            self._jobs[job.id] = job
            self._cleanup()
        return copy.deepcopy(job)

    def update(self, job_id, **changes):
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            if job.terminal:
                logger.warning("Ignoring update to finished job %s", job_id)
                return copy.deepcopy(job)
            previous = job.completed_units
            for key, value in changes.items():
                if not hasattr(job, key):
                    raise AttributeError(f"GenerationJob has no field {key!r}")
                setattr(job, key, value)
            # progress never moves backwards
            job.completed_units = max(previous, job.completed_units)
            job.updated_at = time.time()
            return copy.deepcopy(job)

    def get(self, job_id):
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            if self._expired(job, time.time()):
                del self._jobs[job_id]
                return None
            return copy.deepcopy(job)

    def drop(self, job_id):
        with self._lock:
            self._jobs.pop(job_id, None)
