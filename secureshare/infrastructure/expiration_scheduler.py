"""
Background Expiration Scheduler

Concrete implementation of IExpirationScheduler on top of APScheduler.

Each registration is a one-shot "date" job whose id is the file identifier,
so re-arming replaces the previous job and cancel() is a job removal. Due
jobs run on APScheduler's thread pool, so one slow or failing reclamation
never holds up the others.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from ..domain.file_storage.scheduler import ExpiryCallback, IExpirationScheduler
from ..domain.file_storage.value_objects import FileId

logger = logging.getLogger(__name__)


class BackgroundExpirationScheduler(IExpirationScheduler):
    """
    One APScheduler date job per live file.

    The underlying scheduler is started paused, so jobs get their run time as
    soon as they are armed but nothing fires until start(). Tests that never
    call start() fire due jobs on their own thread with run_due().

    Failed callbacks are re-armed with exponential backoff
    (retry_delay * 2**attempt) until max_retries is reached.

    Attributes:
        retry_delay: Seconds before the first retry of a failed callback
        max_retries: Retries before a failing callback is abandoned
    """

    def __init__(
        self,
        retry_delay: float = 30.0,
        max_retries: int = 5,
        max_workers: int = 4,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {max_workers}")
        if retry_delay < 0:
            raise ValueError(f"retry_delay must not be negative, got {retry_delay}")

        self.retry_delay = retry_delay
        self.max_retries = max_retries
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        # Serializes arm() against run_due() picking a job
        self._lock = threading.RLock()

        self._scheduler = BackgroundScheduler(
            timezone="UTC",
            executors={"default": ThreadPoolExecutor(max_workers)},
            job_defaults={
                # Late reclamation still has to happen
                "misfire_grace_time": None,
                "coalesce": True,
                # A retry may be submitted while the failed run is unwinding
                "max_instances": 3,
            },
            daemon=True,
        )
        self._scheduler.start(paused=True)

    # IExpirationScheduler interface methods

    def arm(self, file_id: FileId, expires_at: datetime, on_fire: ExpiryCallback) -> None:
        self._add(file_id, expires_at, on_fire, attempt=0)

    def cancel(self, file_id: FileId) -> bool:
        try:
            self._scheduler.remove_job(file_id.value)
        except JobLookupError:
            return False
        return True

    def is_armed(self, file_id: FileId) -> bool:
        return self._scheduler.get_job(file_id.value) is not None

    def pending_count(self) -> int:
        return len(self._scheduler.get_jobs())

    # Lifecycle

    def start(self) -> None:
        """Begin firing jobs on the background thread. Calling it twice is a no-op."""
        self._scheduler.resume()
        logger.info("Expiration scheduler started")

    def shutdown(self, wait: bool = True) -> None:
        """
        Stop the scheduler and drop pending registrations.

        Args:
            wait: Wait for callbacks that are already running to finish
        """
        if not self._scheduler.running:
            return
        dropped = self.pending_count()
        self._scheduler.remove_all_jobs()
        self._scheduler.shutdown(wait=wait)
        logger.info(f"Expiration scheduler stopped ({dropped} pending dropped)")

    def run_due(self, now: Optional[datetime] = None) -> int:
        """
        Fire every registration that is due, on the calling thread.

        Args:
            now: Reference time, defaults to the scheduler clock

        Returns:
            Number of callbacks invoked
        """
        if not self._scheduler.running:
            return 0
        reference = now or self._clock()
        # get_jobs() is ordered by run time
        due = [job for job in self._scheduler.get_jobs() if job.next_run_time <= reference]

        fired = 0
        for job in due:
            with self._lock:
                if self._scheduler.get_job(job.id) is not job:
                    # Cancelled or re-armed since the snapshot
                    continue
                self._scheduler.remove_job(job.id)
            job.func(*job.args)
            fired += 1
        return fired

    # Internals

    def _add(self, file_id: FileId, run_date: datetime, on_fire: ExpiryCallback, attempt: int) -> None:
        with self._lock:
            self._scheduler.add_job(
                self._fire,
                trigger="date",
                run_date=run_date,
                args=(file_id, on_fire, attempt),
                id=file_id.value,
                name=f"expire-{file_id.short()}",
                replace_existing=True,
            )

    def _fire(self, file_id: FileId, on_fire: ExpiryCallback, attempt: int) -> None:
        try:
            on_fire(file_id)
        except Exception as e:
            self._handle_failure(file_id, on_fire, attempt, e)

    def _handle_failure(self, file_id: FileId, on_fire: ExpiryCallback, attempt: int, error: Exception) -> None:
        short_id = file_id.short()
        if attempt >= self.max_retries:
            logger.error(
                f"Giving up on expiry of {short_id} after {attempt + 1} attempts: {error}",
                exc_info=True,
            )
            return

        delay = self.retry_delay * (2 ** attempt)
        logger.warning(
            f"Expiry of {short_id} failed (attempt {attempt + 1}), "
            f"retrying in {delay:.1f}s: {error}"
        )
        with self._lock:
            if not self._scheduler.running or self.is_armed(file_id):
                # Shutting down, or someone re-armed the id meanwhile
                return
            self._add(file_id, self._clock() + timedelta(seconds=delay), on_fire, attempt + 1)
