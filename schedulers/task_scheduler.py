"""
Task Scheduler

Timer-driven work for the chat core (delayed follow-up enqueue, delayed
mentor question delivery, the periodic mentor tick, background insight
recording) runs here as APScheduler jobs. Every job goes through a single
worker thread, so scheduled callbacks never run in parallel with each other.

Each scheduling call returns a ScheduledTask whose cancel() removes the job.
"""

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional
import logging
import time
import uuid

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Cancel handle for a scheduled job"""

    def __init__(self, scheduler: BackgroundScheduler, job_id: str, name: str):
        self._scheduler = scheduler
        self.job_id = job_id
        self.name = name
        self.cancelled = False

    @property
    def pending(self) -> bool:
        return not self.cancelled and self._scheduler.get_job(self.job_id) is not None

    def cancel(self) -> bool:
        """Remove the job. Returns True if it had not run (or been removed) yet."""
        if self.cancelled:
            return False
        self.cancelled = True
        try:
            self._scheduler.remove_job(self.job_id)
        except JobLookupError:
            return False
        logger.debug(f"Cancelled task {self.name} ({self.job_id})")
        return True


class TaskScheduler:
    """APScheduler-backed scheduler for one-shot and periodic tasks"""

    def __init__(self, scheduler: Optional[BackgroundScheduler] = None):
        self._scheduler = scheduler or BackgroundScheduler(
            executors={"default": ThreadPoolExecutor(max_workers=1)},
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": None},
            timezone=timezone.utc,
        )

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("Task scheduler started")

    def shutdown(self, wait: bool = False) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
            logger.info("Task scheduler stopped")

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)

    def call_later(
        self,
        delay: float,
        func: Callable[..., Any],
        *args: Any,
        name: Optional[str] = None
    ) -> ScheduledTask:
        """Run func(*args) once, `delay` seconds from now"""
        job_id = uuid.uuid4().hex
        task_name = name or getattr(func, "__name__", "task")
        self._scheduler.add_job(
            func,
            trigger=DateTrigger(run_date=self.now() + timedelta(seconds=max(delay, 0))),
            args=args,
            id=job_id,
            name=task_name,
        )
        return ScheduledTask(self._scheduler, job_id, task_name)

    def call_every(
        self,
        interval: float,
        func: Callable[..., Any],
        *args: Any,
        name: Optional[str] = None
    ) -> ScheduledTask:
        """Run func(*args) every `interval` seconds, first run one interval from now"""
        job_id = uuid.uuid4().hex
        task_name = name or getattr(func, "__name__", "task")
        self._scheduler.add_job(
            func,
            trigger=IntervalTrigger(seconds=interval),
            args=args,
            id=job_id,
            name=task_name,
        )
        return ScheduledTask(self._scheduler, job_id, task_name)
