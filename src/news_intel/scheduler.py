import logging
import threading
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass
class ScheduledJob:
    name: str
    interval_seconds: float
    run: Callable[[], object]


class Scheduler:
    """Runs pipeline jobs on independent recurring timers.

    ``start`` moves the scheduler from stopped to running: every job gets a
    worker thread that waits on a shared stop event between ticks, and all
    jobs run once, in registration order, on the calling thread before the
    first tick. The workers are started once that run returns, so a job's
    first tick comes one interval after the initial run ends, not after the
    ``start`` call. ``stop`` sets the event and joins the workers; a job that is
    already executing finishes its current run. Both calls are no-ops when
    the scheduler is already in the target state.

    A failing job is logged and keeps its timer.
    """

    def __init__(
        self,
        jobs: list[ScheduledJob],
        shutdown_timeout: float = 5,
    ) -> None:
        self._jobs = list(jobs)
        self._shutdown_timeout = shutdown_timeout
        self._state_lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._workers: list[threading.Thread] = []

    @property
    def jobs(self) -> list[ScheduledJob]:
        return list(self._jobs)

    @property
    def is_running(self) -> bool:
        with self._state_lock:
            return self._stop_event is not None

    def start(self) -> None:
        with self._state_lock:
            if self._stop_event is not None:
                logger.debug("Scheduler already running")
                return
            stop_event = threading.Event()
            workers = [
                threading.Thread(
                    target=self._run_every,
                    args=(job, stop_event),
                    name=f"scheduler-{job.name}",
                    daemon=True,
                )
                for job in self._jobs
            ]
            self._stop_event = stop_event
            self._workers = workers

        logger.info("Starting scheduled tasks: %s", ", ".join(job.name for job in self._jobs))
        for job in self._jobs:
            self.run_job(job)

        for worker in workers:
            worker.start()

    def stop(self) -> None:
        with self._state_lock:
            if self._stop_event is None:
                logger.debug("Scheduler already stopped")
                return
            stop_event, workers = self._stop_event, self._workers
            self._stop_event = None
            self._workers = []

        logger.info("Stopping scheduled tasks...")
        stop_event.set()
        for worker in workers:
            if not worker.is_alive() or worker is threading.current_thread():
                continue
            worker.join(timeout=self._shutdown_timeout)
            if worker.is_alive():
                logger.warning("%s still running after stop", worker.name)

    def run_job(self, job: ScheduledJob) -> bool:
        logger.info("Running scheduled %s", job.name)
        try:
            job.run()
        except Exception:  # noqa: BLE001 - a failing job keeps its timer
            logger.exception("Scheduled %s failed", job.name)
            return False
        return True

    def _run_every(self, job: ScheduledJob, stop_event: threading.Event) -> None:
        while not stop_event.wait(job.interval_seconds):
            self.run_job(job)
