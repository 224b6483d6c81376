import json
import logging
import threading
import time
from typing import Optional

from servicebus_queue.queue.registry import JobRegistry
from servicebus_queue.queue.service import ServiceBusQueue

logger = logging.getLogger(__name__)

class Worker:
    def __init__(self, queue: ServiceBusQueue, registry: JobRegistry, max_tries: int = 3, retry_delay: int = 0):
        self.queue = queue
        self.registry = registry
        self.max_tries = max_tries
        self.retry_delay = retry_delay

    def run_next_job(self, queue: Optional[str] = None) -> bool:
        """
        Pops and processes a single job.
        Returns False if there was nothing to process.
        """
        job = self.queue.pop(queue)
        if job is None:
            return False

        start_t = time.perf_counter()
        try:
            job.fire(self.registry)
        except Exception as e:
            logger.error(f"Job {job.job_id} on {job.queue} raised: {e!r}")
            failed = True
        else:
            failed = False

        try:
            outcome = self._settle_failed(job) if failed else self._settle_processed(job)
        except Exception as e:
            # Lock expired or broker unreachable; the broker redelivers once the lock lapses
            logger.warning(f"Could not settle job {job.job_id} on {job.queue}: {e!r}")
            outcome = "unsettled"

        elapsed_ms = (time.perf_counter() - start_t) * 1000
        logger.info(json.dumps({
            "event": "job_" + outcome,
            "job_id": job.job_id,
            "queue": job.queue,
            "attempt": job.attempts(),
            "duration_ms": round(elapsed_ms, 2),
        }))
        return True

    def _settle_processed(self, job) -> str:
        if not job.is_settled():
            job.delete()
        return "processed"

    def _settle_failed(self, job) -> str:
        if job.is_settled():
            return "errored"

        if self.max_tries > 0 and job.attempts() >= self.max_tries:
            logger.warning(f"Job {job.job_id} exceeded {self.max_tries} attempts, deleting")
            job.delete()
            return "failed"

        job.release(self.retry_delay)
        return "released"

    def run(self, queue: Optional[str] = None, stop_event: Optional[threading.Event] = None,
            max_jobs: Optional[int] = None, sleep: float = 1.0) -> int:
        """Processes jobs until stopped. Returns how many jobs were handled."""
        stop_event = stop_event or threading.Event()
        processed = 0

        while not stop_event.is_set():
            if max_jobs is not None and processed >= max_jobs:
                break
            if self.run_next_job(queue):
                processed += 1
            else:
                stop_event.wait(sleep)

        logger.info({"event": "worker_stopped", "processed": processed})
        return processed
