# application/pool_service.py
import logging
import queue
import threading
import time

import numpy as np

from domain.errors import PoolClosed, PoolTimeout
from domain.object_pool import ObjectPool
from domain.resources import build_resource_factory

logger = logging.getLogger(__name__)

MAX_LOG_MESSAGES = 99


class PoolService:
    """
    Runs a handful of worker threads against one shared ObjectPool.

    Workers report what they do through an event queue; the presentation
    loop drains it with `process_events()` and renders `get_render_data()`.
    """

    def __init__(self, config):
        self.config = config
        kind = config.get("resource", "kind", default="tally_counter")
        options = config.get("resource", "options", default={}) or {}
        self.resource_kind = kind
        self.pool = ObjectPool(
            factory=build_resource_factory(kind, **options),
            count=config.get("pool", "size", default=2),
        )
        self.acquire_timeout = config.get("pool", "acquire_timeout_seconds", default=None)
        self.worker_count = config.get("workers", "count", default=1)
        self.jobs_per_worker = config.get("workers", "jobs_per_worker", default=1)
        self.hold_seconds = config.get("workers", "hold_seconds", default=0.0)
        self.seed = config.get("workers", "seed", default=None)

        self.event_queue = queue.Queue()
        self.log_messages = []
        self.completed_jobs = 0
        self.timeouts = 0
        self.leaks = 0
        self.errors = 0
        self.peak_in_use = 0
        self._holders = 0
        self._holders_lock = threading.Lock()

    def add_log(self, message):
        self.log_messages.append(message)
        if len(self.log_messages) > MAX_LOG_MESSAGES:
            self.log_messages.pop(0)

    # --- Worker side ---

    def run_worker(self, worker_id):
        """Runs this worker's jobs; any unexpected failure becomes an "error" event."""
        try:
            self._run_jobs(worker_id)
        except Exception as e:
            logger.exception("worker-%s crashed", worker_id)
            self.event_queue.put(("error", worker_id, None, f"{type(e).__name__}: {e}"))

    def _run_jobs(self, worker_id):
        seed = None if self.seed is None else self.seed + worker_id
        rng = np.random.default_rng(seed)
        for job in range(self.jobs_per_worker):
            try:
                with self.pool.lease(timeout=self.acquire_timeout) as resource:
                    with self._holders_lock:
                        self._holders += 1
                        self.peak_in_use = max(self.peak_in_use, self._holders)
                    try:
                        if not resource.is_clean():
                            self.event_queue.put(("leak", worker_id, resource.id, ""))
                        detail = resource.work(worker_id, job, rng)
                        if self.hold_seconds:
                            time.sleep(self.hold_seconds)
                    finally:
                        with self._holders_lock:
                            self._holders -= 1
                self.event_queue.put(("done", worker_id, resource.id, detail))
            except PoolTimeout as e:
                self.event_queue.put(("timeout", worker_id, None, str(e)))
            except PoolClosed:
                self.event_queue.put(("closed", worker_id, None, ""))
                return

    def start_workers(self):
        threads = [
            threading.Thread(
                target=self.run_worker, args=(worker_id,), name=f"worker-{worker_id}", daemon=True
            )
            for worker_id in range(self.worker_count)
        ]
        for thread in threads:
            thread.start()
        self.add_log(
            f"Started {len(threads)} workers sharing {self.pool.capacity} {self.resource_kind} resources."
        )
        return threads

    # --- Main-loop side ---

    def process_events(self) -> int:
        """Drains pending worker events into counters and the log."""
        processed = 0
        while True:
            try:
                kind, worker_id, resource_id, detail = self.event_queue.get_nowait()
            except queue.Empty:
                break
            processed += 1
            if kind == "done":
                self.completed_jobs += 1
                self.add_log(f"worker-{worker_id} finished with resource #{resource_id} ({detail})")
            elif kind == "timeout":
                self.timeouts += 1
                self.add_log(f"worker-{worker_id} gave up waiting: {detail}")
            elif kind == "leak":
                self.leaks += 1
                logger.warning("Resource #%s was handed out dirty", resource_id)
                self.add_log(f"worker-{worker_id} received a dirty resource #{resource_id}!")
            elif kind == "closed":
                self.add_log(f"worker-{worker_id} stopped: pool closed")
            elif kind == "error":
                self.errors += 1
                self.add_log(f"worker-{worker_id} crashed: {detail}")
        return processed

    def shutdown(self):
        self.pool.close()
        self.add_log("Pool closed.")

    def get_render_data(self) -> dict:
        """Provides everything the presentation layer needs to draw a report."""
        return {
            "resource_kind": self.resource_kind,
            "pool": self.pool.stats(),
            "workers": self.worker_count,
            "expected_jobs": self.worker_count * self.jobs_per_worker,
            "completed_jobs": self.completed_jobs,
            "timeouts": self.timeouts,
            "leaks": self.leaks,
            "errors": self.errors,
            "peak_in_use": self.peak_in_use,
            "logs": self.log_messages,
        }
