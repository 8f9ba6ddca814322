"""
Background tasks for the HF band simulation.
Drives the periodic propagation refresh.
"""

import time
import threading
import logging
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class ScheduledTask:
    """A periodic job and its run bookkeeping."""

    def __init__(self, name: str, func: Callable, interval: float, start_time: float):
        self.name = name
        self.func = func
        self.interval = interval
        self.next_run = start_time + interval
        self.last_run: Optional[float] = None
        self.runs = 0
        self.errors = 0
        self.skipped = 0
        self.last_error: Optional[str] = None
        self.in_flight = False
        self.thread: Optional[threading.Thread] = None

    def is_due(self, now: float) -> bool:
        return now >= self.next_run

    def to_status(self) -> Dict:
        return {
            'interval': self.interval,
            'last_run': self.last_run,
            'next_run': self.next_run,
            'runs': self.runs,
            'errors': self.errors,
            'skipped': self.skipped,
            'in_flight': self.in_flight,
            'last_error': self.last_error
        }


class TaskManager:
    """Runs periodic tasks on worker threads.

    A task never runs concurrently with itself: a tick that comes due while the
    previous run is still in flight is counted as skipped.
    """

    def __init__(self, poll_interval: float = 1.0):
        self.tasks: Dict[str, ScheduledTask] = {}
        self.running = False
        self.thread = None
        self.poll_interval = poll_interval
        self.lock = threading.Lock()
        self._stop_event = threading.Event()

    def add_task(self, name: str, task_func: Callable, interval_seconds: float = 300,
                 start_time: Optional[float] = None):
        """Register a task; its first run is one interval after ``start_time``."""
        start_time = time.time() if start_time is None else start_time
        with self.lock:
            self.tasks[name] = ScheduledTask(name, task_func, interval_seconds, start_time)
        logger.info(f"Added task: {name} (interval: {interval_seconds}s)")

    def remove_task(self, name: str):
        with self.lock:
            if self.tasks.pop(name, None) is not None:
                logger.info(f"Removed task: {name}")

    def start_all(self):
        """Start the scheduler thread."""
        with self.lock:
            if self.running:
                logger.warning("Task manager already running")
                return

            self.running = True
            self._stop_event.clear()
            self.thread = threading.Thread(target=self._run_scheduler, name='hf-scheduler', daemon=True)
            self.thread.start()
        logger.info("Task manager started")

    def stop_all(self):
        """Stop the scheduler thread. Runs already in flight finish on their own."""
        with self.lock:
            self.running = False
            self._stop_event.set()
            thread, self.thread = self.thread, None

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5)
        logger.info("Task manager stopped")

    def _run_scheduler(self):
        while not self._stop_event.is_set():
            try:
                self.run_pending()
            except Exception as e:
                logger.error(f"Error in scheduler loop: {e}")
            self._stop_event.wait(self.poll_interval)

    def run_pending(self, current_time: Optional[float] = None) -> List[str]:
        """Start every task that is due. Returns the names of tasks started."""
        now = time.time() if current_time is None else current_time
        started = []

        with self.lock:
            for task in self.tasks.values():
                if not task.is_due(now):
                    continue

                task.next_run = now + task.interval
                if task.in_flight:
                    task.skipped += 1
                    logger.warning(f"Task {task.name} still running, skipping tick")
                    continue

                task.in_flight = True
                task.thread = threading.Thread(
                    target=self._run_task, args=(task,), name=f"hf-task-{task.name}", daemon=True
                )
                task.thread.start()
                started.append(task.name)

        return started

    def _run_task(self, task: ScheduledTask):
        started_at = time.time()
        try:
            task.func()
        except Exception as e:
            logger.error(f"Error running task {task.name}: {e}")
            with self.lock:
                task.errors += 1
                task.last_error = str(e)
        else:
            with self.lock:
                task.last_run = time.time()
                task.runs += 1
                task.last_error = None
            logger.debug(f"Task {task.name} completed in {time.time() - started_at:.2f}s")
        finally:
            with self.lock:
                task.in_flight = False

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Wait for in-flight task runs to finish. Returns False on timeout."""
        with self.lock:
            threads = [task.thread for task in self.tasks.values() if task.thread is not None]

        deadline = None if timeout is None else time.time() + timeout
        for thread in threads:
            remaining = None if deadline is None else max(0.0, deadline - time.time())
            thread.join(remaining)
            if thread.is_alive():
                return False
        return True

    def get_status(self) -> dict:
        with self.lock:
            return {
                'running': self.running,
                'tasks': {name: task.to_status() for name, task in self.tasks.items()}
            }


def setup_background_tasks(propagation_updater: Callable, interval_seconds: float = 300) -> TaskManager:
    """
    Set up the periodic propagation refresh.

    Args:
        propagation_updater: Function refreshing propagation conditions
        interval_seconds: Refresh cadence

    Returns:
        TaskManager instance (not yet started)
    """
    task_manager = TaskManager()
    task_manager.add_task('propagation_update', propagation_updater, interval_seconds)
    return task_manager
