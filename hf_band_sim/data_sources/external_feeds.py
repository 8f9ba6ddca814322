"""
Asynchronous client for the external propagation feeds.

Each fetch runs on a worker thread and hands its result (or None on any
failure) to the ``on_result`` callback from that same thread. The callback is
responsible for merging under the simulation lock.
"""

import threading
import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

FeedCallback = Callable[[str, Optional[Dict[str, Any]]], None]


class ExternalFeedClient:
    """Dispatches feed fetches and reports their outcome."""

    def __init__(self, providers: Dict[str, Any], on_result: FeedCallback, max_workers: int = 2):
        self.providers = providers
        self.on_result = on_result
        self.cancel_event = threading.Event()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='hf-feed')
        self._pending: List[Future] = []
        self._lock = threading.Lock()

    def dispatch(self, feed_id: str) -> Optional[Future]:
        """Start fetching a feed. Returns the future, or None if it could not start."""
        provider = self.providers.get(feed_id)
        if provider is None:
            logger.warning(f"No provider registered for feed {feed_id}")
            return None

        if self.cancel_event.is_set():
            logger.info(f"Feed client shut down, not fetching {feed_id}")
            self._report(feed_id, None)
            return None

        try:
            future = self._executor.submit(self._run, feed_id, provider)
        except RuntimeError as e:
            # Executor already shut down
            logger.warning(f"Could not dispatch {feed_id} fetch: {e}")
            self._report(feed_id, None)
            return None

        with self._lock:
            self._pending.append(future)
        future.add_done_callback(lambda f: self._finished(feed_id, f))
        logger.info(f"Dispatched {feed_id} fetch")
        return future

    def _run(self, feed_id: str, provider):
        try:
            result = provider.fetch(self.cancel_event)
        except Exception as e:
            logger.error(f"Unexpected error fetching {feed_id}: {e}")
            result = None
        self._report(feed_id, result)

    def _finished(self, feed_id: str, future: Future):
        with self._lock:
            if future in self._pending:
                self._pending.remove(future)

        # Queued fetches dropped at shutdown never ran, so report them here
        if future.cancelled():
            logger.info(f"{feed_id} fetch cancelled")
            self._report(feed_id, None)

    def _report(self, feed_id: str, result: Optional[Dict[str, Any]]):
        try:
            self.on_result(feed_id, result)
        except Exception as e:
            logger.error(f"Error handling {feed_id} result: {e}")

    def pending(self) -> int:
        with self._lock:
            return sum(1 for future in self._pending if not future.done())

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for in-flight fetches and their merges. Returns False on timeout."""
        with self._lock:
            futures = list(self._pending)
        if not futures:
            return True
        _, not_done = wait(futures, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_pending: bool = False):
        """Cancel queued fetches and stop the worker pool."""
        self.cancel_event.set()
        self._executor.shutdown(wait=wait_for_pending, cancel_futures=True)
        logger.info("External feed client shut down")
