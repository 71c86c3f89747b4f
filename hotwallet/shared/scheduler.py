"""Fixed-interval polling on a background thread."""

import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)


class PollingScheduler:
    def __init__(
        self,
        task: Callable[[], Any],
        interval_seconds: float = 30.0,
        name: str = "poll",
        on_error: Callable[[Exception], None] | None = None,
    ):
        self.task = task
        self.interval_seconds = interval_seconds
        self.name = name
        self.on_error = on_error
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> Any:
        try:
            return self.task()
        except Exception as e:
            logger.error("Error in scheduled task %s: %s", self.name, e)
            if self.on_error:
                self.on_error(e)
            return None

    def start(self) -> None:
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop, name=f"hotwallet-{self.name}", daemon=True
        )
        self._thread.start()
        logger.info(
            "Scheduler %s started (every %.1fs)", self.name, self.interval_seconds
        )

    def stop(self, timeout: float = 2.0) -> bool:
        """Ask the loop to exit and wait up to ``timeout`` for it.

        Returns False if a run is still in progress; the thread is kept so
        that ``start`` cannot launch a second loop beside it.
        """
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning(
                    "Scheduler %s still finishing a run after %.1fs", self.name, timeout
                )
                return False
            self._thread = None
        logger.info("Scheduler %s stopped", self.name)
        return True

    def _loop(self) -> None:
        self.run_once()
        while not self._stop_event.wait(self.interval_seconds):
            self.run_once()
