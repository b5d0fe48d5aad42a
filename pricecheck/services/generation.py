"""
Generation controller for cooperative cancellation.

Each user-triggered lookup starts a new generation and flushes the request
queue. Work belonging to an older generation is not aborted mid-flight; it
checks `is_current()` after its suspension points and gives up when
superseded.
"""

import logging

from pricecheck.models.failure import StaleLookupError
from pricecheck.services.request_queue import RequestQueue

logger = logging.getLogger(__name__)


class GenerationController:
    """Owns the monotonically increasing lookup generation counter."""

    def __init__(self, queue: RequestQueue) -> None:
        self._queue = queue
        self._current = 0

    @property
    def current(self) -> int:
        return self._current

    def begin(self, refinement: bool = False) -> int:
        """
        Start a lookup and return its generation token.

        A refinement belongs to the lookup it refines: it reuses the current
        generation and leaves the queue alone.
        """
        if refinement:
            return self._current

        self._current += 1
        dropped = self._queue.flush_pending()
        if dropped:
            logger.debug("Generation %d dropped %d queued requests", self._current, dropped)
        return self._current

    def is_current(self, generation: int) -> bool:
        return generation == self._current

    def check(self, generation: int) -> None:
        """
        Raise if the generation has been superseded.

        Raises:
            StaleLookupError: If a newer lookup has started
        """
        if generation != self._current:
            raise StaleLookupError(generation, self._current)
