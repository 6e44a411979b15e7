"""Temperature Source - Mocked ambient temperature reading.

Stands in for a weather service: a uniformly random reading between 20 and
35 C, held for 60 seconds so repeated dashboard loads agree.
"""

import logging
import random
import time
from typing import Callable


logger = logging.getLogger(__name__)

MIN_TEMP_C = 20
MAX_TEMP_C = 35
CACHE_SECONDS = 60


class MockTemperatureSource:
    """Random temperature reading with a short cache.

    Args:
        rng: Random generator (inject a seeded one for tests)
        clock: Monotonic clock in seconds
        ttl: Seconds a reading stays valid
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
        ttl: float = CACHE_SECONDS,
    ) -> None:
        self._rng = rng or random.Random()
        self._clock = clock
        self._ttl = ttl
        self._cached: int | None = None
        self._cached_at = 0.0

    def current_temp(self) -> int:
        """Return the current temperature in whole degrees Celsius."""
        now = self._clock()
        if self._cached is None or now - self._cached_at >= self._ttl:
            self._cached = self._rng.randint(MIN_TEMP_C, MAX_TEMP_C)
            self._cached_at = now
            logger.debug("New temperature reading: %dC", self._cached)
        return self._cached
