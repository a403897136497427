"""Injectable time source."""

import time
from typing import Protocol


class Clock(Protocol):
    """Source of the current unix time in seconds."""

    def now(self) -> float: ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> float:
        return time.time()
