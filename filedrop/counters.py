# counters.py
import threading
from typing import Tuple


class UsageCounters:
    """Files and bytes received, shared by every request of every server run."""

    def __init__(self):
        self._lock = threading.Lock()
        self._received_count = 0
        self._total_bytes = 0

    def record(self, nbytes: int) -> None:
        """Count one finished file of ``nbytes`` bytes."""
        with self._lock:
            self._received_count += 1
            self._total_bytes += nbytes

    def snapshot(self) -> Tuple[int, int]:
        with self._lock:
            return self._received_count, self._total_bytes

    @property
    def received_count(self) -> int:
        return self.snapshot()[0]

    @property
    def total_bytes(self) -> int:
        return self.snapshot()[1]
