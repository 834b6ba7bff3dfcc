from typing import Optional

import psutil


class MemoryObserver:
    """Tracks the peak resident memory (MB) of the current process between resets."""

    def __init__(self, process: Optional[psutil.Process] = None):
        self._process = process if process is not None else psutil.Process()
        self._peak = 0.0

    def reset(self):
        self._peak = 0.0

    def sample(self) -> float:
        current = self._process.memory_info().rss / 1024 / 1024
        if current > self._peak:
            self._peak = current
        return current

    def peak(self) -> float:
        return self._peak
