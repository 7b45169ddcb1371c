"""
Resource Monitoring Utilities

Tracks wall-clock time and peak resident memory of an inference run.
Memory is sampled explicitly (the VB engine samples once per iteration),
so no background thread is involved.

Example usage:
    >>> monitor = ResourceMonitor()
    >>> monitor.start()
    >>> for _ in range(n_iterations):
    ...     step()
    ...     monitor.sample()
    >>> stats = monitor.stop()
    >>> print(f"Time: {stats['elapsed_time']:.2f}s, Memory: {stats['peak_memory_mb']:.1f}MB")
"""

import time
from typing import Dict, Optional

import psutil


class ResourceMonitor:
    """
    Monitor elapsed time and peak memory usage.

    Attributes:
        peak_memory: Peak resident memory observed in MB.
        monitoring: Whether monitoring is currently active.
    """

    def __init__(self):
        self.peak_memory: float = 0.0
        self.monitoring: bool = False
        self._start_time: Optional[float] = None
        self._process: Optional[psutil.Process] = None

    def start(self) -> None:
        """
        Start monitoring.

        Raises:
            RuntimeError: If monitoring is already active.
        """
        if self.monitoring:
            raise RuntimeError("Monitoring is already active. Call stop() first.")

        self.monitoring = True
        self._process = psutil.Process()
        self.peak_memory = self._current_memory_mb()
        self._start_time = time.perf_counter()

    def sample(self) -> float:
        """
        Record the current memory usage.

        Returns:
            Current resident memory in MB.
        """
        if not self.monitoring:
            return self.peak_memory

        current = self._current_memory_mb()
        self.peak_memory = max(self.peak_memory, current)
        return current

    def elapsed(self) -> float:
        """Seconds since start()."""
        if self._start_time is None:
            return 0.0
        return time.perf_counter() - self._start_time

    def stop(self) -> Dict[str, float]:
        """
        Stop monitoring and return collected statistics.

        Returns:
            Dictionary with 'elapsed_time' (seconds) and 'peak_memory_mb'.

        Raises:
            RuntimeError: If monitoring was never started.
        """
        if not self.monitoring:
            raise RuntimeError("Monitoring was never started. Call start() first.")

        elapsed = self.elapsed()
        self.sample()
        self.monitoring = False

        return {
            'elapsed_time': elapsed,
            'peak_memory_mb': self.peak_memory
        }

    def _current_memory_mb(self) -> float:
        try:
            return self._process.memory_info().rss / (1024 * 1024)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return self.peak_memory

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.monitoring:
            self.stop()
        return False
