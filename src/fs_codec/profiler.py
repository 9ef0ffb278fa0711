"""Performance profiler for codec operations."""

import threading
import time
import psutil
import logging
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from contextlib import contextmanager


@dataclass
class PerformanceMetrics:
    """Performance metrics for one serialize or deserialize call."""
    operation_name: str
    start_time: float
    end_time: float
    duration: float
    entry_count: int
    bytes_processed: int
    memory_peak_mb: float
    memory_start_mb: float
    memory_end_mb: float
    cpu_percent: float
    throughput_mbps: float


@dataclass
class ProfilingSession:
    """State of one profiled operation."""
    operation_name: str
    start_time: float
    start_memory: float
    peak_memory: float
    cpu_samples: List[float] = field(default_factory=list)
    entry_count: int = 0
    bytes_processed: int = 0

    def record_output(self, entry_count: int, bytes_processed: int):
        """Attach the size of the tree written or read by this operation."""
        self.entry_count = entry_count
        self.bytes_processed = bytes_processed


def _rss_mb() -> float:
    return psutil.Process().memory_info().rss / 1024 / 1024


class PerformanceProfiler:
    """
    Performance profiler for codec operations.

    Tracks duration, memory, CPU and throughput of each operation and keeps
    a history callers can summarize. Sessions are independent, so one
    profiler can watch concurrent operations.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the performance profiler.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.metrics_history: List[PerformanceMetrics] = []
        self._lock = threading.Lock()

    @contextmanager
    def profile_operation(self, operation_name: str):
        """
        Context manager for profiling operations.

        Metrics are only recorded when the block succeeds.

        Args:
            operation_name: Name of the operation being profiled

        Yields:
            The ProfilingSession, for ``record_output``
        """
        session = self.start_profiling(operation_name)
        try:
            yield session
        except BaseException:
            self.logger.debug(f"Profiling of {operation_name} abandoned after an error")
            raise
        self.stop_profiling(session)

    def start_profiling(self, operation_name: str) -> ProfilingSession:
        """
        Start profiling an operation.

        Args:
            operation_name: Name of the operation

        Returns:
            The new ProfilingSession
        """
        start_memory = _rss_mb()
        session = ProfilingSession(
            operation_name=operation_name,
            start_time=time.time(),
            start_memory=start_memory,
            peak_memory=start_memory,
        )
        self.logger.debug(f"Started profiling: {operation_name}")
        return session

    def sample_performance(self, session: ProfilingSession):
        """Sample current performance metrics."""
        try:
            process = psutil.Process()
            current_memory = process.memory_info().rss / 1024 / 1024  # MB
            cpu_percent = process.cpu_percent()

            session.peak_memory = max(session.peak_memory, current_memory)
            session.cpu_samples.append(cpu_percent)

        except psutil.Error as e:
            self.logger.warning(f"Performance sampling failed: {e}")

    def stop_profiling(self, session: ProfilingSession) -> PerformanceMetrics:
        """
        Stop profiling and return metrics.

        Args:
            session: Session returned by ``start_profiling``

        Returns:
            PerformanceMetrics object with collected data
        """
        self.sample_performance(session)
        end_time = time.time()
        duration = end_time - session.start_time

        try:
            end_memory = _rss_mb()
        except psutil.Error:
            end_memory = session.start_memory
        samples = session.cpu_samples
        avg_cpu = sum(samples) / len(samples) if samples else 0

        throughput = (session.bytes_processed / 1024 / 1024) / duration if duration > 0 else 0  # MB/s

        metrics = PerformanceMetrics(
            operation_name=session.operation_name,
            start_time=session.start_time,
            end_time=end_time,
            duration=duration,
            entry_count=session.entry_count,
            bytes_processed=session.bytes_processed,
            memory_peak_mb=session.peak_memory,
            memory_start_mb=session.start_memory,
            memory_end_mb=end_memory,
            cpu_percent=avg_cpu,
            throughput_mbps=throughput
        )

        with self._lock:
            self.metrics_history.append(metrics)

        self.logger.info(f"Performance Summary - {session.operation_name}: "
                         f"{duration:.3f}s, {session.entry_count} entries, "
                         f"{throughput:.2f} MB/s, peak {session.peak_memory:.1f} MB")
        return metrics

    def get_performance_summary(self) -> Dict[str, Any]:
        """
        Get summary of all performance metrics.

        Returns:
            Dictionary with performance summary
        """
        with self._lock:
            history = list(self.metrics_history)

        if not history:
            return {"total_operations": 0}

        return {
            "total_operations": len(history),
            "total_duration": sum(m.duration for m in history),
            "total_entries": sum(m.entry_count for m in history),
            "total_mb": sum(m.bytes_processed for m in history) / 1024 / 1024,
            "average_memory_peak_mb": sum(m.memory_peak_mb for m in history) / len(history),
            "operations": [
                {
                    "name": m.operation_name,
                    "duration": m.duration,
                    "entries": m.entry_count,
                    "throughput": m.throughput_mbps
                }
                for m in history
            ]
        }
