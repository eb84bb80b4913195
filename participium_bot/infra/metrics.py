# participium_bot/infra/metrics.py
from __future__ import annotations
import time
from collections import defaultdict
from threading import Lock
from typing import Callable, Dict
from dataclasses import dataclass, field
from participium_bot.infra.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class Counter:
    """Monotonic counter"""
    value: int = 0

    def inc(self, amount: int = 1) -> None:
        self.value += amount


@dataclass
class Histogram:
    """Value distribution (e.g. update handling time)"""
    values: list[float] = field(default_factory=list)

    def observe(self, value: float) -> None:
        self.values.append(value)

    def get_stats(self) -> dict:
        if not self.values:
            return {"count": 0, "min": 0, "max": 0, "avg": 0, "p95": 0}

        ordered = sorted(self.values)
        count = len(ordered)
        return {
            "count": count,
            "min": ordered[0],
            "max": ordered[-1],
            "avg": sum(ordered) / count,
            "p95": ordered[min(int(count * 0.95), count - 1)],
        }


class MetricsCollector:
    """
    In-process counters, histograms and gauges.

    Gauges are callables sampled on read (e.g. the live session count).
    """

    def __init__(self):
        self._counters: Dict[str, Counter] = defaultdict(Counter)
        self._histograms: Dict[str, Histogram] = defaultdict(Histogram)
        self._gauges: Dict[str, Callable[[], float]] = {}
        self._lock = Lock()

    def inc_counter(self, name: str, amount: int = 1, labels: dict | None = None) -> None:
        key = self._make_key(name, labels)
        with self._lock:
            self._counters[key].inc(amount)

    def observe_histogram(self, name: str, value: float, labels: dict | None = None) -> None:
        key = self._make_key(name, labels)
        with self._lock:
            self._histograms[key].observe(value)

    def register_gauge(self, name: str, sample: Callable[[], float]) -> None:
        with self._lock:
            self._gauges[name] = sample

    def get_counter(self, name: str, **labels) -> int:
        key = self._make_key(name, labels or None)
        with self._lock:
            counter = self._counters.get(key)
            return counter.value if counter else 0

    def get_metrics(self) -> dict:
        with self._lock:
            counters = {k: v.value for k, v in self._counters.items()}
            histograms = {k: v.get_stats() for k, v in self._histograms.items()}
            gauges = dict(self._gauges)

        return {
            "counters": counters,
            "histograms": histograms,
            "gauges": {name: sample() for name, sample in gauges.items()},
        }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._histograms.clear()
            self._gauges.clear()
        logger.info("Metrics reset")

    @staticmethod
    def _make_key(name: str, labels: dict | None) -> str:
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"


_metrics = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    return _metrics


def inc_counter(name: str, amount: int = 1, **labels) -> None:
    _metrics.inc_counter(name, amount, labels or None)


def observe_histogram(name: str, value: float, **labels) -> None:
    _metrics.observe_histogram(name, value, labels or None)


class Timer:
    """Context manager that records elapsed seconds into a histogram"""

    def __init__(self, metric_name: str, **labels):
        self.metric_name = metric_name
        self.labels = labels
        self.start_time: float | None = None

    def __enter__(self):
        self.start_time = time.monotonic()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is not None:
            observe_histogram(self.metric_name, time.monotonic() - self.start_time, **self.labels)


class AppMetrics:
    """Report-bot metrics"""

    @staticmethod
    def update_received(kind: str) -> None:
        inc_counter("bot_updates_total", kind=kind)

    @staticmethod
    def session_started() -> None:
        inc_counter("sessions_started_total")

    @staticmethod
    def session_cancelled() -> None:
        inc_counter("sessions_cancelled_total")

    @staticmethod
    def input_ignored(step: str) -> None:
        inc_counter("inputs_ignored_total", step=step)

    @staticmethod
    def report_submitted() -> None:
        inc_counter("reports_submitted_total")

    @staticmethod
    def submission_failed(kind: str) -> None:
        inc_counter("submission_failures_total", kind=kind)

    @staticmethod
    def update_failed(kind: str) -> None:
        inc_counter("update_errors_total", kind=kind)

    @staticmethod
    def track_processing_time(kind: str) -> Timer:
        return Timer("update_processing_seconds", kind=kind)
