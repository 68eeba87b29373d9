# ============================================================================
# OBSERVABILITY
# ============================================================================
# STATUS: Core - Tracing and metrics
# PURPOSE: Telemetry export for reconciliation passes and process groups
# CREATED: 09 OCT 2026
# ============================================================================
"""
Observability

Thin layer over the OpenTelemetry API:
- Tracing: one span per pass and per sub-reconciler step
- Metrics: counters for pass outcomes, gauges for process group state

Without a configured OpenTelemetry SDK the API calls are no-ops; the
collector still keeps the last value of every series locally so the
HTTP status endpoints and tests can read them.

Usage:
    from core.observability import get_tracer, get_metrics

    with get_tracer().start_span("reconcile", {"kind": "cluster"}):
        get_metrics().counter("fdb_reconcile_passes", tags={"outcome": "done"})
"""

import logging
import os
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Optional, Tuple

from opentelemetry import metrics as otel_metrics
from opentelemetry import trace as otel_trace
from opentelemetry.metrics import CallbackOptions, Observation

logger = logging.getLogger(__name__)

SeriesKey = Tuple[str, FrozenSet[Tuple[str, str]]]


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class ObservabilityConfig:
    """Configuration for observability."""
    service_name: str = "fdb-reconciler"
    enable_tracing: bool = True
    enable_metrics: bool = True

    @classmethod
    def from_env(cls) -> "ObservabilityConfig":
        """Create config from environment variables."""
        return cls(
            service_name=os.getenv("OTEL_SERVICE_NAME", "fdb-reconciler"),
            enable_tracing=os.getenv("ENABLE_TRACING", "true").lower() == "true",
            enable_metrics=os.getenv("ENABLE_METRICS", "true").lower() == "true",
        )


# ============================================================================
# TRACING
# ============================================================================

class Tracer:
    """Creates spans through the OpenTelemetry tracer."""

    def __init__(self, name: str = "fdb-reconciler", enabled: bool = True):
        self.name = name
        self.enabled = enabled
        self._otel_tracer = otel_trace.get_tracer(name)

    @contextmanager
    def start_span(
        self,
        name: str,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> Iterator[Any]:
        """
        Start a new span.

        Exceptions escaping the block mark the span as errored and
        propagate unchanged.
        """
        if not self.enabled:
            yield otel_trace.INVALID_SPAN
            return

        start = time.monotonic()
        with self._otel_tracer.start_as_current_span(
            name,
            attributes=attributes or {},
            record_exception=True,
            set_status_on_exception=True,
        ) as span:
            try:
                yield span
            finally:
                logger.debug(f"Span completed: {name} ({(time.monotonic() - start) * 1000:.2f}ms)")


# ============================================================================
# METRICS
# ============================================================================

def _series_key(name: str, tags: Optional[Dict[str, str]]) -> SeriesKey:
    return name, frozenset((tags or {}).items())


class MetricsCollector:
    """
    Collects counters and gauges.

    Counters are forwarded to OpenTelemetry counters; gauges are exposed
    as observable gauges reading the locally held values.
    """

    def __init__(self, meter_name: str = "fdb-reconciler", enabled: bool = True):
        self.enabled = enabled
        self._lock = threading.Lock()
        self._counters: Dict[SeriesKey, float] = {}
        self._gauges: Dict[SeriesKey, float] = {}
        self._meter = otel_metrics.get_meter(meter_name)
        self._otel_counters: Dict[str, Any] = {}
        self._otel_gauges: Dict[str, Any] = {}

    def counter(
        self,
        name: str,
        value: float = 1.0,
        tags: Optional[Dict[str, str]] = None,
    ) -> None:
        """Increment a counter metric."""
        key = _series_key(name, tags)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + value

        if self.enabled:
            instrument = self._otel_counters.get(name)
            if instrument is None:
                instrument = self._meter.create_counter(name)
                self._otel_counters[name] = instrument
            instrument.add(value, attributes=tags or {})

        logger.debug(f"Metric counter: {name}={value} {tags or ''}")

    def gauge(
        self,
        name: str,
        value: float,
        tags: Optional[Dict[str, str]] = None,
    ) -> None:
        """Set a gauge metric."""
        with self._lock:
            self._gauges[_series_key(name, tags)] = value

        if self.enabled and name not in self._otel_gauges:
            self._otel_gauges[name] = self._meter.create_observable_gauge(
                name,
                callbacks=[self._gauge_callback(name)],
            )

    def remove_gauges(self, tags: Dict[str, str], names: Optional[Iterable[str]] = None) -> int:
        """
        Drop every gauge series carrying all of the given tags.

        Returns:
            Number of series removed
        """
        wanted = set(tags.items())
        names = set(names) if names is not None else None
        with self._lock:
            stale = [
                key for key in self._gauges
                if wanted <= key[1] and (names is None or key[0] in names)
            ]
            for key in stale:
                del self._gauges[key]
        return len(stale)

    def _gauge_callback(self, name: str):
        def observe(options: CallbackOptions):
            with self._lock:
                series = [(k, v) for k, v in self._gauges.items() if k[0] == name]
            for (_, tags), value in series:
                yield Observation(value, dict(tags))
        return observe

    def get_counter(self, name: str, tags: Optional[Dict[str, str]] = None) -> float:
        with self._lock:
            return self._counters.get(_series_key(name, tags), 0.0)

    def get_gauge(self, name: str, tags: Optional[Dict[str, str]] = None) -> Optional[float]:
        with self._lock:
            return self._gauges.get(_series_key(name, tags))

    def clear(self) -> None:
        """Clear locally held values."""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()


# ============================================================================
# GLOBAL INSTANCES
# ============================================================================

_config: Optional[ObservabilityConfig] = None
_tracer: Optional[Tracer] = None
_metrics: Optional[MetricsCollector] = None


def initialize(config: Optional[ObservabilityConfig] = None) -> None:
    """Initialize observability (uses env vars if no config is given)."""
    global _config, _tracer, _metrics

    _config = config or ObservabilityConfig.from_env()
    _tracer = Tracer(_config.service_name, enabled=_config.enable_tracing)
    _metrics = MetricsCollector(_config.service_name, enabled=_config.enable_metrics)

    logger.info(
        f"Observability initialized: service={_config.service_name}, "
        f"tracing={_config.enable_tracing}, metrics={_config.enable_metrics}"
    )


def get_tracer() -> Tracer:
    """Get the global tracer."""
    if _tracer is None:
        initialize()
    return _tracer


def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    if _metrics is None:
        initialize()
    return _metrics


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ObservabilityConfig",
    "Tracer",
    "MetricsCollector",
    "initialize",
    "get_tracer",
    "get_metrics",
]
