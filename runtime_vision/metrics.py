"""
Prometheus metrics for the collector service.
"""
from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry
import psutil
import os
from typing import Any

# Any other type tag is counted under "custom"
BUILTIN_EVENT_TYPES = frozenset({"net", "console", "error"})


class Metrics:
    """
    Centralized metrics for the collector service.
    """

    def __init__(self, service_name: str = "runtime-vision", version: str = "0.1.0", registry=None):
        self.service_name = service_name
        self.version = version
        self.registry = registry or CollectorRegistry()

        # HTTP Metrics
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["service", "method", "path", "status"],
            registry=self.registry,
        )

        self.http_request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["service", "method", "path"],
            registry=self.registry,
        )

        self.http_requests_active = Gauge(
            "http_requests_active",
            "Number of active HTTP requests",
            ["service"],
            registry=self.registry,
        )
        self.http_requests_active.labels(service=service_name).set(0)

        # Application Info
        self.app_info = Info("app", "Application information", registry=self.registry)
        self.app_info.info({"service": service_name, "version": version})

        self.app_up = Gauge(
            "app_up",
            "Application up status (1=up, 0=down)",
            ["service", "version"],
            registry=self.registry,
        )
        self.app_up.labels(service=service_name, version=version).set(1)

        # Event store
        self.events_ingested_total = Counter(
            "runtime_vision_events_ingested_total",
            "Total events ingested",
            ["event_type"],
            registry=self.registry,
        )

        self.events_evicted_total = Counter(
            "runtime_vision_events_evicted_total",
            "Events dropped from a full session buffer",
            registry=self.registry,
        )

        self.events_stored = Gauge(
            "runtime_vision_events_stored",
            "Events currently held across all sessions",
            registry=self.registry,
        )

        self.sessions_active = Gauge(
            "runtime_vision_sessions",
            "Number of distinct sessions held",
            registry=self.registry,
        )

        self.event_size_bytes = Histogram(
            "runtime_vision_event_size_bytes",
            "Ingested event body size in bytes",
            ["event_type"],
            registry=self.registry,
        )

        self.process_memory_bytes = Gauge(
            "process_resident_memory_bytes",
            "Resident memory size in bytes",
            ["service"],
            registry=self.registry,
        )

    def update_system_metrics(self):
        """Refresh process metrics from psutil."""
        try:
            rss = psutil.Process(os.getpid()).memory_info().rss
        except psutil.Error:
            return
        self.process_memory_bytes.labels(service=self.service_name).set(rss)

    def record_event_ingested(self, event_type: Any, size_bytes: int, evicted: int = 0):
        """Record one accepted ingestion."""
        label = event_type if isinstance(event_type, str) and event_type in BUILTIN_EVENT_TYPES else "custom"
        self.events_ingested_total.labels(event_type=label).inc()
        self.event_size_bytes.labels(event_type=label).observe(size_bytes)
        if evicted:
            self.events_evicted_total.inc(evicted)

    def set_store_size(self, sessions: int, events: int):
        """Set the store occupancy gauges."""
        self.sessions_active.set(sessions)
        self.events_stored.set(events)
