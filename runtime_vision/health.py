"""
Health checks for liveness and readiness probes.
"""
from datetime import datetime, timezone
from typing import Dict, Any
import os
import time
import psutil
import structlog
from .services.event_store import EventStore

log = structlog.get_logger()


class HealthChecker:
    """
    Health checker for the collector service.

    Provides:
    - Liveness (process uptime and store occupancy)
    - Readiness (can the service keep accepting events?)
    """

    def __init__(self, store: EventStore, service_name: str = "runtime-vision", version: str = "0.1.0"):
        self.store = store
        self.service_name = service_name
        self.version = version
        self._started_at = _process_start_time()

    def uptime(self) -> float:
        """Seconds since the process started."""
        return round(time.time() - self._started_at, 3)

    def liveness(self) -> Dict[str, Any]:
        """
        Liveness check. Always succeeds while the process is running.

        Returns:
            dict: status, uptime, distinct sessions and total stored events
        """
        return {
            "status": "ok",
            "uptime": self.uptime(),
            "sessions": self.store.session_count(),
            "totalEvents": self.store.total_events(),
        }

    def readiness(self) -> Dict[str, Any]:
        """
        Readiness check.

        Returns:
            dict: Readiness status with detailed check results
        """
        memory_check = self._check_memory()
        overall_status = "not_ready" if memory_check["status"] == "error" else "ready"

        return {
            "status": overall_status,
            "service": self.service_name,
            "version": self.version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {
                "memory": memory_check,
                "store": {
                    "status": "ok",
                    "sessions": self.store.session_count(),
                    "total_events": self.store.total_events(),
                },
            },
        }

    def _check_memory(self, threshold_mb: float = 50.0) -> Dict[str, Any]:
        """
        Check available memory.

        Args:
            threshold_mb: Minimum available memory in MB (default: 50.0)
        """
        try:
            memory = psutil.virtual_memory()
        except (psutil.Error, OSError) as e:
            log.warning("memory_health_check_failed", error=str(e))
            return {"status": "error", "error": str(e)}

        available_mb = memory.available / (1024**2)
        if available_mb < threshold_mb:
            status = "error"
        elif available_mb < threshold_mb * 2:
            status = "warning"
        else:
            status = "ok"

        return {
            "status": status,
            "available_mb": round(available_mb, 2),
            "used_percent": memory.percent,
        }


def _process_start_time() -> float:
    try:
        return psutil.Process(os.getpid()).create_time()
    except psutil.Error:
        return time.time()
