"""
Health checks for liveness and readiness probes.
"""
import time
from typing import Dict, Any
import psutil
from .event_models import utc_now_iso
from .logging import get_logger

logger = get_logger()


class HealthChecker:
    """
    Health checker for the webhook aggregator.

    Provides:
    - Liveness checks (is the service running?)
    - Readiness checks (can the store be reached, are resources available?)
    """

    def __init__(self, service_name: str = "webhook-aggregator", version: str = "0.1.0"):
        self.service_name = service_name
        self.version = version

    def liveness(self) -> Dict[str, Any]:
        return {
            "status": "ok",
            "service": self.service_name,
            "version": self.version,
            "timestamp": utc_now_iso(),
        }

    async def readiness(self, service) -> Dict[str, Any]:
        """
        Readiness check.

        Args:
            service: AggregationService whose store is probed

        Returns:
            dict: Readiness status with detailed check results
        """
        checks = {
            "store": await self._check_store(service),
            "disk_space": self._check_disk_space(),
            "memory": self._check_memory(),
        }
        overall_status = "ready"
        if any(check["status"] == "error" for check in checks.values()):
            overall_status = "not_ready"

        return {
            "status": overall_status,
            "service": self.service_name,
            "version": self.version,
            "timestamp": utc_now_iso(),
            "checks": checks,
            "pending_timers": len(service.timer),
        }

    async def _check_store(self, service) -> Dict[str, Any]:
        start = time.time()
        healthy = await service.health_check()
        latency_ms = round((time.time() - start) * 1000, 2)
        if not healthy:
            return {"status": "error", "adapter": type(service.store).__name__}
        return {
            "status": "ok",
            "adapter": type(service.store).__name__,
            "latency_ms": latency_ms,
        }

    def _check_disk_space(self, threshold_gb: float = 1.0) -> Dict[str, Any]:
        """
        Check available disk space.

        Args:
            threshold_gb: Minimum available disk space in GB (default: 1.0)
        """
        try:
            disk = psutil.disk_usage("/")
            available_gb = disk.free / (1024**3)

            if available_gb < threshold_gb:
                status = "error"
            elif available_gb < threshold_gb * 2:
                status = "warning"
            else:
                status = "ok"

            return {
                "status": status,
                "available_gb": round(available_gb, 2),
                "used_percent": disk.percent,
            }

        except Exception as e:
            logger.warning("disk_health_check_failed", error=str(e))
            return {"status": "error", "error": str(e)}

    def _check_memory(self, threshold_mb: float = 50.0) -> Dict[str, Any]:
        """
        Check available memory.

        Args:
            threshold_mb: Minimum available memory in MB (default: 50.0)
        """
        try:
            memory = psutil.virtual_memory()
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

        except Exception as e:
            logger.warning("memory_health_check_failed", error=str(e))
            return {"status": "error", "error": str(e)}
