"""
Shared metrics configuration for the service token library.
"""

from prometheus_client import Counter, Histogram, CollectorRegistry
from typing import Dict, Any, Optional
import time
from contextlib import contextmanager


class MetricsCollector:
    """Centralized metrics collector for token issuance and validation.

    Metrics are only registered with ``registry`` when one is given, so
    several collectors can coexist (e.g. in tests) without duplicate
    time-series errors.
    """
    
    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()
    
    def _setup_metrics(self):
        """Set up token metrics for the service."""
        
        # Error metrics
        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )
        
        self._metrics["tokens_issued_total"] = Counter(
            "tokens_issued_total",
            "Total tokens issued",
            ["audience", "service"],
            registry=self.registry
        )
        
        self._metrics["token_validations_total"] = Counter(
            "token_validations_total",
            "Total token validations",
            ["status", "reason", "service"],
            registry=self.registry
        )
        
        self._metrics["token_validation_duration_seconds"] = Histogram(
            "token_validation_duration_seconds",
            "Token validation duration in seconds",
            ["service"],
            registry=self.registry
        )
    
    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)
    
    def record_token_issued(self, audience: str):
        """Record a minted token."""
        self._metrics["tokens_issued_total"].labels(
            audience=audience,
            service=self.service_name
        ).inc()
    
    def record_token_validation(self, status: str, reason: str = "ok"):
        """Record the outcome of a token validation."""
        self._metrics["token_validations_total"].labels(
            status=status,
            reason=reason,
            service=self.service_name
        ).inc()
    
    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()
    
    @contextmanager
    def time_operation(self, operation_name: str):
        """Context manager to time an operation."""
        start_time = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - start_time
            if operation_name in self._metrics:
                self._metrics[operation_name].labels(service=self.service_name).observe(duration)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
