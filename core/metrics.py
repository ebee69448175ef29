# core/metrics.py - in-process metrics and RBAC audit logging
#
# Label values must come from closed sets (route templates, role values,
# permission tokens). Never label with raw client input.

import time
import threading
import logging
from typing import Dict, Any, Optional, List, Iterable, Tuple
from dataclasses import dataclass, field

LATENCY_BUCKETS_MS = (1.0, 5.0, 10.0, 25.0, 50.0, 100.0, 250.0, 1000.0, float("inf"))

LabelKey = Tuple[str, Tuple[Tuple[str, str], ...]]


@dataclass
class MetricCounter:
    """Monotonic counter for one (name, labels) series."""
    name: str
    labels: Dict[str, str] = field(default_factory=dict)
    value: int = 0


@dataclass
class MetricHistogram:
    """Per-bucket (non-cumulative) counts; the last bound is +Inf."""
    name: str
    labels: Dict[str, str] = field(default_factory=dict)
    counts: List[int] = field(default_factory=lambda: [0] * len(LATENCY_BUCKETS_MS))
    sum: float = 0.0
    count: int = 0

    def observe(self, value: float):
        self.sum += value
        self.count += 1
        for i, bound in enumerate(LATENCY_BUCKETS_MS):
            if value <= bound:
                self.counts[i] += 1
                return

    def stats(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "sum": self.sum,
            "avg": self.sum / self.count if self.count else 0.0,
            "buckets": {
                ("+Inf" if bound == float("inf") else str(bound)): n
                for bound, n in zip(LATENCY_BUCKETS_MS, self.counts)
            },
        }


def _series_key(name: str, labels: Optional[Dict[str, str]]) -> LabelKey:
    return name, tuple(sorted((labels or {}).items()))


class MetricsCollector:
    """Thread-safe counters and histograms keyed by (name, labels)."""

    def __init__(self):
        self._lock = threading.RLock()
        self._counters: Dict[LabelKey, MetricCounter] = {}
        self._histograms: Dict[LabelKey, MetricHistogram] = {}

    def increment_counter(self, name: str, value: int = 1, labels: Dict[str, str] = None):
        with self._lock:
            key = _series_key(name, labels)
            counter = self._counters.get(key)
            if counter is None:
                counter = self._counters[key] = MetricCounter(name, dict(labels or {}))
            counter.value += value

    def observe_histogram(self, name: str, value: float, labels: Dict[str, str] = None):
        with self._lock:
            key = _series_key(name, labels)
            histogram = self._histograms.get(key)
            if histogram is None:
                histogram = self._histograms[key] = MetricHistogram(name, dict(labels or {}))
            histogram.observe(value)

    def get_counter(self, name: str, labels: Dict[str, str] = None) -> int:
        with self._lock:
            counter = self._counters.get(_series_key(name, labels))
            return counter.value if counter else 0

    def get_all_metrics(self) -> Dict[str, Any]:
        """Every series, grouped by metric name."""
        with self._lock:
            counters: Dict[str, List[Dict[str, Any]]] = {}
            for counter in self._counters.values():
                counters.setdefault(counter.name, []).append(
                    {"value": counter.value, "labels": dict(counter.labels)}
                )

            histograms: Dict[str, List[Dict[str, Any]]] = {}
            for histogram in self._histograms.values():
                histograms.setdefault(histogram.name, []).append(
                    {"stats": histogram.stats(), "labels": dict(histogram.labels)}
                )

            return {"counters": counters, "histograms": histograms, "timestamp": time.time()}

    def reset_metrics(self):
        with self._lock:
            self._counters.clear()
            self._histograms.clear()


_metrics = MetricsCollector()

audit_logger = logging.getLogger("rbac.audit")


def increment_counter(name: str, value: int = 1, labels: Dict[str, str] = None):
    _metrics.increment_counter(name, value, labels)


def observe_histogram(name: str, value: float, labels: Dict[str, str] = None):
    _metrics.observe_histogram(name, value, labels)


def get_counter(name: str, labels: Dict[str, str] = None) -> int:
    """Get the current value of a counter (0 if never incremented)."""
    return _metrics.get_counter(name, labels)


def get_all_metrics() -> Dict[str, Any]:
    return _metrics.get_all_metrics()


def reset_metrics():
    _metrics.reset_metrics()


def record_api_call(endpoint: str, method: str, status_code: int, latency_ms: float):
    """Record an API call. `endpoint` is the matched route template, not the raw path."""
    increment_counter("api.calls", labels={"endpoint": endpoint, "method": method, "status": str(status_code)})
    observe_histogram("api.latency_ms", latency_ms, labels={"endpoint": endpoint})


# ============================================================================
# RBAC-Specific Metrics and Auditing
# ============================================================================

def _label(value: Any) -> str:
    return str(value) if value is not None else "none"


def record_rbac_resolution(success: bool = True, auth_method: str = "unknown"):
    """
    Record a role resolution attempt.

    Args:
        success: Whether resolution produced a known role
        auth_method: Authentication method used
    """
    increment_counter("rbac.resolutions", labels={"success": str(success).lower()})
    increment_counter("rbac.resolutions.by_method", labels={"method": auth_method})


def record_rbac_check(allowed: bool, permissions: Iterable[Any], role: Any, route: str = ""):
    """
    Record an RBAC authorization check.

    Args:
        allowed: Whether access was granted
        permissions: Permission keys that were checked
        role: Caller's role (None when unresolved)
        route: Route being accessed
    """
    required = ",".join(str(p) for p in permissions)
    if allowed:
        increment_counter("rbac.allowed")
        increment_counter("rbac.allowed.by_permission", labels={"permission": required})
    else:
        increment_counter("rbac.denied")
        increment_counter("rbac.denied.by_permission", labels={"permission": required})
        increment_counter("rbac.denied.by_role", labels={"role": _label(role)})
        if route:
            increment_counter("rbac.denied.by_route", labels={"route": route})


def record_role_distribution(role: Any):
    """
    Record role distribution (tracks which roles are being used).

    Args:
        role: Role of the resolved session (None for no role)
    """
    increment_counter("rbac.role_distribution", labels={"role": _label(role)})


def audit_rbac_denial(
    permissions: Iterable[Any],
    user_id: Optional[str],
    role: Any,
    route: str,
    method: str = "unknown",
    metadata: Optional[Dict[str, Any]] = None
):
    """
    Emit audit log entry for RBAC denial.

    Creates structured log entry for security monitoring.

    Args:
        permissions: Permission keys that were required
        user_id: User ID who was denied (None for anonymous)
        role: User's role (None when unresolved)
        route: Route/endpoint being accessed
        method: HTTP method
        metadata: Additional context
    """
    required = [str(p) for p in permissions]
    audit_entry = {
        "event": "rbac_denial",
        "permissions": required,
        "user_id": user_id or "anonymous",
        "role": _label(role),
        "route": route,
        "method": method,
        "timestamp": time.time(),
    }

    if metadata:
        audit_entry["metadata"] = metadata

    audit_logger.warning(
        f"RBAC_DENIAL permissions={','.join(required)} user={user_id or 'anonymous'} "
        f"role={_label(role)} route={method} {route}",
        extra={"audit": audit_entry}
    )

    increment_counter("rbac.audit.denials")
    for permission in required:
        increment_counter("rbac.audit.denials.by_permission", labels={"permission": permission})


def get_rbac_metrics() -> Dict[str, Any]:
    """
    Get all RBAC-related metrics.

    Returns:
        Dictionary of RBAC counters grouped by category
        (resolutions, allowed, denied, role_distribution, audit)
    """
    all_metrics = _metrics.get_all_metrics()

    rbac_metrics: Dict[str, Dict[str, Any]] = {
        "resolutions": {},
        "allowed": {},
        "denied": {},
        "role_distribution": {},
        "audit": {},
    }

    for metric_name, metric_data in all_metrics.get("counters", {}).items():
        if metric_name.startswith("rbac."):
            category = metric_name.split(".")[1]
            rbac_metrics.setdefault(category, {})[metric_name] = metric_data

    return rbac_metrics


def reset_rbac_metrics():
    """Reset all RBAC-related metrics (useful for testing)."""
    # The collector has no selective reset.
    _metrics.reset_metrics()


__all__ = [
    'MetricsCollector', 'MetricCounter', 'MetricHistogram',
    'increment_counter', 'observe_histogram', 'get_counter',
    'get_all_metrics', 'reset_metrics', 'LATENCY_BUCKETS_MS',
    'record_api_call',
    # RBAC metrics
    'record_rbac_resolution', 'record_rbac_check', 'record_role_distribution',
    'audit_rbac_denial', 'get_rbac_metrics', 'reset_rbac_metrics',
]
