"""
api/debug.py - Debug and observability endpoints.

Provides:
- /debug/metrics - RBAC counters and API latency
- /debug/config - Sanitized configuration
"""

from typing import Any, Dict

from fastapi import APIRouter, Request

from api.guards import require
from config import get_debug_config
from core.metrics import get_all_metrics, get_counter, get_rbac_metrics

router = APIRouter(prefix="/debug", tags=["debug"])


@router.get("/metrics")
@require("audit:read:system")
def get_metrics(request: Request) -> Dict[str, Any]:
    """RBAC resolution, allow/deny and audit counters, plus latency per endpoint."""
    allowed = get_counter("rbac.allowed")
    denied = get_counter("rbac.denied")
    total = allowed + denied

    return {
        "rbac": get_rbac_metrics(),
        "totals": {
            "allowed": allowed,
            "denied": denied,
            "denial_rate": denied / total if total else 0.0,
        },
        "api_latency_ms": {
            entry["labels"].get("endpoint", ""): entry["stats"]
            for entry in get_all_metrics()["histograms"].get("api.latency_ms", [])
        },
    }


@router.get("/config")
@require("audit:read:system")
def get_config(request: Request) -> Dict[str, Any]:
    """Configuration with secrets and API keys stripped."""
    return get_debug_config(getattr(request.app.state, "config", None))
