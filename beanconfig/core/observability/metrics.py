from __future__ import annotations

import re
from collections import Counter
from typing import Dict, Optional

from prometheus_client import Counter as PromCounter
from prometheus_client import Histogram

# Admin operation counters, keyed "op|outcome"
_OPERATIONS = Counter()

# Named counters (custom)
_NAMED = Counter()

ADMIN_OPERATIONS_TOTAL = PromCounter(
    "beanconfig_admin_operations_total",
    "Admin operations by outcome",
    ["operation", "outcome"],
)

ADMIN_OPERATION_SECONDS = Histogram(
    "beanconfig_admin_operation_seconds",
    "Admin operation duration in seconds",
    ["operation"],
)

HTTP_REQUESTS_TOTAL = PromCounter(
    "beanconfig_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "beanconfig_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)


def normalize_path(path: str) -> str:
    """Reduce high-cardinality paths for metrics labels."""
    p = path or "/"
    p = re.sub(r"^/api/v1/beans/[^/]+/[^/]+$", "/api/v1/beans/:schema/:id", p)
    p = re.sub(r"^/api/v1/beans/[^/]+$", "/api/v1/beans/:schema", p)
    p = re.sub(r"^/api/v1/schemas/[^/]+$", "/api/v1/schemas/:name", p)
    return p


def reset_metrics() -> None:
    """
    Test helper: clears the in-process counters to avoid cross-test leakage.
    Prometheus collectors are process global and are left alone.
    """
    _OPERATIONS.clear()
    _NAMED.clear()


def observe_operation(operation: str, outcome: str, seconds: Optional[float] = None) -> None:
    _OPERATIONS[f"{operation}|{outcome}"] += 1
    ADMIN_OPERATIONS_TOTAL.labels(operation=operation, outcome=outcome).inc()
    if seconds is not None:
        ADMIN_OPERATION_SECONDS.labels(operation=operation).observe(seconds)


def inc_http(method: str, path: str, status: Optional[int] = None, seconds: Optional[float] = None) -> None:
    m = (method or "UNKNOWN").upper()
    p = normalize_path(path)
    s = str(status) if status is not None else "unknown"
    HTTP_REQUESTS_TOTAL.labels(method=m, path=p, status=s).inc()
    if seconds is not None:
        HTTP_REQUEST_DURATION_SECONDS.labels(method=m, path=p).observe(seconds)


def inc_named(name: str, value: int = 1) -> None:
    if not name:
        return
    _NAMED[name] += int(value)


def snapshot_operations() -> Dict[str, int]:
    return dict(_OPERATIONS)


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)
