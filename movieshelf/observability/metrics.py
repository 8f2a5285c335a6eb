"""
movieshelf/observability/metrics.py

This module contains Prometheus metrics definitions.
Keeping metrics in a dedicated module prevents circular imports
between FastAPI app startup (main.py) and the routers.
"""

from prometheus_client import Counter


"""
Global Prometheus counter for authentication requests.
Labels:
    endpoint: register, login or me
    result: success or failure
"""
AUTH_REQUESTS = Counter(
    name="auth_requests_total",
    documentation="Total number of authentication requests.",
    labelnames=["endpoint", "result"],
)

"""
Counter for rating writes.
Labels:
    result: created or updated
"""
RATING_UPSERTS = Counter(
    name="rating_upserts_total",
    documentation="Total number of saved ratings.",
    labelnames=["result"],
)
