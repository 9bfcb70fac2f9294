# backend/autocrm/routes/system.py
"""
System health endpoint.

Reports whether the in-memory store answers queries and how many records
each collection holds.
"""

import time
from flask import Blueprint, current_app

from ..store import get_store
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_store_health() -> dict:
    """
    Check the store by counting every collection.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        store = get_store()
        sizes = store.collection_sizes()
        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                **sizes,
                "next_work_order_number": store.next_work_order_number,
            },
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Store health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Store error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: store healthy
    - 503: store unreachable
    """
    store_health = check_store_health()
    http_status = 200 if store_health["status"] == "healthy" else 503

    return {
        "status": store_health["status"],
        "timestamp": utcnow().isoformat() + "Z",
        "checks": {
            "store": store_health,
        },
    }, http_status
