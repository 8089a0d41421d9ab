"""
Performance metrics route.

Endpoint
--------
GET /sinkingfund/v1/performance

Returns the execution time of the most recently completed request,
current process RSS memory usage, active thread count and the size and
duration of the last schedule build.
"""

from __future__ import annotations

from flask import Blueprint, Response, jsonify

from sinkingfund import get_last_request_time_ms
from sinkingfund.utils.performance import collect_performance_snapshot

performance_bp = Blueprint("performance", __name__)

BASE = "/sinkingfund/v1"


@performance_bp.route(f"{BASE}/performance", methods=["GET"])
def get_performance() -> tuple[Response, int]:
    """
    Return a live performance snapshot.

    Response body::

        {"time": "X.XXXX ms", "memory": "XXX.XX MB", "threads": integer,
         "lastBuild": {"segments": integer, "time": "X.XXXX ms"} | null}

    Useful for watching how long a long-horizon schedule build took.
    """
    snapshot = collect_performance_snapshot(get_last_request_time_ms())
    return jsonify(snapshot), 200
