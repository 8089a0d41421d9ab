"""
Recurrence and calendar lookup routes.

Endpoints
---------
POST /sinkingfund/v1/recurrences:dates
GET  /sinkingfund/v1/calendar/<year>/<month>?occurrence=<n>&day=<rule>
"""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, Response, jsonify, request

from sinkingfund.models.schemas import DayRule
from sinkingfund.routes.schedules import parse_rule
from sinkingfund.services.calendar_service import resolve
from sinkingfund.services.recurrence_service import payment_dates, period_length
from sinkingfund.services.schedule_service import MAX_RANGE_DAYS
from sinkingfund.utils.time_utils import format_date, format_optional_date, parse_date, parse_optional_date

recurrences_bp = Blueprint("recurrences", __name__)

BASE = "/sinkingfund/v1"


@recurrences_bp.route(f"{BASE}/recurrences:dates", methods=["POST"])
def recurrence_dates() -> tuple[Response, int]:
    """
    Expand a rule into its payment dates.

    Without ``end`` the window is one default period long.
    """
    body: Dict[str, Any] | None = request.get_json(silent=True)
    if not isinstance(body, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400

    try:
        if "rule" not in body or "start" not in body:
            raise KeyError("Missing required field: 'rule' or 'start'")
        rule = parse_rule(body["rule"])
        start = parse_date(body["start"])
        end = parse_optional_date(body.get("end"))
    except (ValueError, TypeError, KeyError) as exc:
        return jsonify({"error": str(exc)}), 422

    if end is not None and end < start:
        return jsonify({"error": "'end' must not be before 'start'."}), 422
    if end is not None and (end - start).days > MAX_RANGE_DAYS:
        return jsonify({"error": "Date ranges greater than 10 years are unsupported."}), 422

    try:
        dates = payment_dates(rule, start, end)
        length = period_length(rule)
    except (ValueError, OverflowError) as exc:
        return jsonify({"error": str(exc)}), 422

    return jsonify({
        "periodLength": length.days,
        "dates": [format_date(d) for d in dates],
    }), 200


@recurrences_bp.route(f"{BASE}/calendar/<int:year>/<int:month>", methods=["GET"])
def calendar_day(year: int, month: int) -> tuple[Response, int]:
    """Resolve the nth (``occurrence=0`` for last) day rule of a month."""
    if not 1 <= month <= 12:
        return jsonify({"error": f"Invalid month {month}."}), 422
    if not 1 <= year <= 9999:
        return jsonify({"error": f"Invalid year {year}."}), 422

    try:
        occurrence = int(request.args.get("occurrence", "1"))
        day_rule = DayRule(request.args.get("day", DayRule.CALENDAR_DAY.value).upper())
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 422

    resolved = resolve(year, month, occurrence, day_rule)
    return jsonify({"date": format_optional_date(resolved)}), 200
