from __future__ import annotations

import time
from datetime import date
from typing import Any, Callable, Dict, List

from flask import Blueprint, Response, jsonify, request

from sinkingfund.models.errors import ContributionError
from sinkingfund.models.schemas import (
    Daily,
    DayRule,
    MonthlyByDate,
    MonthlyByRule,
    Once,
    RecurrenceRule,
    Weekly,
    Yearly,
)
from sinkingfund.services.schedule_service import create_transaction_model
from sinkingfund.utils.financial import to_decimal
from sinkingfund.utils.performance import record_build
from sinkingfund.utils.time_utils import parse_date, parse_optional_date

schedules_bp = Blueprint("schedules", __name__)

BASE = "/sinkingfund/v1"


#Shared parsing helpers
def _require_field(obj: Dict[str, Any], key: str) -> Any:
    if key not in obj:
        raise KeyError(f"Missing required field: {key!r}")
    return obj[key]


def _require_int(obj: Dict[str, Any], key: str, default: int | None = None) -> int:
    val = obj.get(key, default)
    if val is None:
        raise KeyError(f"Missing required field: {key!r}")
    if isinstance(val, bool) or not isinstance(val, int):
        raise ValueError(f"Field {key!r} must be an integer, got {type(val).__name__}.")
    return val


def _require_int_list(obj: Dict[str, Any], key: str) -> List[int]:
    val = _require_field(obj, key)
    if not isinstance(val, list) or any(
        isinstance(v, bool) or not isinstance(v, int) for v in val
    ):
        raise ValueError(f"Field {key!r} must be a list of integers.")
    return val


def _parse_day_rule(raw: Dict[str, Any]) -> DayRule:
    val = _require_field(raw, "dayRule")
    if not isinstance(val, str):
        raise ValueError(f"Field 'dayRule' must be a string, got {type(val).__name__}.")
    return DayRule(val.upper())


def _parse_once(raw: Dict[str, Any]) -> Once:
    return Once()


def _parse_daily(raw: Dict[str, Any]) -> Daily:
    return Daily(interval_days=_require_int(raw, "interval", 1))


def _parse_weekly(raw: Dict[str, Any]) -> Weekly:
    return Weekly(
        interval_weeks=_require_int(raw, "interval", 1),
        weekdays=tuple(_require_int_list(raw, "weekdays")),
    )


def _parse_monthly_by_date(raw: Dict[str, Any]) -> MonthlyByDate:
    return MonthlyByDate(
        interval_months=_require_int(raw, "interval", 1),
        days=tuple(_require_int_list(raw, "days")),
    )


def _parse_monthly_by_rule(raw: Dict[str, Any]) -> MonthlyByRule:
    return MonthlyByRule(
        interval_months=_require_int(raw, "interval", 1),
        occurrence=_require_int(raw, "occurrence"),
        day_rule=_parse_day_rule(raw),
    )


def _parse_yearly(raw: Dict[str, Any]) -> Yearly:
    has_rule = "occurrence" in raw or "dayRule" in raw
    return Yearly(
        interval_years=_require_int(raw, "interval", 1),
        months=tuple(_require_int_list(raw, "months")),
        occurrence=_require_int(raw, "occurrence") if has_rule else None,
        day_rule=_parse_day_rule(raw) if has_rule else None,
    )


_RULE_PARSERS: Dict[str, Callable[[Dict[str, Any]], RecurrenceRule]] = {
    "once": _parse_once,
    "daily": _parse_daily,
    "weekly": _parse_weekly,
    "monthly_by_date": _parse_monthly_by_date,
    "monthly_by_rule": _parse_monthly_by_rule,
    "yearly": _parse_yearly,
}


def parse_rule(raw: Any) -> RecurrenceRule:
    """
    Build a recurrence rule from its JSON form.

    Raises ``ValueError`` (unknown type, bad field, unknown day rule) or
    ``KeyError`` (missing field).
    """
    if not isinstance(raw, dict):
        raise ValueError("'rule' must be an object.")
    kind = _require_field(raw, "type")
    parser = _RULE_PARSERS.get(kind)
    if parser is None:
        raise ValueError(
            f"Unknown rule type {kind!r}. Expected one of: {', '.join(_RULE_PARSERS)}"
        )
    return parser(raw)


#Endpoint: build
@schedules_bp.route(f"{BASE}/schedules:build", methods=["POST"])
def build_schedule() -> tuple[Response, int]:

    body: Dict[str, Any] | None = request.get_json(silent=True)
    if not isinstance(body, dict):
        return jsonify({"error": "Invalid or missing JSON body."}), 400

    try:
        value = to_decimal(_require_field(body, "value"))
        rule = parse_rule(_require_field(body, "rule"))
        start = parse_date(_require_field(body, "start"))
        end = parse_optional_date(body.get("end"))
        now = parse_optional_date(body.get("now")) or date.today()
        minimum = body.get("minimumValue")
        minimum_value = to_decimal(minimum) if minimum is not None else None
    except (ValueError, TypeError, KeyError) as exc:
        return jsonify({"error": str(exc)}), 422

    if value <= 0:
        return jsonify({"error": "'value' must be a positive number."}), 422
    if end is not None and end < start:
        return jsonify({"error": "'end' must not be before 'start'."}), 422

    started = time.perf_counter()
    try:
        model = create_transaction_model(
            value, rule, start, end, now=now, minimum_value=minimum_value,
        )
    except ContributionError as exc:
        return jsonify(exc.to_dict()), 422
    except (ValueError, OverflowError) as exc:
        return jsonify({"error": str(exc)}), 422
    record_build(len(model.segments), (time.perf_counter() - started) * 1_000)

    return jsonify(model.to_dict()), 200
