from __future__ import annotations
from typing import Any, Dict, List

from flask import Blueprint, current_app, request

from payroll_api.common.auth import requires_perms
from payroll_api.common.errors import APIError
from payroll_api.common.http import ok
from payroll_api.services.salary_format import salary_summary, validate_inputs
from payroll_api.services.salary_sources import build_calculator
from payroll_api.services.salary_types import ErrorEntry

bp = Blueprint("salary", __name__, url_prefix="/api/v1/salary")

_RATE_KEYS = ("daily_rate", "dailyRate", "hourly_rate", "hourlyRate", "daily_hours", "dailyHours")


# ---------- helpers ----------
def _body() -> Dict[str, Any]:
    j = request.get_json(silent=True)
    if not isinstance(j, dict):
        raise APIError("BAD_REQUEST", "JSON object body required", 400)
    return j

def _rate(j: Dict[str, Any]):
    """Explicit 'rate' object, else top-level rate keys, else the configured daily rate."""
    if j.get("rate") is not None:
        return j["rate"]
    flat = {k: j[k] for k in _RATE_KEYS if j.get(k) not in (None, "")}
    if flat:
        return flat
    return {"daily_rate": current_app.config["PAYROLL_DEFAULT_DAILY_RATE"]}

def _emp(j: Dict[str, Any]):
    return j.get("employee_id", j.get("employeeId"))

def _start(j: Dict[str, Any]):
    return j.get("start_date", j.get("startDate"))

def _end(j: Dict[str, Any]):
    return j.get("end_date", j.get("endDate"))


# ---------- routes ----------
@bp.post("/calculate")
@requires_perms("payroll.salary.read")
def calculate():
    """
    Body:
    {
      "employee_id": "emp-001",
      "start_date": "YYYY-MM-DD",
      "end_date": "YYYY-MM-DD",
      "rate": {"daily_rate": 750}            // or {"hourly_rate": 100, "daily_hours": 8}
    }
    """
    j = _body()
    calc = build_calculator().calculate(_emp(j), _start(j), _end(j), _rate(j))
    return ok(calc.to_dict())


@bp.post("/calculate-batch")
@requires_perms("payroll.salary.read")
def calculate_batch():
    j = _body()
    ids = j.get("employee_ids", j.get("employeeIds"))
    if not isinstance(ids, list) or not ids:
        raise APIError("VALIDATION_ERROR", "employee_ids must be a non-empty list", 422)

    results = build_calculator().calculate_many(ids, _start(j), _end(j), _rate(j))
    data: List[Dict[str, Any]] = [r.to_dict() for r in results]
    failed = sum(1 for r in results if isinstance(r, ErrorEntry))
    return ok(data, ok=len(results) - failed, failed=failed)


@bp.post("/summary")
@requires_perms("payroll.salary.read")
def summary():
    j = _body()
    calc = build_calculator().calculate(_emp(j), _start(j), _end(j), _rate(j))
    return ok(salary_summary(calc))


@bp.post("/validate")
@requires_perms("payroll.salary.read")
def validate():
    j = _body()
    return ok(validate_inputs(_emp(j), _start(j), _end(j), _rate(j)))
