# payroll_api/services/salary_format.py
"""Display helpers and form validation for salary reports."""
from __future__ import annotations

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Tuple

from .salary_types import (
    DailyRate,
    HourlyRate,
    MAX_DAILY_HOURS,
    NetSalaryStatus,
    SalaryCalculation,
    SalaryError,
    money,
    parse_iso_date,
    to_decimal,
)

MIN_DAILY_RATE = Decimal("1")
MAX_DAILY_RATE = Decimal("50000")


def _indian_grouping(digits: str) -> str:
    # 1234567 -> 12,34,567
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(amount) -> str:
    """Rupee amount with Indian digit grouping, e.g. ₹12,34,567.89"""
    value = money(to_decimal(amount))
    sign = "-" if value < 0 else ""
    whole, frac = f"{abs(value):.2f}".split(".")
    return f"{sign}₹{_indian_grouping(whole)}.{frac}"


def format_hours(hours) -> str:
    """9.5 -> '9h 30m'"""
    value = to_decimal(hours)
    h = int(value)
    m = int(((value - h) * 60).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if m == 60:
        h, m = h + 1, 0
    return f"{h}h {m}m"


def display_net(calc: SalaryCalculation) -> Tuple[Decimal, NetSalaryStatus]:
    """Users see the magnitude plus a due/overpaid tag, never the sign."""
    return abs(calc.financial.net_salary), calc.financial.net_salary_status


def salary_summary(calc: SalaryCalculation) -> Dict[str, Any]:
    fin = calc.financial
    amount, status = display_net(calc)
    return {
        "employeeName": calc.employee.name,
        "totalDays": calc.period.total_calendar_days,
        "workingDays": float(calc.attendance.working_days_display),
        "attendanceRate": float(calc.attendance.attendance_percentage),
        "totalHours": float(money(calc.attendance.total_hours)),
        "grossSalary": float(fin.gross_salary),
        "totalPayments": float(fin.total_payments),
        "netSalary": float(fin.net_salary),
        "netSalaryStatus": status.value,
        "display": {
            "grossSalary": format_currency(fin.gross_salary),
            "totalPayments": format_currency(fin.total_payments),
            "netSalary": format_currency(amount),
            "totalHours": format_hours(calc.attendance.total_hours),
        },
    }


def _rate_errors(rate) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if isinstance(rate, (DailyRate, HourlyRate)):
        rate = rate.to_dict()
    if rate is None or isinstance(rate, (int, float, str, Decimal)):
        rate = {"daily_rate": rate}
    if not isinstance(rate, Mapping):
        return {"dailyRate": "Valid daily rate is required"}

    def _get(*keys):
        for k in keys:
            if rate.get(k) not in (None, ""):
                return rate[k]
        return None

    def _dec(v):
        try:
            d = to_decimal(v)
            return d if d.is_finite() else None
        except Exception:
            return None

    hourly = _get("hourly_rate", "hourlyRate")
    if hourly is not None:
        h = _dec(hourly)
        if h is None or h <= 0:
            errors["hourlyRate"] = "Valid hourly rate is required"
        hours = _dec(_get("daily_hours", "dailyHours"))
        if hours is None or hours <= 0 or hours > MAX_DAILY_HOURS:
            errors["dailyHours"] = "Daily hours must be between 0 and 24"
        if _get("daily_rate", "dailyRate") is not None:
            errors["dailyRate"] = "Choose either a daily rate or an hourly rate"
        return errors

    daily = _dec(_get("daily_rate", "dailyRate"))
    if daily is None or daily <= 0:
        errors["dailyRate"] = "Valid daily rate is required"
    elif daily < MIN_DAILY_RATE or daily > MAX_DAILY_RATE:
        errors["dailyRate"] = "Daily rate must be between ₹1 and ₹50,000"
    if _get("daily_hours", "dailyHours") is not None:
        errors["dailyHours"] = "Daily hours only apply to an hourly rate"
    return errors


def validate_inputs(employee_id, start_date, end_date, rate=None) -> Dict[str, Any]:
    """Form-level check that reports every problem at once instead of raising."""
    errors: Dict[str, str] = {}

    if not str(employee_id or "").strip():
        errors["employeeId"] = "Employee selection is required"

    start = end = None
    for key, raw in (("startDate", start_date), ("endDate", end_date)):
        if raw in (None, ""):
            errors[key] = f"{'Start' if key == 'startDate' else 'End'} date is required"
            continue
        try:
            parsed: date = parse_iso_date(raw, key)
        except SalaryError:
            errors[key] = "Date must be YYYY-MM-DD"
            continue
        if key == "startDate":
            start = parsed
        else:
            end = parsed

    if start and end and start > end:
        errors["dateRange"] = "Start date must be before or equal to end date"

    errors.update(_rate_errors(rate))
    return {"is_valid": not errors, "errors": errors}
