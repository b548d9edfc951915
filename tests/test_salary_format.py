from datetime import date, datetime
from decimal import Decimal

import pytest

from payroll_api.services.salary_format import (
    display_net,
    format_currency,
    format_hours,
    salary_summary,
    validate_inputs,
)
from payroll_api.services.salary_calculator import SalaryCalculator
from payroll_api.services.salary_types import (
    AttendanceRecord,
    EmployeeInfo,
    NetSalaryStatus,
    PaymentRecord,
)


@pytest.mark.parametrize("amount,expected", [
    (0, "₹0.00"),
    (750, "₹750.00"),
    (8250, "₹8,250.00"),
    (Decimal("123456.789"), "₹1,23,456.79"),
    (Decimal("1234567.5"), "₹12,34,567.50"),
    (-1200, "-₹1,200.00"),
])
def test_format_currency(amount, expected):
    assert format_currency(amount) == expected


@pytest.mark.parametrize("hours,expected", [
    (0, "0h 0m"),
    (Decimal("9.5"), "9h 30m"),
    (Decimal("1.25"), "1h 15m"),
    (Decimal("7.9999"), "8h 0m"),
])
def test_format_hours(hours, expected):
    assert format_hours(hours) == expected


def _overpaid_calc():
    emp = EmployeeInfo("e1", "Meena Iyer", "Helper", "E001")
    att = [AttendanceRecord("e1", date(2025, 3, d), "present") for d in (3, 4, 5, 6)]
    pays = [PaymentRecord("e1", Decimal("4200"), date(2025, 3, 7))]
    calc = SalaryCalculator(
        list_attendance=lambda *_: att,
        list_payments=lambda *_: pays,
        get_employee=lambda _id: emp,
        clock=lambda: datetime(2025, 3, 31),
        concurrent_fetch=False,
    )
    return calc.calculate("e1", "2025-03-01", "2025-03-31", {"daily_rate": 750})


def test_display_net_shows_magnitude_and_status():
    amount, status = display_net(_overpaid_calc())
    assert amount == Decimal("1200.00")
    assert status is NetSalaryStatus.OVERPAID


def test_salary_summary():
    s = salary_summary(_overpaid_calc())
    assert s["employeeName"] == "Meena Iyer"
    assert s["totalDays"] == 31
    assert s["workingDays"] == 4.0
    assert s["attendanceRate"] == 100.0
    assert s["totalHours"] == 32.0
    assert s["grossSalary"] == 3000.0
    assert s["totalPayments"] == 4200.0
    assert s["netSalary"] == -1200.0
    assert s["netSalaryStatus"] == "overpaid"
    assert s["display"]["netSalary"] == "₹1,200.00"
    assert s["display"]["totalHours"] == "32h 0m"


def test_validate_inputs_ok():
    out = validate_inputs("e1", "2025-03-01", "2025-03-31", {"daily_rate": 750})
    assert out == {"is_valid": True, "errors": {}}


def test_validate_inputs_collects_all_errors():
    out = validate_inputs(" ", "2025-03-31", "2025-03-01", {"daily_rate": 0})
    assert not out["is_valid"]
    assert set(out["errors"]) == {"employeeId", "dateRange", "dailyRate"}


def test_validate_inputs_missing_dates():
    out = validate_inputs("e1", None, "", 750)
    assert out["errors"]["startDate"] == "Start date is required"
    assert out["errors"]["endDate"] == "End date is required"


def test_validate_inputs_daily_rate_bounds():
    assert validate_inputs("e1", "2025-03-01", "2025-03-02", 0.5)["errors"]["dailyRate"].startswith("Daily rate must be between")
    assert validate_inputs("e1", "2025-03-01", "2025-03-02", 60000)["errors"]["dailyRate"].startswith("Daily rate must be between")
    assert validate_inputs("e1", "2025-03-01", "2025-03-02", 50000)["is_valid"]


def test_validate_inputs_hourly():
    out = validate_inputs("e1", "2025-03-01", "2025-03-02", {"hourlyRate": 120, "dailyHours": 30})
    assert out["errors"] == {"dailyHours": "Daily hours must be between 0 and 24"}
    assert validate_inputs("e1", "2025-03-01", "2025-03-02", {"hourly_rate": 120, "daily_hours": 9})["is_valid"]


def test_validate_inputs_rejects_hours_with_daily_rate():
    out = validate_inputs("e1", "2025-03-01", "2025-03-02", {"daily_rate": 750, "daily_hours": 30})
    assert out["errors"] == {"dailyHours": "Daily hours only apply to an hourly rate"}
