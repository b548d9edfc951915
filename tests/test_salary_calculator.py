import threading
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from payroll_api.services.salary_calculator import SalaryCalculator, total_calendar_days
from payroll_api.services.salary_types import (
    AttendanceRecord,
    DailyRate,
    EmployeeInfo,
    EmployeeNotFoundError,
    ErrorEntry,
    ErrorKind,
    HourlyRate,
    InvalidPeriodError,
    InvalidRateError,
    NetSalaryStatus,
    PaymentRecord,
    SalaryCalculation,
)

START = date(2025, 3, 1)
END = date(2025, 3, 14)
FROZEN = datetime(2025, 3, 15, 10, 0, tzinfo=timezone.utc)


class FakeStore:
    """In-memory accessors; deliberately ignores the date range so the engine must re-scope."""

    def __init__(self, employees=(), attendance=(), payments=()):
        self.employees = {e.id: e for e in employees}
        self.attendance = list(attendance)
        self.payments = list(payments)
        self.calls = []

    def list_attendance(self, employee_id, start, end):
        self.calls.append(("attendance", employee_id))
        return [r for r in self.attendance if r.employee_id == employee_id]

    def list_payments(self, employee_id, start, end):
        self.calls.append(("payments", employee_id))
        return list(self.payments)

    def get_employee(self, employee_id):
        self.calls.append(("employee", employee_id))
        return self.employees.get(employee_id)


def _emp(eid="e1", name="Ravi Kumar"):
    return EmployeeInfo(id=eid, name=name, designation="Operator", employee_code=eid.upper())


def _att(eid, offset, status, cin=None, cout=None):
    return AttendanceRecord(eid, START + timedelta(days=offset), status, cin, cout)


def _pay(eid, amount, d):
    return PaymentRecord(employee_id=eid, amount=Decimal(amount), payment_date=d, paid_by="owner")


def _calc(store, **kw):
    kw.setdefault("clock", lambda: FROZEN)
    return SalaryCalculator.from_sources(store, **kw)


def _scenario_store():
    # 10 present + 2 half days inside a 14 day window
    att = [_att("e1", i, "present") for i in range(10)]
    att += [_att("e1", 10, "half-day"), _att("e1", 11, "half-day")]
    return FakeStore(employees=[_emp()], attendance=att)


def test_daily_rate_scenario():
    calc = _calc(_scenario_store()).calculate("e1", "2025-03-01", "2025-03-14", {"daily_rate": 750})
    assert calc.attendance.working_days == Decimal("11")
    assert calc.period.working_days == Decimal("11.0")
    assert calc.period.total_calendar_days == 14
    assert calc.financial.gross_salary == Decimal("8250.00")
    assert calc.financial.total_payments == Decimal("0.00")
    assert calc.financial.net_salary == Decimal("8250.00")
    assert calc.financial.net_salary_status is NetSalaryStatus.DUE
    assert calc.rates == DailyRate(Decimal("750"))


def test_hourly_rate_uses_total_hours():
    store = FakeStore(employees=[_emp()], attendance=[
        _att("e1", 0, "present", "09:00", "18:30"),
        _att("e1", 1, "half-day"),
        _att("e1", 2, "absent"),
    ])
    calc = _calc(store).calculate("e1", START, END, HourlyRate(Decimal("100"), Decimal("8")))
    assert calc.attendance.total_hours == Decimal("13.5")
    assert calc.attendance.overtime_hours == Decimal("1.5")
    assert calc.financial.gross_salary == Decimal("1350.00")
    first = calc.attendance.details[0]
    assert first.hours_worked == Decimal("9.5")
    assert first.record_type.value == "full"


def test_no_payments_net_equals_gross():
    store = FakeStore(employees=[_emp()], attendance=[_att("e1", i, "present") for i in range(5)])
    calc = _calc(store).calculate("e1", START, END, {"daily_rate": 1000})
    assert calc.financial.gross_salary == Decimal("5000.00")
    assert calc.financial.net_salary == Decimal("5000.00")
    assert calc.financial.net_salary_status is NetSalaryStatus.DUE


def test_overpaid_when_payments_exceed_gross():
    store = FakeStore(
        employees=[_emp()],
        attendance=[_att("e1", i, "present") for i in range(4)],
        payments=[_pay("e1", "3000", date(2025, 3, 3)), _pay("e1", "1200", date(2025, 3, 10))],
    )
    calc = _calc(store).calculate("e1", START, END, {"daily_rate": 750})
    assert calc.financial.gross_salary == Decimal("3000.00")
    assert calc.financial.total_payments == Decimal("4200.00")
    assert calc.financial.net_salary == Decimal("-1200.00")
    assert calc.financial.net_salary_status is NetSalaryStatus.OVERPAID


def test_net_is_exactly_gross_minus_payments():
    store = FakeStore(
        employees=[_emp()],
        attendance=[_att("e1", 0, "present", "09:00", "09:20")],
        payments=[_pay("e1", "10.005", date(2025, 3, 2))],
    )
    calc = _calc(store).calculate("e1", START, END, {"hourly_rate": "100", "daily_hours": "8"})
    # 20 minutes at 100/h = 33.333.. ; rounding only at assembly
    assert calc.financial.gross_salary == Decimal("33.33")
    assert calc.financial.total_payments == Decimal("10.01")
    assert calc.financial.net_salary == Decimal("23.33")


def test_payments_and_attendance_are_rescoped():
    store = FakeStore(
        employees=[_emp()],
        attendance=[_att("e1", 0, "present"), _att("e1", 30, "present")],
        payments=[
            _pay("e1", "500", date(2025, 3, 5)),
            _pay("e1", "700", date(2025, 4, 20)),     # out of range
            _pay("e2", "900", date(2025, 3, 5)),      # other employee
        ],
    )
    calc = _calc(store).calculate("e1", START, END, {"daily_rate": 750})
    assert calc.attendance.total_records == 1
    assert calc.financial.total_payments == Decimal("500.00")
    assert [p.amount for p in calc.payments] == [Decimal("500")]


def test_start_after_end_fails_before_any_fetch():
    store = _scenario_store()
    with pytest.raises(InvalidPeriodError):
        _calc(store).calculate("e1", "2025-03-14", "2025-03-01", {"daily_rate": 750})
    assert store.calls == []


@pytest.mark.parametrize("emp,start,end", [
    ("", "2025-03-01", "2025-03-14"),
    ("e1", "", "2025-03-14"),
    ("e1", "2025-03-01", None),
    ("e1", "03/01/2025", "2025-03-14"),
])
def test_missing_or_bad_period_inputs(emp, start, end):
    with pytest.raises(InvalidPeriodError) as ei:
        _calc(_scenario_store()).calculate(emp, start, end, {"daily_rate": 750})
    assert ei.value.kind is ErrorKind.INVALID_PERIOD


@pytest.mark.parametrize("rate", [
    {"daily_rate": 0},
    {"daily_rate": -5},
    {"daily_rate": "abc"},
    {"hourly_rate": 100},
    {"hourly_rate": 100, "daily_hours": 0},
    {"hourly_rate": 100, "daily_hours": 25},
    {"hourly_rate": 100, "daily_hours": 8, "daily_rate": 750},
    {"daily_rate": 750, "daily_hours": 30},
    {"dailyRate": 750, "dailyHours": 8},
    {},
    None,
])
def test_invalid_rates(rate):
    store = _scenario_store()
    with pytest.raises(InvalidRateError):
        _calc(store).calculate("e1", START, END, rate)
    assert store.calls == []


def test_daily_hours_of_24_is_allowed():
    calc = _calc(_scenario_store()).calculate("e1", START, END, {"hourly_rate": 10, "daily_hours": 24})
    assert calc.rates.daily_hours == Decimal("24")


def test_unknown_employee():
    store = _scenario_store()
    with pytest.raises(EmployeeNotFoundError) as ei:
        _calc(store).calculate("nobody", START, END, {"daily_rate": 750})
    assert ei.value.kind is ErrorKind.EMPLOYEE_NOT_FOUND
    assert ("attendance", "nobody") not in store.calls


def test_fetch_failure_propagates_from_single_calculation():
    store = _scenario_store()

    def boom(*_):
        raise RuntimeError("store offline")
    store.list_payments = boom
    with pytest.raises(RuntimeError, match="store offline"):
        _calc(store).calculate("e1", START, END, {"daily_rate": 750})


def test_idempotent_apart_from_timestamp():
    store = _scenario_store()
    ticks = iter([FROZEN, FROZEN + timedelta(minutes=5)])
    calc = SalaryCalculator.from_sources(store, clock=lambda: next(ticks))
    a = calc.calculate("e1", START, END, {"daily_rate": 750})
    b = calc.calculate("e1", START, END, {"daily_rate": 750})
    assert a.calculated_at != b.calculated_at
    assert a == b
    da, db_ = a.to_dict(), b.to_dict()
    da.pop("calculatedAt"); db_.pop("calculatedAt")
    assert da == db_


def test_default_timestamps_are_utc():
    calc = SalaryCalculator.from_sources(_scenario_store()).calculate("e1", START, END, {"daily_rate": 750})
    assert calc.calculated_at.tzinfo is not None
    assert calc.calculated_at.utcoffset() == timedelta(0)

    bare = SalaryCalculation(calc.employee, calc.period, calc.rates, calc.attendance,
                             calc.financial, calc.payments, calc.attendance_records)
    assert bare.calculated_at.utcoffset() == timedelta(0)


def test_sequential_fetch_gives_same_result():
    a = _calc(_scenario_store(), concurrent_fetch=True).calculate("e1", START, END, {"daily_rate": 750})
    b = _calc(_scenario_store(), concurrent_fetch=False).calculate("e1", START, END, {"daily_rate": 750})
    assert a == b


def test_total_calendar_days_inclusive():
    assert total_calendar_days(date(2025, 3, 1), date(2025, 3, 1)) == 1
    assert total_calendar_days(date(2025, 2, 1), date(2025, 3, 1)) == 29


def test_to_dict_wire_shape():
    d = _calc(_scenario_store()).calculate("e1", START, END, {"daily_rate": 750}).to_dict()
    assert d["employee"] == {"id": "e1", "name": "Ravi Kumar", "designation": "Operator", "employeeCode": "E1"}
    assert d["period"]["startDate"] == "2025-03-01"
    assert d["period"]["workingDays"] == 11
    assert d["financial"]["netSalaryStatus"] == "due"
    assert d["rates"] == {"model": "daily", "dailyRate": 750}
    assert d["calculatedAt"] == FROZEN.isoformat()
    assert len(d["attendance"]["details"]) == 12


# ---------- batch ----------

def _batch_store():
    att = [_att("e1", i, "present") for i in range(3)] + [_att("e3", i, "half-day") for i in range(4)]
    return FakeStore(employees=[_emp("e1"), _emp("e3", "Asha")], attendance=att)


def test_batch_isolates_missing_employee_and_keeps_order():
    out = _calc(_batch_store()).calculate_many(["e1", "e2", "e3"], START, END, {"daily_rate": 100})
    assert len(out) == 3
    assert isinstance(out[0], SalaryCalculation) and out[0].employee.id == "e1"
    assert isinstance(out[1], ErrorEntry)
    assert out[1].employee_id == "e2"
    assert out[1].kind is ErrorKind.EMPLOYEE_NOT_FOUND
    assert isinstance(out[2], SalaryCalculation) and out[2].employee.id == "e3"
    assert out[0].financial.gross_salary == Decimal("300.00")
    assert out[2].financial.gross_salary == Decimal("200.00")


def test_batch_shared_inputs_raise():
    with pytest.raises(InvalidRateError):
        _calc(_batch_store()).calculate_many(["e1"], START, END, {"daily_rate": 0})
    with pytest.raises(InvalidPeriodError):
        _calc(_batch_store()).calculate_many(["e1"], END, START, {"daily_rate": 10})


def test_batch_empty_id_is_a_per_employee_error():
    out = _calc(_batch_store()).calculate_many(["e1", ""], START, END, {"daily_rate": 10})
    assert isinstance(out[0], SalaryCalculation)
    assert out[1].kind is ErrorKind.INVALID_PERIOD


def test_batch_fetch_failure_is_captured():
    store = _batch_store()
    real = store.list_attendance

    def flaky(eid, start, end):
        if eid == "e3":
            raise ConnectionError("read timed out")
        return real(eid, start, end)
    store.list_attendance = flaky

    out = _calc(store).calculate_many(["e1", "e3"], START, END, {"daily_rate": 10})
    assert isinstance(out[0], SalaryCalculation)
    assert out[1].kind is ErrorKind.FETCH_FAILED
    assert "read timed out" in out[1].error


def test_batch_timeout_does_not_stall_others():
    store = _batch_store()
    release = threading.Event()
    real = store.get_employee

    def slow(eid):
        if eid == "e3":
            release.wait(5)
        return real(eid)
    store.get_employee = slow

    try:
        out = _calc(store, max_workers=3).calculate_many(
            ["e1", "e3", "e1"], START, END, {"daily_rate": 10}, timeout=0.2)
    finally:
        release.set()

    assert isinstance(out[0], SalaryCalculation)
    assert isinstance(out[1], ErrorEntry) and out[1].kind is ErrorKind.TIMEOUT
    assert isinstance(out[2], SalaryCalculation)


def test_batch_employees_queued_behind_a_hung_one_still_run():
    store = _batch_store()
    release = threading.Event()
    real = store.get_employee

    def slow(eid):
        if eid == "slow":
            release.wait(5)
        return real(eid)
    store.get_employee = slow

    try:
        out = _calc(store, max_workers=1).calculate_many(
            ["slow", "e1", "e3"], START, END, {"daily_rate": 10}, timeout=0.2)
    finally:
        release.set()

    assert out[0].kind is ErrorKind.TIMEOUT
    assert isinstance(out[1], SalaryCalculation) and out[1].employee.id == "e1"
    assert isinstance(out[2], SalaryCalculation) and out[2].employee.id == "e3"


def test_batch_respects_concurrency_limit():
    store = _batch_store()
    lock = threading.Lock()
    state = {"now": 0, "peak": 0}

    def tracked(fn):
        def inner(*args):
            with lock:
                state["now"] += 1
                state["peak"] = max(state["peak"], state["now"])
            try:
                threading.Event().wait(0.02)
                return fn(*args)
            finally:
                with lock:
                    state["now"] -= 1
        return inner
    store.get_employee = tracked(store.get_employee)
    store.list_attendance = tracked(store.list_attendance)
    store.list_payments = tracked(store.list_payments)

    # concurrent_fetch stays on; batch workers still read one at a time
    out = _calc(store, concurrent_fetch=True).calculate_many(
        ["e1", "e3"] * 4, START, END, {"daily_rate": 10}, max_workers=2)
    assert len(out) == 8
    assert all(isinstance(x, SalaryCalculation) for x in out)
    assert state["peak"] <= 2


def test_batch_error_entry_wire_shape():
    out = _calc(_batch_store()).calculate_many(["zz"], START, END, {"daily_rate": 10})
    assert out[0].to_dict() == {
        "employee": {"id": "zz"},
        "employeeId": "zz",
        "error": "Employee zz not found",
        "kind": "EmployeeNotFound",
    }
