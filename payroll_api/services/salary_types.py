# payroll_api/services/salary_types.py
"""
Value objects, enums and errors shared by the salary reconciliation engine.

Everything here is plain data: no Flask, no session. Numbers are Decimal
throughout; rounding happens only when a result is assembled for display
(see ``money`` / ``one_place``).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

ZERO = Decimal("0")
ONE = Decimal("1")
HALF = Decimal("0.5")
HUNDRED = Decimal("100")

# expected hours per day when the caller prices by the day
DEFAULT_DAILY_HOURS = Decimal("8")
MAX_DAILY_HOURS = Decimal("24")


# ---------- enums ----------

class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    HALF_DAY = "half-day"

    @classmethod
    def parse(cls, raw) -> Optional["AttendanceStatus"]:
        """Lenient lookup; returns None for anything unrecognised."""
        if isinstance(raw, cls):
            return raw
        s = str(raw or "").strip().lower().replace("_", "-")
        for member in cls:
            if member.value == s:
                return member
        return None


class PaymentMode(str, Enum):
    CASH = "Cash"
    ONLINE = "Online"


class RecordType(str, Enum):
    FULL = "full"
    PARTIAL = "partial"
    ABSENT = "absent"


class NetSalaryStatus(str, Enum):
    DUE = "due"
    OVERPAID = "overpaid"


class ErrorKind(str, Enum):
    INVALID_PERIOD = "InvalidPeriod"
    INVALID_RATE = "InvalidRate"
    EMPLOYEE_NOT_FOUND = "EmployeeNotFound"
    INVALID_TIME_FORMAT = "InvalidTimeFormat"
    FETCH_FAILED = "FetchFailed"
    TIMEOUT = "Timeout"


# ---------- errors ----------

class SalaryError(Exception):
    """Base error for the salary engine. ``kind`` drives API status mapping."""
    kind: ErrorKind = ErrorKind.FETCH_FAILED

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class InvalidPeriodError(SalaryError):
    kind = ErrorKind.INVALID_PERIOD


class InvalidRateError(SalaryError):
    kind = ErrorKind.INVALID_RATE


class EmployeeNotFoundError(SalaryError):
    kind = ErrorKind.EMPLOYEE_NOT_FOUND


class InvalidTimeFormatError(SalaryError):
    kind = ErrorKind.INVALID_TIME_FORMAT


# ---------- number / date helpers ----------

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value: Decimal) -> Decimal:
    return to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def one_place(value: Decimal) -> Decimal:
    return to_decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def _num(d: Decimal):
    """JSON-friendly number: int when integral, float otherwise."""
    if d == d.to_integral_value():
        return int(d)
    return float(d)


def parse_iso_date(value, field_name: str) -> date:
    """Accept a ``date`` or a ``YYYY-MM-DD`` string; anything else is InvalidPeriod."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value or "").strip()
    if not s:
        raise InvalidPeriodError(f"{field_name} is required")
    try:
        return date.fromisoformat(s)
    except ValueError:
        raise InvalidPeriodError(f"{field_name} must be YYYY-MM-DD, got {s!r}") from None


# ---------- inputs ----------

@dataclass(frozen=True)
class AttendanceRecord:
    employee_id: str
    date: date
    status: str
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "date": self.date.isoformat(),
            "status": str(getattr(self.status, "value", self.status)),
            "checkInTime": self.check_in_time,
            "checkOutTime": self.check_out_time,
        }


@dataclass(frozen=True)
class PaymentRecord:
    employee_id: str
    amount: Decimal
    payment_date: date
    payment_mode: PaymentMode = PaymentMode.CASH
    paid_by: str = ""
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "amount": _num(to_decimal(self.amount)),
            "paymentDate": self.payment_date.isoformat(),
            "paymentMode": PaymentMode(self.payment_mode).value,
            "paidBy": self.paid_by,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class EmployeeInfo:
    id: str
    name: str
    designation: Optional[str] = None
    employee_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "designation": self.designation,
            "employeeCode": self.employee_code,
        }


# ---------- rate configuration ----------

def _positive(value, field_name: str) -> Decimal:
    try:
        d = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidRateError(f"{field_name} must be a number") from None
    if not d.is_finite() or d <= ZERO:
        raise InvalidRateError(f"{field_name} must be greater than 0")
    return d


@dataclass(frozen=True)
class DailyRate:
    """Flat model: gross = working days x daily rate."""
    daily_rate: Decimal

    def __post_init__(self):
        object.__setattr__(self, "daily_rate", _positive(self.daily_rate, "daily_rate"))

    @property
    def expected_daily_hours(self) -> Decimal:
        return DEFAULT_DAILY_HOURS

    def gross(self, summary: "PeriodSummary") -> Decimal:
        return summary.working_days * self.daily_rate

    def to_dict(self) -> Dict[str, Any]:
        return {"model": "daily", "dailyRate": _num(self.daily_rate)}


@dataclass(frozen=True)
class HourlyRate:
    """Hours model: gross = total hours worked x hourly rate."""
    hourly_rate: Decimal
    daily_hours: Decimal

    def __post_init__(self):
        object.__setattr__(self, "hourly_rate", _positive(self.hourly_rate, "hourly_rate"))
        hours = _positive(self.daily_hours, "daily_hours")
        if hours > MAX_DAILY_HOURS:
            raise InvalidRateError("daily_hours must be within (0, 24]")
        object.__setattr__(self, "daily_hours", hours)

    @property
    def expected_daily_hours(self) -> Decimal:
        return self.daily_hours

    def gross(self, summary: "PeriodSummary") -> Decimal:
        return summary.total_hours * self.hourly_rate

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": "hourly",
            "hourlyRate": _num(self.hourly_rate),
            "dailyHours": _num(self.daily_hours),
        }


RateConfig = Union[DailyRate, HourlyRate]

_DAILY_KEYS = ("daily_rate", "dailyRate")
_HOURLY_KEYS = ("hourly_rate", "hourlyRate")
_HOURS_KEYS = ("daily_hours", "dailyHours")


def _first(data: Mapping[str, Any], keys) -> Any:
    for k in keys:
        if data.get(k) not in (None, ""):
            return data[k]
    return None


def rate_config_from_dict(data) -> RateConfig:
    """
    Build a RateConfig from a loose mapping (JSON body, CLI options).

    Exactly one shape must be present:
      {"daily_rate": 750}
      {"hourly_rate": 100, "daily_hours": 8}
    camelCase keys are accepted as well.
    """
    if isinstance(data, (DailyRate, HourlyRate)):
        return data
    if not isinstance(data, Mapping):
        raise InvalidRateError("rate config must be an object")

    daily = _first(data, _DAILY_KEYS)
    hourly = _first(data, _HOURLY_KEYS)
    hours = _first(data, _HOURS_KEYS)

    if daily is not None and hourly is not None:
        raise InvalidRateError("daily_rate and hourly_rate are mutually exclusive")
    if daily is not None:
        if hours is not None:
            raise InvalidRateError("daily_hours only applies with hourly_rate")
        return DailyRate(daily)
    if hourly is not None:
        if hours is None:
            raise InvalidRateError("daily_hours is required with hourly_rate")
        return HourlyRate(hourly, hours)
    raise InvalidRateError("either daily_rate or hourly_rate is required")


# ---------- derived ----------

@dataclass(frozen=True)
class AttendanceContribution:
    date: date
    status: str
    day_value: Decimal
    hours_worked: Decimal
    overtime_hours: Decimal
    undertime_hours: Decimal
    record_type: RecordType
    check_in: Optional[str] = None
    check_out: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "status": str(getattr(self.status, "value", self.status)),
            "type": self.record_type.value,
            "dayValue": _num(self.day_value),
            "hoursWorked": _num(money(self.hours_worked)),
            "overtime": _num(money(self.overtime_hours)),
            "undertime": _num(money(self.undertime_hours)),
            "checkIn": self.check_in,
            "checkOut": self.check_out,
        }


@dataclass(frozen=True)
class PeriodSummary:
    total_records: int
    working_days: Decimal          # unrounded; use working_days_display for output
    full_days: int
    partial_days: int
    half_days: int
    absent_days: int
    total_hours: Decimal
    average_hours: Decimal
    overtime_hours: Decimal
    undertime_hours: Decimal
    attendance_percentage: Decimal
    details: Tuple[AttendanceContribution, ...] = ()

    @property
    def working_days_display(self) -> Decimal:
        return one_place(self.working_days)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRecords": self.total_records,
            "workingDays": _num(self.working_days_display),
            "fullDays": self.full_days,
            "partialDays": self.partial_days,
            "halfDays": self.half_days,
            "absentDays": self.absent_days,
            "totalHours": _num(money(self.total_hours)),
            "averageHours": _num(money(self.average_hours)),
            "overtimeHours": _num(money(self.overtime_hours)),
            "undertimeHours": _num(money(self.undertime_hours)),
            "attendancePercentage": _num(self.attendance_percentage),
            "details": [c.to_dict() for c in self.details],
        }


# ---------- result ----------

@dataclass(frozen=True)
class PeriodInfo:
    start_date: date
    end_date: date
    total_calendar_days: int
    working_days: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "totalCalendarDays": self.total_calendar_days,
            "workingDays": _num(self.working_days),
        }


@dataclass(frozen=True)
class Financial:
    gross_salary: Decimal
    total_payments: Decimal
    net_salary: Decimal
    net_salary_status: NetSalaryStatus

    def to_dict(self) -> Dict[str, Any]:
        return {
            "grossSalary": _num(self.gross_salary),
            "totalPayments": _num(self.total_payments),
            "netSalary": _num(self.net_salary),
            "netSalaryStatus": self.net_salary_status.value,
        }


@dataclass(frozen=True)
class SalaryCalculation:
    employee: EmployeeInfo
    period: PeriodInfo
    rates: RateConfig
    attendance: PeriodSummary
    financial: Financial
    payments: Tuple[PaymentRecord, ...]
    attendance_records: Tuple[AttendanceRecord, ...]
    # informational only; two calculations over the same inputs compare equal
    calculated_at: datetime = field(compare=False, default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employee": self.employee.to_dict(),
            "period": self.period.to_dict(),
            "rates": self.rates.to_dict(),
            "attendance": self.attendance.to_dict(),
            "financial": self.financial.to_dict(),
            "payments": [p.to_dict() for p in self.payments],
            "attendanceRecords": [r.to_dict() for r in self.attendance_records],
            "calculatedAt": self.calculated_at.isoformat(),
        }


@dataclass(frozen=True)
class ErrorEntry:
    """Batch-mode placeholder for an employee whose calculation failed."""
    employee_id: str
    error: str
    kind: ErrorKind

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employee": {"id": self.employee_id},
            "employeeId": self.employee_id,
            "error": self.error,
            "kind": self.kind.value,
        }
