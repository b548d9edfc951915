# payroll_api/services/attendance_classifier.py
from __future__ import annotations

import logging
import re
from decimal import Decimal
from typing import Optional

from .salary_types import (
    AttendanceContribution,
    AttendanceRecord,
    AttendanceStatus,
    InvalidTimeFormatError,
    RecordType,
    HALF,
    ONE,
    ZERO,
    to_decimal,
)

log = logging.getLogger(__name__)

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")
MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> int:
    """'HH:MM' -> minutes since midnight. Raises InvalidTimeFormatError."""
    m = _HHMM.match(str(value or "").strip())
    if not m:
        raise InvalidTimeFormatError(f"expected HH:MM, got {value!r}")
    hh, mm = int(m.group(1)), int(m.group(2))
    if hh > 23 or mm > 59:
        raise InvalidTimeFormatError(f"time out of range: {value!r}")
    return hh * 60 + mm


def hours_between(check_in: str, check_out: str) -> Decimal:
    """
    Hours between two wall-clock times on the same shift.

    A check-out earlier than the check-in is read as the next day
    (night shift), so 22:00 -> 06:00 is 8 hours.
    """
    start = parse_hhmm(check_in)
    end = parse_hhmm(check_out)
    if end < start:
        end += MINUTES_PER_DAY
    return Decimal(max(0, end - start)) / Decimal(60)


def _worked_hours(record: AttendanceRecord, daily_hours: Decimal) -> Decimal:
    if not (record.check_in_time and record.check_out_time):
        return daily_hours
    try:
        return hours_between(record.check_in_time, record.check_out_time)
    except InvalidTimeFormatError as e:
        log.debug("[salary.classify] %s on %s: %s; using full day",
                  record.employee_id, record.date, e)
        return daily_hours


def classify(record: AttendanceRecord, daily_hours) -> AttendanceContribution:
    """
    Turn one attendance row into its work contribution.

      present  -> day 1, hours from check-in/out (full day if missing/bad)
      half-day -> day 0.5, half the expected hours
      absent / anything else -> nothing

    Absent days are not undertime: undertime is only booked when some
    time was actually worked.
    """
    daily_hours = to_decimal(daily_hours)
    status: Optional[AttendanceStatus] = AttendanceStatus.parse(record.status)

    if status is AttendanceStatus.PRESENT:
        day_value = ONE
        hours = _worked_hours(record, daily_hours)
        record_type = RecordType.FULL if hours >= daily_hours else RecordType.PARTIAL
    elif status is AttendanceStatus.HALF_DAY:
        day_value = HALF
        hours = daily_hours / 2
        record_type = RecordType.PARTIAL
    else:
        day_value = ZERO
        hours = ZERO
        record_type = RecordType.ABSENT

    overtime = max(ZERO, hours - daily_hours)
    undertime = max(ZERO, daily_hours - hours) if hours > ZERO else ZERO

    return AttendanceContribution(
        date=record.date,
        status=record.status,
        day_value=day_value,
        hours_worked=hours,
        overtime_hours=overtime,
        undertime_hours=undertime,
        record_type=record_type,
        check_in=record.check_in_time or None,
        check_out=record.check_out_time or None,
    )
