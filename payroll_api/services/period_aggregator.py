# payroll_api/services/period_aggregator.py
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Sequence

from .salary_types import (
    AttendanceContribution,
    AttendanceRecord,
    AttendanceStatus,
    PeriodSummary,
    RecordType,
    HUNDRED,
    ZERO,
    one_place,
)

log = logging.getLogger(__name__)


def scope_attendance(records: Iterable[AttendanceRecord], employee_id: str,
                     start: date, end: date) -> List[AttendanceRecord]:
    """Drop rows for other employees or outside [start, end]; order is kept."""
    records = list(records)
    kept = [r for r in records
            if str(r.employee_id) == str(employee_id) and start <= r.date <= end]
    if len(kept) != len(records):
        log.debug("[salary.scope] dropped %d attendance rows outside %s..%s for %s",
                  len(records) - len(kept), start, end, employee_id)
    return kept


def aggregate(contributions: Sequence[AttendanceContribution]) -> PeriodSummary:
    """
    Fold classified days into a period summary.

    ``working_days`` stays unrounded; only ``attendance_percentage`` is
    rounded here (one place). An empty period yields zeros everywhere.
    """
    contributions = tuple(contributions)
    total = len(contributions)

    working_days = ZERO
    total_hours = ZERO
    overtime = ZERO
    undertime = ZERO
    worked_count = 0
    full = partial = absent = half = 0

    for c in contributions:
        working_days += c.day_value
        total_hours += c.hours_worked
        overtime += c.overtime_hours
        undertime += c.undertime_hours
        if c.day_value > ZERO:
            worked_count += 1
        if c.record_type is RecordType.FULL:
            full += 1
        elif c.record_type is RecordType.PARTIAL:
            partial += 1
        else:
            absent += 1
        if AttendanceStatus.parse(c.status) is AttendanceStatus.HALF_DAY:
            half += 1

    average = total_hours / worked_count if worked_count else ZERO
    percentage = one_place(working_days / total * HUNDRED) if total else ZERO

    return PeriodSummary(
        total_records=total,
        working_days=working_days,
        full_days=full,
        partial_days=partial,
        half_days=half,
        absent_days=absent,
        total_hours=total_hours,
        average_hours=average,
        overtime_hours=overtime,
        undertime_hours=undertime,
        attendance_percentage=percentage,
        details=contributions,
    )
