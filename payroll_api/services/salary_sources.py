# payroll_api/services/salary_sources.py
"""
SQLAlchemy-backed accessors for the salary calculator.

Filtering happens in the query (employee + date range); the calculator
re-scopes the rows anyway. Every accessor runs inside its own app context
so it can be called from the calculator's worker threads.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from flask import current_app

from payroll_api.extensions import db
from payroll_api.models.attendance import AttendanceEntry
from payroll_api.models.employee import Employee
from payroll_api.models.payment import Payment
from .salary_types import (
    AttendanceRecord,
    EmployeeInfo,
    PaymentMode,
    PaymentRecord,
)

log = logging.getLogger(__name__)


def _mode(raw) -> PaymentMode:
    s = str(raw or "").strip().lower()
    return PaymentMode.ONLINE if s == "online" else PaymentMode.CASH


def attendance_from_row(row: AttendanceEntry) -> AttendanceRecord:
    return AttendanceRecord(
        employee_id=row.employee_id,
        date=row.date,
        status=row.status,
        check_in_time=row.check_in_time or None,
        check_out_time=row.check_out_time or None,
    )


def payment_from_row(row: Payment) -> PaymentRecord:
    return PaymentRecord(
        employee_id=row.employee_id,
        amount=Decimal(str(row.amount or 0)),
        payment_date=row.payment_date,
        payment_mode=_mode(row.payment_mode),
        paid_by=row.paid_by or "",
        notes=row.notes,
    )


def employee_from_row(row: Employee) -> EmployeeInfo:
    return EmployeeInfo(
        id=row.id,
        name=row.name,
        designation=row.designation,
        employee_code=row.employee_code,
    )


class SqlSalarySources:
    def __init__(self, app=None):
        self.app = app or current_app._get_current_object()

    def list_attendance(self, employee_id: str, start: date, end: date) -> List[AttendanceRecord]:
        with self.app.app_context():
            rows = (
                AttendanceEntry.query
                .filter(AttendanceEntry.employee_id == employee_id)
                .filter(AttendanceEntry.date >= start)
                .filter(AttendanceEntry.date <= end)
                .order_by(AttendanceEntry.date.asc())
                .all()
            )
            return [attendance_from_row(r) for r in rows]

    def list_payments(self, employee_id: str, start: date, end: date) -> List[PaymentRecord]:
        with self.app.app_context():
            rows = (
                Payment.query
                .filter(Payment.employee_id == employee_id)
                .filter(Payment.payment_date >= start)
                .filter(Payment.payment_date <= end)
                .order_by(Payment.payment_date.asc(), Payment.id.asc())
                .all()
            )
            return [payment_from_row(r) for r in rows]

    def get_employee(self, employee_id: str) -> Optional[EmployeeInfo]:
        with self.app.app_context():
            row = db.session.get(Employee, employee_id)
            return employee_from_row(row) if row else None


def build_calculator(app=None):
    """Calculator wired to the database and to the app's PAYROLL_* settings."""
    from .salary_calculator import SalaryCalculator

    app = app or current_app._get_current_object()
    cfg = app.config
    return SalaryCalculator.from_sources(
        SqlSalarySources(app),
        concurrent_fetch=bool(cfg.get("PAYROLL_CONCURRENT_FETCH", True)),
        max_workers=int(cfg.get("PAYROLL_BATCH_CONCURRENCY", 4)),
        timeout=cfg.get("PAYROLL_EMPLOYEE_TIMEOUT"),
    )
