# payroll_api/services/salary_calculator.py
"""
Salary reconciliation: attendance + payments -> SalaryCalculation.

The calculator owns no storage. It is handed three accessors:

    list_attendance(employee_id, start, end) -> [AttendanceRecord]
    list_payments(employee_id, start, end)   -> [PaymentRecord]
    get_employee(employee_id)                -> EmployeeInfo | None

and re-scopes whatever they return before using it. Each call builds its
result from scratch; nothing is kept between calls.
"""
from __future__ import annotations

import logging
import time
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from . import attendance_classifier, period_aggregator, payment_aggregator
from .salary_types import (
    AttendanceRecord,
    EmployeeInfo,
    EmployeeNotFoundError,
    ErrorEntry,
    ErrorKind,
    Financial,
    InvalidPeriodError,
    NetSalaryStatus,
    PaymentRecord,
    PeriodInfo,
    RateConfig,
    SalaryCalculation,
    SalaryError,
    ZERO,
    money,
    parse_iso_date,
    rate_config_from_dict,
    utcnow,
)

log = logging.getLogger(__name__)

AttendanceFetch = Callable[[str, date, date], Iterable[AttendanceRecord]]
PaymentFetch = Callable[[str, date, date], Iterable[PaymentRecord]]
EmployeeFetch = Callable[[str], Optional[EmployeeInfo]]

BatchEntry = Union[SalaryCalculation, ErrorEntry]


def validate_period(start_date, end_date) -> Tuple[date, date]:
    start = parse_iso_date(start_date, "start_date")
    end = parse_iso_date(end_date, "end_date")
    if start > end:
        raise InvalidPeriodError(
            f"start_date {start.isoformat()} must be on or before end_date {end.isoformat()}")
    return start, end


def total_calendar_days(start: date, end: date) -> int:
    # inclusive of both ends
    return (end - start).days + 1


@dataclass
class SalaryCalculator:
    list_attendance: AttendanceFetch
    list_payments: PaymentFetch
    get_employee: EmployeeFetch
    clock: Callable[[], datetime] = utcnow
    concurrent_fetch: bool = True
    max_workers: int = 4
    timeout: Optional[float] = None   # seconds per employee in batch mode

    @classmethod
    def from_sources(cls, sources, **kw) -> "SalaryCalculator":
        return cls(
            list_attendance=sources.list_attendance,
            list_payments=sources.list_payments,
            get_employee=sources.get_employee,
            **kw,
        )

    # ---------- single ----------

    def calculate(self, employee_id, start_date, end_date, rate_config) -> SalaryCalculation:
        employee_id = str(employee_id or "").strip()
        if not employee_id:
            raise InvalidPeriodError("employee_id is required")
        start, end = validate_period(start_date, end_date)
        rates = rate_config_from_dict(rate_config)
        return self._calculate(employee_id, start, end, rates)

    def _calculate(self, employee_id: str, start: date, end: date,
                   rates: RateConfig, concurrent: Optional[bool] = None) -> SalaryCalculation:
        employee = self.get_employee(employee_id)
        if employee is None:
            raise EmployeeNotFoundError(f"Employee {employee_id} not found")

        if concurrent is None:
            concurrent = self.concurrent_fetch
        attendance, payments = self._fetch(employee_id, start, end, concurrent)
        attendance = period_aggregator.scope_attendance(attendance, employee_id, start, end)
        payments = payment_aggregator.scope_payments(payments, employee_id, start, end)

        daily_hours = rates.expected_daily_hours
        contributions = [attendance_classifier.classify(r, daily_hours) for r in attendance]
        summary = period_aggregator.aggregate(contributions)

        gross = rates.gross(summary)
        paid = payment_aggregator.total_paid(payments)
        net = gross - paid
        status = NetSalaryStatus.DUE if net >= ZERO else NetSalaryStatus.OVERPAID

        log.info("[salary.calculate] emp=%s %s..%s days=%s gross=%s paid=%s net=%s",
                 employee_id, start, end, summary.working_days, gross, paid, net)

        return SalaryCalculation(
            employee=employee,
            period=PeriodInfo(
                start_date=start,
                end_date=end,
                total_calendar_days=total_calendar_days(start, end),
                working_days=summary.working_days_display,
            ),
            rates=rates,
            attendance=summary,
            financial=Financial(
                gross_salary=money(gross),
                total_payments=money(paid),
                net_salary=money(net),
                net_salary_status=status,
            ),
            payments=tuple(payments),
            attendance_records=tuple(attendance),
            calculated_at=self.clock(),
        )

    def _fetch(self, employee_id: str, start: date, end: date,
               concurrent: bool) -> Tuple[List[AttendanceRecord], List[PaymentRecord]]:
        if not concurrent:
            return (list(self.list_attendance(employee_id, start, end)),
                    list(self.list_payments(employee_id, start, end)))

        with ThreadPoolExecutor(max_workers=2) as pool:
            fa = pool.submit(self.list_attendance, employee_id, start, end)
            fp = pool.submit(self.list_payments, employee_id, start, end)
            return list(fa.result()), list(fp.result())

    # ---------- batch ----------

    def calculate_many(self, employee_ids: Sequence, start_date, end_date, rate_config,
                       max_workers: Optional[int] = None,
                       timeout: Optional[float] = None) -> List[BatchEntry]:
        """
        Calculate for several employees; one failure never sinks the batch.

        Period and rate are shared, so they are validated once up front and
        raise. Per-employee problems (unknown employee, fetch errors,
        timeouts) come back as ErrorEntry in the same position.

        At most ``max_workers`` employees are in flight at once, and inside a
        batch each employee's reads run one after another, so that is also
        the bound on concurrent storage reads. The timeout clock for an
        employee starts when its work starts, not when it is queued. A
        timed-out calculation frees its slot for the next employee; its
        thread is abandoned.
        """
        start, end = validate_period(start_date, end_date)
        rates = rate_config_from_dict(rate_config)
        ids = [str(e or "").strip() for e in employee_ids]
        if not ids:
            return []

        workers = max(1, min(max_workers or self.max_workers, len(ids)))
        timeout = timeout if timeout is not None else self.timeout

        out: List[Optional[BatchEntry]] = [None] * len(ids)
        queue = deque(range(len(ids)))
        running: Dict[Future, int] = {}
        started: Dict[int, float] = {}

        # sized for the worst case where every employee hangs
        pool = ThreadPoolExecutor(max_workers=len(ids))
        try:
            while queue or running:
                while queue and len(running) < workers:
                    i = queue.popleft()
                    running[pool.submit(self._timed_one, i, started, ids[i], start, end, rates)] = i

                done, _ = wait(list(running), timeout=self._next_deadline(running, started, timeout),
                               return_when=FIRST_COMPLETED)
                for fut in done:
                    i = running.pop(fut)
                    out[i] = self._entry(ids[i], fut)

                if timeout is None:
                    continue
                now = time.monotonic()
                for fut, i in list(running.items()):
                    t0 = started.get(i)
                    if t0 is not None and now - t0 >= timeout:
                        del running[fut]
                        log.warning("[salary.batch] emp=%s timed out after %ss", ids[i], timeout)
                        out[i] = ErrorEntry(ids[i], f"calculation timed out after {timeout}s",
                                            ErrorKind.TIMEOUT)
        finally:
            # never block on a hung fetch
            pool.shutdown(wait=False, cancel_futures=True)

        failed = sum(1 for x in out if isinstance(x, ErrorEntry))
        log.info("[salary.batch] %d employees, %d failed", len(out), failed)
        return out

    @staticmethod
    def _next_deadline(running: Dict[Future, int], started: Dict[int, float],
                       timeout: Optional[float]) -> Optional[float]:
        if timeout is None:
            return None
        now = time.monotonic()
        # a submitted task that has not recorded its start yet gets a full window
        deadlines = [started.get(i, now) + timeout for i in running.values()]
        return max(0.0, min(deadlines) - now)

    @staticmethod
    def _entry(employee_id: str, fut: Future) -> BatchEntry:
        try:
            return fut.result()
        except SalaryError as e:
            log.warning("[salary.batch] emp=%s %s: %s", employee_id, e.kind.value, e)
            return ErrorEntry(employee_id, str(e), e.kind)
        except Exception as e:
            log.warning("[salary.batch] emp=%s fetch failed", employee_id, exc_info=True)
            return ErrorEntry(employee_id, str(e) or e.__class__.__name__, ErrorKind.FETCH_FAILED)

    def _timed_one(self, idx: int, started: Dict[int, float], employee_id: str,
                   start: date, end: date, rates: RateConfig) -> SalaryCalculation:
        started[idx] = time.monotonic()
        return self._one(employee_id, start, end, rates)

    def _one(self, employee_id: str, start: date, end: date, rates: RateConfig) -> SalaryCalculation:
        if not employee_id:
            raise InvalidPeriodError("employee_id is required")
        # batch workers already run in parallel; keep one read in flight per employee
        return self._calculate(employee_id, start, end, rates, concurrent=False)
