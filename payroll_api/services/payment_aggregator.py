# payroll_api/services/payment_aggregator.py
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from .salary_types import PaymentRecord, ZERO, to_decimal

log = logging.getLogger(__name__)


def scope_payments(payments: Iterable[PaymentRecord], employee_id: Optional[str] = None,
                   start: Optional[date] = None, end: Optional[date] = None) -> List[PaymentRecord]:
    """Keep only payments for ``employee_id`` dated within [start, end] (bounds optional)."""
    kept: List[PaymentRecord] = []
    dropped = 0
    for p in payments:
        if employee_id is not None and str(p.employee_id) != str(employee_id):
            dropped += 1
            continue
        if start is not None and p.payment_date < start:
            dropped += 1
            continue
        if end is not None and p.payment_date > end:
            dropped += 1
            continue
        kept.append(p)
    if dropped:
        log.debug("[salary.scope] dropped %d payments outside scope for %s", dropped, employee_id)
    return kept


def total_paid(payments: Iterable[PaymentRecord], employee_id: Optional[str] = None,
               start: Optional[date] = None, end: Optional[date] = None) -> Decimal:
    total = ZERO
    for p in scope_payments(payments, employee_id, start, end):
        total += to_decimal(p.amount)
    return total
