"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  AJK CRM - Customer Lifecycle Engine                                         ║
║                                                                              ║
║  Pure decision logic. "today" is ALWAYS passed in, never read here.          ║
║                                                                              ║
║  RECONCILE (every list read):                                                ║
║  - payment Pending  + nextVisit <  today          -> payment Overdue         ║
║  - work Completed   + payment Paid + nextVisit <= today -> work Pending      ║
║                                                                              ║
║  ADVANCE (job marked done):                                                  ║
║  - work Completed, payment Pending, lastPayment cleared                      ║
║  - nextVisit moved by one recurrence interval FROM nextVisit (not today)     ║
║  - recurring None -> nextVisit untouched                                     ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import calendar
from datetime import date, timedelta
from typing import Any, Dict

from models.customer import Customer, PaymentStatus, Recurrence, WorkStatus


RECURRENCE_DAYS = {
    Recurrence.WEEKLY: 7,
    Recurrence.BI_WEEKLY: 14,
}


def add_months(start: date, months: int) -> date:
    """
    Calendar-month add, clamped to the last day of the target month.

    2025-01-31 + 1 -> 2025-02-28, 2024-01-31 + 1 -> 2024-02-29
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(start.day, last_day))


def add_interval(start: date, recurring: Recurrence) -> date:
    """Next visit date for a recurrence; None leaves the date as is"""
    if recurring == Recurrence.MONTHLY:
        return add_months(start, 1)
    days = RECURRENCE_DAYS.get(recurring)
    if days is None:
        return start
    return start + timedelta(days=days)


# ════════════════════════════════════════════════════════════════════════════
# RECONCILE
# ════════════════════════════════════════════════════════════════════════════

def reconcile_changes(customer: Customer, today: date) -> Dict[str, Any]:
    """
    Field updates the read-time repair would apply, keyed by attribute name.

    Both rules look at the record as it was read; an empty dict means no
    write is needed.
    """
    changes: Dict[str, Any] = {}

    if customer.payment_status == PaymentStatus.PENDING and customer.next_visit < today:
        changes["payment_status"] = PaymentStatus.OVERDUE

    if (
        customer.work_status == WorkStatus.COMPLETED
        and customer.payment_status == PaymentStatus.PAID
        and customer.next_visit <= today
    ):
        changes["work_status"] = WorkStatus.PENDING

    return changes


def reconcile(customer: Customer, today: date) -> Customer:
    """Returns the same instance when nothing changes, a corrected copy otherwise"""
    changes = reconcile_changes(customer, today)
    if not changes:
        return customer
    return customer.model_copy(update=changes)


# ════════════════════════════════════════════════════════════════════════════
# ADVANCE
# ════════════════════════════════════════════════════════════════════════════

def advance_changes(customer: Customer, today: date) -> Dict[str, Any]:
    # Schedule is anchored on nextVisit; today does not move it
    changes: Dict[str, Any] = {
        "work_status": WorkStatus.COMPLETED,
        "payment_status": PaymentStatus.PENDING,
        "last_payment": None,
    }
    if customer.recurring != Recurrence.NONE:
        changes["next_visit"] = add_interval(customer.next_visit, customer.recurring)
    return changes


def advance(customer: Customer, today: date) -> Customer:
    return customer.model_copy(update=advance_changes(customer, today))


def to_storage(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Translate attribute-keyed changes into a camelCase $set document"""
    fields = Customer.model_fields
    doc = {}
    for attr, value in changes.items():
        key = fields[attr].alias or attr
        if isinstance(value, date):
            value = value.isoformat()
        elif hasattr(value, "value"):
            value = value.value
        doc[key] = value
    return doc
