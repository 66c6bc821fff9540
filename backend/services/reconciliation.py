"""
AJK CRM - Read-time reconciliation batch

Applies the lifecycle Reconcile rule to a list of customers and writes back
the ones that changed, with a bounded number of concurrent writes. Failed
writes are collected in the report; the read itself never fails because of
them (the next read reconciles again).
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Tuple

from models.customer import Customer
from services.lifecycle import reconcile_changes, to_storage

logger = logging.getLogger("reconciliation")

DEFAULT_CONCURRENCY = 8


@dataclass
class ReconcileReport:
    customers: List[Customer] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


async def reconcile_all(
    store,
    customers: List[Customer],
    today: date,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> ReconcileReport:
    """
    Reconcile every customer against the same ``today``.

    Returns the reconciled view of all records, in input order.
    """
    report = ReconcileReport()
    semaphore = asyncio.Semaphore(max(1, concurrency))
    pending = []

    for customer in customers:
        changes = reconcile_changes(customer, today)
        if not changes:
            report.customers.append(customer)
            continue
        report.customers.append(customer.model_copy(update=changes))
        pending.append((customer.id, to_storage(changes)))

    async def write(customer_id: str, doc: dict):
        async with semaphore:
            await store.update(customer_id, doc)

    results = await asyncio.gather(
        *(write(customer_id, doc) for customer_id, doc in pending),
        return_exceptions=True,
    )

    for (customer_id, doc), result in zip(pending, results):
        if isinstance(result, BaseException):
            report.failed.append((customer_id, str(result)))
            logger.error(f"[RECONCILE_FAIL] customer={customer_id} error={result}")
        else:
            report.updated.append(customer_id)
            logger.info(f"[RECONCILE] customer={customer_id} set={doc}")

    return report
