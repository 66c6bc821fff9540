"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  AJK CRM - Routes Customers                                                  ║
║                                                                              ║
║  Every list/detail read goes through RECONCILE (one "today" per request).    ║
║  "Complete job" goes through ADVANCE, guarded against double completion.     ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Response
from starlette.concurrency import run_in_threadpool

from config import Clock, Settings
from dependencies import get_clock, get_db, get_email_service, get_settings, get_store
from email_service import EmailService
from models.customer import CustomerCreate, CustomerUpdate, ReminderRequest
from routes.auth import get_current_session
from services.activity_logger import log_activity
from services.customer_store import CustomerStore
from services.lifecycle import advance_changes, to_storage
from services.notifications import normalize_language
from services.reconciliation import reconcile_all

logger = logging.getLogger("customers")

router = APIRouter(
    prefix="/customers",
    tags=["Customers"],
    dependencies=[Depends(get_current_session)],
)


def validate_customer_id(customer_id: str) -> str:
    """400 for anything that is not a UUID"""
    try:
        uuid.UUID(customer_id)
    except (ValueError, AttributeError, TypeError):
        raise HTTPException(status_code=400, detail="Invalid customer ID")
    return customer_id


def serialize(customer) -> dict:
    return customer.to_document()


@router.get("")
async def list_customers(
    store: CustomerStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
):
    """All customers, reconciled, ordered by next visit"""
    customers = await store.find()
    today = clock.today()
    report = await reconcile_all(store, customers, today, settings.reconcile_concurrency)
    if not report.ok:
        logger.warning(
            f"[RECONCILE] {len(report.failed)} write(s) failed during list, "
            f"{len(report.updated)} succeeded"
        )
    return [serialize(c) for c in report.customers]


@router.get("/{customer_id}")
async def get_customer(
    customer_id: str,
    store: CustomerStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    validate_customer_id(customer_id)
    customer = await store.find_by_id(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")

    report = await reconcile_all(store, [customer], clock.today(), concurrency=1)
    return serialize(report.customers[0])


@router.post("", status_code=201)
async def create_customer(
    data: CustomerCreate,
    store: CustomerStore = Depends(get_store),
    db=Depends(get_db),
):
    customer = await store.insert(data)
    await log_activity(db, "create", customer.id, customer.name)
    return serialize(customer)


@router.put("/{customer_id}")
async def update_customer(
    customer_id: str,
    data: CustomerUpdate,
    store: CustomerStore = Depends(get_store),
    db=Depends(get_db),
):
    """Partial update; id / _id in the body are ignored"""
    validate_customer_id(customer_id)
    changes = data.to_changes()

    if not changes:
        customer = await store.find_by_id(customer_id)
    else:
        customer = await store.update(customer_id, changes)

    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")

    if changes:
        await log_activity(db, "update", customer.id, customer.name, details=changes)
    return serialize(customer)


@router.delete("/{customer_id}", status_code=204)
async def delete_customer(
    customer_id: str,
    store: CustomerStore = Depends(get_store),
    db=Depends(get_db),
):
    validate_customer_id(customer_id)
    deleted = await store.delete_by_id(customer_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Customer not found")

    await log_activity(db, "delete", customer_id)
    return Response(status_code=204)


@router.post("/{customer_id}/complete")
async def complete_job(
    customer_id: str,
    store: CustomerStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    db=Depends(get_db),
):
    """
    Mark the current job as done and schedule the next visit.

    The write only applies if nextVisit / workStatus are still what was
    read; a concurrent completion answers 409 instead of advancing twice.
    """
    validate_customer_id(customer_id)
    customer = await store.find_by_id(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")

    changes = advance_changes(customer, clock.today())
    expected = {
        "nextVisit": customer.next_visit.isoformat(),
        "workStatus": customer.work_status.value,
    }
    updated = await store.update(customer_id, to_storage(changes), expected=expected)

    if not updated:
        if await store.find_by_id(customer_id) is None:
            raise HTTPException(status_code=404, detail="Customer not found")
        logger.warning(f"[COMPLETE_CONFLICT] customer={customer_id}")
        raise HTTPException(
            status_code=409,
            detail="Customer was modified by another request, reload and try again"
        )

    logger.info(
        f"[COMPLETE] customer={customer_id} recurring={updated.recurring.value} "
        f"next_visit={customer.next_visit} -> {updated.next_visit}"
    )
    await log_activity(
        db, "complete", updated.id, updated.name,
        details={"previous_visit": customer.next_visit.isoformat(),
                 "next_visit": updated.next_visit.isoformat()}
    )

    return {
        "message": "Job completed and next visit scheduled!",
        "customer": serialize(updated),
    }


@router.post("/{customer_id}/remind")
async def send_reminder(
    customer_id: str,
    data: ReminderRequest,
    store: CustomerStore = Depends(get_store),
    email_service: EmailService = Depends(get_email_service),
    db=Depends(get_db),
):
    """Reminder email for the next visit, in English or German"""
    validate_customer_id(customer_id)
    customer = await store.find_by_id(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")

    if not customer.email:
        raise HTTPException(status_code=400, detail="Customer has no email address")

    language = normalize_language(data.language)
    sent = await run_in_threadpool(email_service.send_reminder, customer, language, data.message)
    if not sent:
        raise HTTPException(status_code=500, detail="Error sending email")

    await log_activity(db, "remind", customer.id, customer.name, details={"language": language})

    message = "E-Mail erfolgreich gesendet!" if language == "de" else "Email sent successfully!"
    return {"message": message}
