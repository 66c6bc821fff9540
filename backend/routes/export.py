"""
AJK CRM - Routes Export (PDF)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from config import Clock, Settings
from dependencies import get_clock, get_db, get_settings, get_store
from models.customer import PdfExportRequest
from routes.auth import get_current_session
from services.activity_logger import log_activity
from services.customer_store import CustomerStore
from services.pdf_export import pdf_response, render_customer_report
from services.reconciliation import reconcile_all

logger = logging.getLogger("export")

router = APIRouter(prefix="/export", tags=["Export"], dependencies=[Depends(get_current_session)])


@router.post("/pdf")
async def export_pdf(
    data: Optional[PdfExportRequest] = None,
    store: CustomerStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
    db=Depends(get_db),
):
    """
    PDF report of the selected customers (all of them without a selection).
    Unknown ids are ignored.
    """
    data = data or PdfExportRequest()
    today = clock.today()

    if data.customer_ids is None:
        customers = await store.find()
    else:
        customers = await store.find_by_ids(data.customer_ids)

    report = await reconcile_all(store, customers, today, settings.reconcile_concurrency)

    content = await run_in_threadpool(
        render_customer_report, report.customers, clock.now(), data.title, data.language
    )
    logger.info(f"[EXPORT] pdf with {len(report.customers)} customer(s), {len(content)} bytes")
    await log_activity(db, "export", details={"format": "pdf", "count": len(report.customers)})

    return pdf_response(content, today)
