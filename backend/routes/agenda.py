"""
AJK CRM - Routes Agenda (AI daily summary)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from config import Clock, Settings
from dependencies import get_clock, get_settings, get_store
from routes.auth import get_current_session
from services.agenda_summary import (
    AgendaSummaryError,
    empty_agenda,
    generate_agenda_summary,
    split_agenda,
)
from services.customer_store import CustomerStore
from services.notifications import normalize_language
from services.reconciliation import reconcile_all

logger = logging.getLogger("agenda")

router = APIRouter(tags=["Agenda"], dependencies=[Depends(get_current_session)])


@router.get("/agenda-summary")
async def agenda_summary(
    language: str = Query("en", description="en or de"),
    store: CustomerStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
):
    """AI-written agenda of today's visits and overdue payments"""
    language = normalize_language(language)
    today = clock.today()

    customers = await store.find()
    report = await reconcile_all(store, customers, today, settings.reconcile_concurrency)
    visits, overdue = split_agenda(report.customers, today)

    result = {
        "date": today.isoformat(),
        "visits": len(visits),
        "overdue": len(overdue),
        "language": language,
    }

    if not visits:
        result["summary"] = empty_agenda(overdue, language)
        result["generated"] = False
        return result

    if not settings.ai_enabled:
        raise HTTPException(status_code=503, detail="AI summary is not configured")

    try:
        summary = await generate_agenda_summary(settings, visits, overdue, today, language)
    except AgendaSummaryError:
        raise HTTPException(status_code=502, detail="Error generating agenda summary")

    logger.info(f"[AGENDA] generated for {today}: {len(visits)} visit(s)")
    result["summary"] = summary
    result["generated"] = True
    return result
