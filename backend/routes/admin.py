"""
AJK CRM - Routes Admin (digest trigger, activity journal)
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from dependencies import get_db
from routes.auth import get_current_session
from services.activity_logger import get_activity_logs

router = APIRouter(tags=["Admin"], dependencies=[Depends(get_current_session)])


@router.post("/admin/digest")
async def run_digest(request: Request):
    """Run the upcoming-visits digest now instead of waiting for the cron"""
    return await request.app.state.task_scheduler.send_admin_digest()


@router.get("/activity")
async def list_activity(
    customer_id: Optional[str] = Query(None, description="Entries for one customer"),
    action: Optional[str] = None,
    date_from: Optional[date] = Query(None, description="YYYY-MM-DD, inclusive"),
    date_to: Optional[date] = Query(None, description="YYYY-MM-DD, inclusive"),
    limit: int = Query(100, ge=1, le=500),
    skip: int = Query(0, ge=0),
    db=Depends(get_db),
):
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=400, detail="date_from must not be after date_to")
    return await get_activity_logs(
        db, customer_id, action, limit, skip, date_from=date_from, date_to=date_to
    )
