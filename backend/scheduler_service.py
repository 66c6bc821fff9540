"""
Scheduler for AJK CRM background tasks
- Admin digest of the visits due in the next two days (daily)
"""

import logging
from datetime import date, timedelta
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from starlette.concurrency import run_in_threadpool

from config import Clock, Settings
from email_service import EmailService
from services.activity_logger import log_activity
from services.customer_store import CustomerStore
from services.reconciliation import reconcile_all

logger = logging.getLogger("scheduler")

DIGEST_WINDOW_DAYS = 2


def digest_window(today: date):
    """[today, today + 2 days], both ends inclusive"""
    return today, today + timedelta(days=DIGEST_WINDOW_DAYS)


class TaskScheduler:
    """Scheduled jobs manager"""

    def __init__(
        self,
        settings: Settings,
        db,
        store: CustomerStore,
        email_service: EmailService,
        clock: Clock,
    ):
        self.settings = settings
        self.db = db
        self.store = store
        self.email_service = email_service
        self.clock = clock
        self.scheduler = AsyncIOScheduler(timezone=settings.business_timezone)

    def start(self):
        """Register every job and start the scheduler"""
        if self.settings.digest_enabled:
            self.scheduler.add_job(
                self.send_admin_digest,
                CronTrigger(hour=self.settings.digest_hour, minute=self.settings.digest_minute),
                id="admin_digest",
                name="Admin digest of upcoming visits",
                replace_existing=True
            )

        self.scheduler.start()
        logger.info("Scheduler started")

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")

    # ==================== SCHEDULED TASKS ====================

    async def send_admin_digest(self, today: Optional[date] = None) -> dict:
        """
        Email the office the visits due in the digest window.

        Never raises: failures are logged and reported in the result so the
        scheduler keeps running.
        """
        today = today or self.clock.today()
        start, end = digest_window(today)

        try:
            customers = await self.store.find_due_between(start, end)
            report = await reconcile_all(
                self.store, customers, today, self.settings.reconcile_concurrency
            )
            customers = report.customers

            if not customers:
                logger.info(f"[DIGEST] no visits between {start} and {end}, nothing sent")
                return {"sent": False, "count": 0, "reason": "no_visits"}

            sent = await run_in_threadpool(self.email_service.send_admin_digest, customers, today)
            if not sent:
                logger.error(f"[DIGEST] email failed for {len(customers)} visit(s)")
                return {"sent": False, "count": len(customers), "reason": "email_failed"}

            logger.info(f"[DIGEST] sent: {len(customers)} visit(s) between {start} and {end}")
            await log_activity(
                self.db, "digest",
                details={"count": len(customers), "from": start.isoformat(), "to": end.isoformat()},
                user="system"
            )
            return {"sent": True, "count": len(customers)}

        except Exception as e:
            logger.error(f"[DIGEST] failed: {str(e)}", exc_info=True)
            return {"sent": False, "count": 0, "reason": "error"}
