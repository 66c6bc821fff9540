"""
AJK CRM - Admin digest job tests
"""

from datetime import date

import pytest

from config import FixedClock
from scheduler_service import TaskScheduler, digest_window
from services.customer_store import CustomerStore
from tests.conftest import FakeDB, FakeEmailService, customer_doc, make_settings

TODAY = date(2025, 6, 10)


def make_scheduler(docs=(), email_result=True, **settings):
    db = FakeDB()
    db.customers.docs.extend(docs)
    email = FakeEmailService(result=email_result)
    scheduler = TaskScheduler(
        make_settings(**settings), db, CustomerStore(db), email, FixedClock(TODAY)
    )
    return scheduler, db, email


class TestDigestWindow:
    """[today, today + 2] inclusive"""

    def test_window(self):
        assert digest_window(date(2025, 12, 30)) == (date(2025, 12, 30), date(2026, 1, 1))


class TestSendAdminDigest:
    """TaskScheduler.send_admin_digest"""

    @pytest.mark.asyncio
    async def test_sends_visits_in_window(self):
        scheduler, db, email = make_scheduler([
            customer_doc(name="Yesterday", nextVisit="2025-06-09"),
            customer_doc(name="Today", nextVisit="2025-06-10"),
            customer_doc(name="In two days", nextVisit="2025-06-12"),
            customer_doc(name="In three days", nextVisit="2025-06-13"),
        ])
        result = await scheduler.send_admin_digest()

        assert result == {"sent": True, "count": 2}
        customers, today = email.digests[0]
        assert [c.name for c in customers] == ["Today", "In two days"]
        assert today == TODAY
        assert db.activity_logs.docs[-1]["action"] == "digest"
        assert db.activity_logs.docs[-1]["user"] == "system"

    @pytest.mark.asyncio
    async def test_nothing_due_sends_nothing(self):
        scheduler, _, email = make_scheduler([customer_doc(nextVisit="2025-07-01")])
        result = await scheduler.send_admin_digest()
        assert result["reason"] == "no_visits"
        assert email.digests == []

    @pytest.mark.asyncio
    async def test_email_failure_is_reported(self):
        scheduler, _, _ = make_scheduler([customer_doc()], email_result=False)
        result = await scheduler.send_admin_digest()
        assert result == {"sent": False, "count": 1, "reason": "email_failed"}

    @pytest.mark.asyncio
    async def test_store_error_does_not_raise(self, monkeypatch):
        scheduler, _, _ = make_scheduler()

        async def broken(start, end):
            raise RuntimeError("mongo down")

        monkeypatch.setattr(scheduler.store, "find_due_between", broken)
        result = await scheduler.send_admin_digest()
        assert result["reason"] == "error"


class TestJobRegistration:
    """Cron registration"""

    @pytest.mark.asyncio
    async def test_digest_job_registered(self):
        scheduler, _, _ = make_scheduler(digest_hour=6, digest_minute=45)
        scheduler.start()
        try:
            job = scheduler.scheduler.get_job("admin_digest")
            assert job is not None
            assert "hour='6'" in str(job.trigger)
            assert "minute='45'" in str(job.trigger)
        finally:
            scheduler.stop()

    @pytest.mark.asyncio
    async def test_digest_disabled(self):
        scheduler, _, _ = make_scheduler(digest_enabled=False)
        scheduler.start()
        try:
            assert scheduler.scheduler.get_job("admin_digest") is None
        finally:
            scheduler.stop()


class TestAdminEndpoints:
    """POST /api/admin/digest, GET /api/activity"""

    def test_manual_digest(self, client, db, email_service):
        db.customers.docs.append(customer_doc())
        r = client.post("/api/admin/digest")
        assert r.status_code == 200
        assert r.json() == {"sent": True, "count": 1}
        assert len(email_service.digests) == 1

    def test_activity_most_recent_first(self, client, db):
        db.customers.docs.append(customer_doc())
        client.post("/api/admin/digest")
        r = client.get("/api/activity", params={"limit": 10})
        body = r.json()
        assert body["total"] == 2
        assert [log["action"] for log in body["logs"]] == ["digest", "login"]

    def test_activity_filter(self, client):
        r = client.get("/api/activity", params={"action": "login"})
        assert r.json()["total"] == 1

    def test_activity_for_one_customer_in_date_range(self, client, db):
        db.activity_logs.docs.extend([
            {"id": "a1", "action": "complete", "entity_id": "c-1", "created_at": "2025-06-01T08:00:00+00:00"},
            {"id": "a2", "action": "remind", "entity_id": "c-1", "created_at": "2025-06-10T23:59:00+00:00"},
            {"id": "a3", "action": "remind", "entity_id": "c-1", "created_at": "2025-06-11T00:00:00+00:00"},
            {"id": "a4", "action": "remind", "entity_id": "c-2", "created_at": "2025-06-05T08:00:00+00:00"},
        ])
        r = client.get("/api/activity", params={
            "customer_id": "c-1", "date_from": "2025-06-01", "date_to": "2025-06-10",
        })
        assert r.status_code == 200
        body = r.json()
        assert body["total"] == 2
        assert [log["id"] for log in body["logs"]] == ["a2", "a1"]

    def test_activity_inverted_range_is_400(self, client):
        r = client.get("/api/activity", params={"date_from": "2025-06-10", "date_to": "2025-06-01"})
        assert r.status_code == 400
