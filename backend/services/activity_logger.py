"""
Activity journal (collection "activity_logs")
"""

import uuid
from datetime import date, timedelta

from config import now_iso


async def log_activity(
    db,
    action: str,
    entity_id: str = None,
    entity_name: str = None,
    details: dict = None,
    user: str = "admin",
):
    """
    Record an activity entry

    Actions: create, update, delete, complete, remind, login, logout,
    digest, export
    """
    log_entry = {
        "id": str(uuid.uuid4()),
        "user": user,
        "action": action,
        "entity_type": "customer" if entity_id else "system",
        "entity_id": entity_id,
        "entity_name": entity_name,
        "details": details or {},
        "created_at": now_iso()
    }

    await db.activity_logs.insert_one(log_entry)
    log_entry.pop("_id", None)
    return log_entry


async def get_activity_logs(
    db,
    entity_id: str = None,
    action: str = None,
    limit: int = 100,
    skip: int = 0,
    date_from: date = None,
    date_to: date = None,
):
    """
    Most recent entries first.

    Filters: one customer (entity_id), one action, and a day range on
    created_at with both ends inclusive (UTC days).
    """
    query = {}

    if entity_id:
        query["entity_id"] = entity_id
    if action:
        query["action"] = action

    created = {}
    if date_from:
        created["$gte"] = date_from.isoformat()
    if date_to:
        created["$lt"] = (date_to + timedelta(days=1)).isoformat()
    if created:
        query["created_at"] = created

    logs = await db.activity_logs.find(query, {"_id": 0}) \
        .sort("created_at", -1) \
        .skip(skip) \
        .limit(limit) \
        .to_list(limit)

    total = await db.activity_logs.count_documents(query)

    return {"logs": logs, "total": total, "limit": limit, "skip": skip}
