"""
AJK CRM - Customer store (MongoDB collection "customers")

Documents are validated through the Customer model on the way in and on
the way out; a document that does not fit the model raises
pydantic.ValidationError.
"""

import logging
import uuid
from datetime import date
from typing import Dict, List, Optional

from pymongo import ReturnDocument

from config import now_iso
from models.customer import Customer, CustomerCreate

logger = logging.getLogger("customer_store")

MAX_CUSTOMERS = 5000


class CustomerStore:
    """Find / insert / update / delete customers by id or filter"""

    def __init__(self, db):
        self.collection = db.customers

    async def ensure_indexes(self):
        await self.collection.create_index("id", unique=True)
        await self.collection.create_index("nextVisit")

    async def find(self, query: Optional[Dict] = None) -> List[Customer]:
        docs = await self.collection.find(query or {}, {"_id": 0}) \
            .sort("nextVisit", 1) \
            .to_list(MAX_CUSTOMERS)
        if len(docs) >= MAX_CUSTOMERS:
            logger.warning(
                f"[FIND_CAPPED] query={query or {}} returned the first {MAX_CUSTOMERS} customers only"
            )
        return [Customer.model_validate(doc) for doc in docs]

    async def find_by_id(self, customer_id: str) -> Optional[Customer]:
        doc = await self.collection.find_one({"id": customer_id}, {"_id": 0})
        if not doc:
            return None
        return Customer.model_validate(doc)

    async def find_by_ids(self, customer_ids: List[str]) -> List[Customer]:
        return await self.find({"id": {"$in": list(customer_ids)}})

    async def find_due_between(self, start: date, end: date) -> List[Customer]:
        """Customers whose nextVisit falls in [start, end] (string compare on YYYY-MM-DD)"""
        return await self.find({
            "nextVisit": {"$gte": start.isoformat(), "$lte": end.isoformat()}
        })

    async def insert(self, data: CustomerCreate) -> Customer:
        now = now_iso()
        customer = Customer(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            **data.model_dump(),
        )
        doc = customer.to_document()
        await self.collection.insert_one(doc)
        doc.pop("_id", None)
        logger.info(f"[CREATE] customer={customer.id} name={customer.name}")
        return customer

    async def update(
        self,
        customer_id: str,
        changes: Dict,
        expected: Optional[Dict] = None,
    ) -> Optional[Customer]:
        """
        $set the given camelCase fields.

        ``expected`` adds field conditions to the filter (compare-and-swap);
        returns None when no document matched.
        """
        query = {"id": customer_id}
        if expected:
            query.update(expected)

        update = dict(changes)
        update.pop("id", None)
        update.pop("_id", None)
        update["updatedAt"] = now_iso()

        doc = await self.collection.find_one_and_update(
            query,
            {"$set": update},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            return None
        return Customer.model_validate(doc)

    async def delete_by_id(self, customer_id: str) -> bool:
        result = await self.collection.delete_one({"id": customer_id})
        return result.deleted_count > 0
