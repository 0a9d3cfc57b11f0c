import logging
from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from quarry_ledger.models.base import parse_object_id, utcnow
from quarry_ledger.models.expense import DEFAULT_EXPENSE_CATEGORIES, Expense, ExpenseCategory

logger = logging.getLogger(__name__)


class ExpenseRepository:
    """Expense and expense-category database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["expenses"]
        self.categories = db["expense_categories"]

    async def insert(self, expense: Expense) -> Expense:
        await self.collection.insert_one(expense.to_document())
        return expense

    async def get(self, expense_id: str) -> Optional[Expense]:
        oid = parse_object_id(expense_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid})
        return Expense(**doc) if doc else None

    async def list_expenses(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        category: Optional[str] = None,
        ghat_location: Optional[str] = None,
        visible_to: Optional[List[str]] = None,
    ) -> List[Expense]:
        """
        Expenses with start <= expense_date < end, newest first.

        ``visible_to`` restricts the result to entries created by those users.
        """
        query: dict = {}
        date_range = {}
        if start:
            date_range["$gte"] = start
        if end:
            date_range["$lt"] = end
        if date_range:
            query["expense_date"] = date_range
        if category:
            query["category"] = category
        if ghat_location:
            query["ghat_location"] = ghat_location
        if visible_to:
            query["created_by"] = {"$in": visible_to}

        docs = await self.collection.find(query).sort(
            [("expense_date", -1), ("created_at", -1)]
        ).to_list(None)
        return [Expense(**doc) for doc in docs]

    async def update(self, expense_id, fields: dict) -> Optional[Expense]:
        doc = await self.collection.find_one_and_update(
            {"_id": expense_id},
            {"$set": {**fields, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return Expense(**doc) if doc else None

    async def delete(self, expense_id: str) -> bool:
        oid = parse_object_id(expense_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0

    async def list_categories(self) -> List[ExpenseCategory]:
        docs = await self.categories.find({}).sort("_id", 1).to_list(None)
        return [ExpenseCategory(name=doc["_id"], description=doc.get("description", "")) for doc in docs]

    async def seed_categories(self) -> int:
        """Insert the default categories that are missing."""
        created = 0
        for name, description in DEFAULT_EXPENSE_CATEGORIES.items():
            result = await self.categories.update_one(
                {"_id": name},
                {"$setOnInsert": {"description": description}},
                upsert=True,
            )
            if result.upserted_id is not None:
                created += 1
        if created:
            logger.info("Seeded %d expense categories", created)
        return created
