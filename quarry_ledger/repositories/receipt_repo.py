import re
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from quarry_ledger.core.exceptions import ConflictError
from quarry_ledger.models.base import parse_object_id, utcnow
from quarry_ledger.models.receipt import CreditPayment, Receipt

RECEIPT_COUNTER_ID = "receipt_no"


class ReceiptRepository:
    """Receipt database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["receipts"]
        self.counters = db["counters"]
        self.credit_payments = db["credit_payments"]

    async def insert(self, receipt: Receipt, session=None) -> Receipt:
        """Persist a new receipt. A taken receipt_no raises ConflictError."""
        try:
            await self.collection.insert_one(receipt.to_document(), session=session)
        except DuplicateKeyError as e:
            raise ConflictError(f"Receipt number {receipt.receipt_no} already exists") from e
        return receipt

    async def receipt_no_exists(self, receipt_no: str, session=None) -> bool:
        doc = await self.collection.find_one({"receipt_no": receipt_no}, {"_id": 1}, session=session)
        return doc is not None

    async def highest_receipt_seq(self, session=None) -> Optional[int]:
        """Numerically highest receipt sequence ever issued, active or not."""
        docs = await self.collection.find(
            {"receipt_seq": {"$ne": None}}, {"receipt_seq": 1}, session=session
        ).sort("receipt_seq", -1).limit(1).to_list(1)
        return docs[0]["receipt_seq"] if docs else None

    async def next_receipt_seq(self, floor: int) -> int:
        """
        Issue the next receipt sequence number.

        The counter is first raised to at least ``floor`` and then incremented
        atomically, so concurrent callers always receive distinct numbers.
        """
        await self.counters.update_one(
            {"_id": RECEIPT_COUNTER_ID},
            {"$max": {"value": floor}},
            upsert=True,
        )
        doc = await self.counters.find_one_and_update(
            {"_id": RECEIPT_COUNTER_ID},
            {"$inc": {"value": 1}},
            return_document=ReturnDocument.AFTER,
        )
        return int(doc["value"])

    async def get(self, receipt_id: str, session=None, active_only: bool = True) -> Optional[Receipt]:
        oid = parse_object_id(receipt_id)
        if oid is None:
            return None
        query = {"_id": oid}
        if active_only:
            query["is_active"] = True
        doc = await self.collection.find_one(query, session=session)
        return Receipt(**doc) if doc else None

    async def list_receipts(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        truck_owner: Optional[str] = None,
        vehicle_number: Optional[str] = None,
        payment_status: Optional[str] = None,
        owner_type: Optional[str] = None,
        page: int = 1,
        limit: int = 100,
    ) -> Tuple[List[Receipt], int]:
        """Active receipts matching the filters, newest first, plus the total count."""
        query: dict = {"is_active": True}
        date_range = {}
        if start_date:
            date_range["$gte"] = start_date
        if end_date:
            date_range["$lte"] = end_date
        if date_range:
            query["date_time"] = date_range
        if truck_owner:
            query["truck_owner"] = {"$regex": re.escape(truck_owner), "$options": "i"}
        if vehicle_number:
            query["vehicle_number"] = {"$regex": re.escape(vehicle_number), "$options": "i"}
        if payment_status:
            query["payment_status"] = payment_status
        if owner_type:
            query["owner_type"] = owner_type

        total = await self.collection.count_documents(query)
        cursor = self.collection.find(query).sort("date_time", -1).skip((page - 1) * limit).limit(limit)
        docs = await cursor.to_list(None)
        return [Receipt(**doc) for doc in docs], total

    async def update_payment(self, receipt_id, fields: dict, session=None) -> Optional[Receipt]:
        doc = await self.collection.find_one_and_update(
            {"_id": receipt_id, "is_active": True},
            {"$set": {**fields, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        return Receipt(**doc) if doc else None

    async def soft_delete(self, receipt_id: str) -> bool:
        """Soft delete a receipt; ledger history is left untouched."""
        oid = parse_object_id(receipt_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid, "is_active": True},
            {"$set": {"is_active": False, "updated_at": utcnow()}},
        )
        return result.modified_count > 0

    async def insert_credit_payment(self, payment: CreditPayment, session=None) -> CreditPayment:
        await self.credit_payments.insert_one(payment.to_document(), session=session)
        return payment

    async def list_credit_payments(self, receipt_id) -> List[CreditPayment]:
        docs = await self.credit_payments.find({"receipt_id": receipt_id}).sort("payment_date", 1).to_list(None)
        return [CreditPayment(**doc) for doc in docs]

    async def outstanding_credit(self) -> List[Receipt]:
        """Active receipts that still carry credit, oldest first."""
        docs = await self.collection.find(
            {"is_active": True, "credit_amount": {"$gt": 0}}
        ).sort("date_time", 1).to_list(None)
        return [Receipt(**doc) for doc in docs]

    async def list_between(self, start: Optional[datetime], end: datetime) -> List[Receipt]:
        """Active receipts with start <= date_time < end; no start means from the first receipt."""
        date_range = {"$lt": end}
        if start:
            date_range["$gte"] = start
        docs = await self.collection.find(
            {"is_active": True, "date_time": date_range}
        ).sort("date_time", 1).to_list(None)
        return [Receipt(**doc) for doc in docs]

    async def totals_by_owner_type(self) -> Dict[str, dict]:
        """Receipt count, amount and brass per owner type."""
        pipeline = [
            {"$match": {"is_active": True}},
            {"$group": {
                "_id": "$owner_type",
                "receipts": {"$sum": 1},
                "total_amount": {"$sum": "$total_amount"},
                "total_brass": {"$sum": "$brass_qty"},
            }},
        ]
        rows = await self.collection.aggregate(pipeline).to_list(None)
        return {
            row["_id"]: {
                "receipts": row["receipts"],
                "total_amount": row["total_amount"],
                "total_brass": row["total_brass"],
            }
            for row in rows
        }
