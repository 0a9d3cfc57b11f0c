from typing import List

from motor.motor_asyncio import AsyncIOMotorDatabase

from quarry_ledger.models.deposit import DepositTransaction


class DepositRepository:
    """Append-only deposit ledger."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["deposit_transactions"]

    async def append(self, transaction: DepositTransaction, session=None) -> DepositTransaction:
        await self.collection.insert_one(transaction.to_document(), session=session)
        return transaction

    async def discard(self, transaction_id, session=None) -> None:
        """Drop an entry written by a unit of work that did not complete."""
        await self.collection.delete_one({"_id": transaction_id}, session=session)

    async def list_for_owner(self, owner_id, newest_first: bool = True) -> List[DepositTransaction]:
        direction = -1 if newest_first else 1
        docs = await self.collection.find({"owner_id": owner_id}).sort(
            [("created_at", direction), ("_id", direction)]
        ).to_list(None)
        return [DepositTransaction(**doc) for doc in docs]

