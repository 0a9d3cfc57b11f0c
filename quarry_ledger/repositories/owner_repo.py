from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from quarry_ledger.models.base import parse_object_id, utcnow
from quarry_ledger.models.owner import TruckOwner


class OwnerRepository:
    """Truck owner directory operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["truck_owners"]

    async def get_by_name(self, name: str, session=None, active_only: bool = True) -> Optional[TruckOwner]:
        query = {"name": name}
        if active_only:
            query["is_active"] = True
        doc = await self.collection.find_one(query, session=session)
        return TruckOwner(**doc) if doc else None

    async def get_by_id(self, owner_id: str, session=None, active_only: bool = True) -> Optional[TruckOwner]:
        oid = parse_object_id(owner_id)
        if oid is None:
            return None
        query = {"_id": oid}
        if active_only:
            query["is_active"] = True
        doc = await self.collection.find_one(query, session=session)
        return TruckOwner(**doc) if doc else None

    async def find_or_create(
        self, name: str, vehicle_number: Optional[str] = None, session=None
    ) -> Tuple[TruckOwner, bool]:
        """
        Return the owner called ``name``, provisioning a regular owner first
        if nobody by that name exists yet. The flag tells whether this call
        inserted it.
        """
        template = TruckOwner(name=name, vehicle_number=vehicle_number).to_document()
        template.pop("name")
        doc = await self.collection.find_one_and_update(
            {"name": name},
            {"$setOnInsert": template},
            upsert=True,
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        return TruckOwner(**doc), doc["_id"] == template["_id"]

    async def discard(self, owner_id, session=None) -> None:
        """Drop an owner provisioned by a unit of work that did not complete."""
        await self.collection.delete_one({"_id": owner_id}, session=session)

    async def list_owners(self, is_partner: Optional[bool] = None) -> List[TruckOwner]:
        query = {"is_active": True}
        if is_partner is not None:
            query["is_partner"] = is_partner
        docs = await self.collection.find(query).sort("name", 1).to_list(None)
        return [TruckOwner(**doc) for doc in docs]

    async def count(self, is_partner: bool) -> int:
        return await self.collection.count_documents({"is_active": True, "is_partner": is_partner})

    async def save(self, name: str, fields: dict) -> TruckOwner:
        """
        Create the owner or update the given fields when the name exists.

        Saving a deactivated owner's name brings that owner back.
        """
        now = utcnow()
        insert_defaults = TruckOwner(name=name).to_document()
        insert_defaults.pop("_id")
        insert_defaults.pop("name")
        for key in list(fields) + ["is_active", "updated_at"]:
            insert_defaults.pop(key, None)

        doc = await self.collection.find_one_and_update(
            {"name": name},
            {
                "$set": {**fields, "is_active": True, "updated_at": now},
                "$setOnInsert": insert_defaults,
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return TruckOwner(**doc)

    async def update_fields(self, owner_id: str, fields: dict, session=None, active_only: bool = False) -> Optional[TruckOwner]:
        oid = parse_object_id(owner_id)
        if oid is None:
            return None
        query = {"_id": oid}
        if active_only:
            query["is_active"] = True
        doc = await self.collection.find_one_and_update(
            query,
            {"$set": {**fields, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        return TruckOwner(**doc) if doc else None

    async def compare_and_set_balance(self, owner_id, expected: float, new_balance: float, session=None) -> bool:
        """
        Move the deposit balance from ``expected`` to ``new_balance``.

        Returns False when the stored balance is no longer ``expected``, i.e.
        another writer got there first.
        """
        result = await self.collection.update_one(
            {"_id": owner_id, "deposit_balance": expected, "is_active": True},
            {"$set": {"deposit_balance": new_balance, "updated_at": utcnow()}},
            session=session,
        )
        return result.matched_count == 1
