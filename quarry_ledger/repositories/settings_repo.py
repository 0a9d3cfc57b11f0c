import logging
from typing import Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from quarry_ledger.models.base import utcnow
from quarry_ledger.models.setting import (
    DEFAULT_SETTINGS,
    SETTING_CATEGORIES,
    LedgerSettings,
    Setting,
)

logger = logging.getLogger(__name__)


class SettingsRepository:
    """Key/value business settings."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["settings"]

    async def list_settings(self, category: Optional[str] = None) -> List[Setting]:
        query = {"category": category} if category else {}
        docs = await self.collection.find(query).sort([("category", 1), ("_id", 1)]).to_list(None)
        return [Setting(key=doc["_id"], **{k: v for k, v in doc.items() if k != "_id"}) for doc in docs]

    async def get_flat(self) -> Dict[str, str]:
        return {setting.key: setting.value for setting in await self.list_settings()}

    async def get_ledger_settings(self) -> LedgerSettings:
        """Snapshot of the values the ledger engine reads, taken once per request."""
        return LedgerSettings.from_flat(await self.get_flat())

    async def update(self, key: str, value: str) -> Optional[Setting]:
        """Update an existing key; returns None for unknown keys."""
        doc = await self.collection.find_one_and_update(
            {"_id": key},
            {"$set": {"value": str(value), "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            return None
        return Setting(key=doc["_id"], value=doc["value"], category=doc.get("category", "general"), updated_at=doc["updated_at"])

    async def batch_upsert(self, updates: Dict[str, object]) -> int:
        now = utcnow()
        for key, value in updates.items():
            await self.collection.update_one(
                {"_id": key},
                {"$set": {
                    "value": str(value),
                    "category": SETTING_CATEGORIES.get(key, "general"),
                    "updated_at": now,
                }},
                upsert=True,
            )
        return len(updates)

    async def seed_defaults(self) -> int:
        """Insert default settings that are missing; existing values are kept."""
        created = 0
        for key, value in DEFAULT_SETTINGS.items():
            result = await self.collection.update_one(
                {"_id": key},
                {"$setOnInsert": {
                    "value": value,
                    "category": SETTING_CATEGORIES.get(key, "general"),
                    "updated_at": utcnow(),
                }},
                upsert=True,
            )
            if result.upserted_id is not None:
                created += 1
        if created:
            logger.info("Seeded %d default settings", created)
        return created
