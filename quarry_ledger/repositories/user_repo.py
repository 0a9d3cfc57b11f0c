import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from quarry_ledger.core.exceptions import ConflictError
from quarry_ledger.core.security import hash_password
from quarry_ledger.models.base import parse_object_id
from quarry_ledger.models.user import User, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """User database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["users"]

    async def create_user(self, username: str, password: str, full_name: str = "", role: str = UserRole.USER) -> User:
        """Create a new user."""
        user = User(
            username=username,
            password_hash=hash_password(password),
            full_name=full_name,
            role=role,
        )
        try:
            await self.collection.insert_one(user.to_document())
        except DuplicateKeyError as e:
            raise ConflictError(f"Username {username} is already taken") from e
        return user

    async def get_user_by_username(self, username: str) -> User | None:
        """Get active user by username."""
        doc = await self.collection.find_one({"username": username, "is_active": True})
        return User(**doc) if doc else None

    async def get_user_by_id(self, user_id: str) -> User | None:
        """Get active user by ID."""
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid, "is_active": True})
        return User(**doc) if doc else None

    async def ensure_admin(self, username: str, password: str) -> bool:
        """Create the default admin account when no user has that name."""
        if await self.collection.find_one({"username": username}):
            return False
        await self.create_user(username, password, full_name="Administrator", role=UserRole.ADMIN)
        logger.info("Seeded default admin user %s", username)
        return True
