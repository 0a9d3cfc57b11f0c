from pydantic import Field

from quarry_ledger.models.base import MongoModel


class UserRole:
    ADMIN = "admin"
    USER = "user"


class User(MongoModel):
    username: str = Field(..., min_length=1, max_length=64)
    password_hash: str
    full_name: str = ""
    role: str = UserRole.USER
    is_active: bool = True
