from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

from quarry_ledger.models.base import utcnow


# Category assigned on upsert; unknown keys land in "general"
SETTING_CATEGORIES: Dict[str, str] = {
    "quarry_name": "company",
    "quarry_address": "company",
    "default_rate": "financial",
    "default_partner_rate": "financial",
    "loading_charge": "financial",
    "currency": "financial",
    "receipt_prefix": "receipt",
    "receipt_start": "receipt",
    "printer_width": "receipt",
    "auto_print": "receipt",
    "unit": "general",
}

DEFAULT_SETTINGS: Dict[str, str] = {
    "quarry_name": "Mukindpur Sand Quarry",
    "quarry_address": "Mukindpur, District Office",
    "default_rate": "1200",
    "default_partner_rate": "1000",
    "loading_charge": "150",
    "currency": "₹",
    "receipt_prefix": "GM",
    "receipt_start": "9001",
    "unit": "Brass",
}


class Setting(BaseModel):
    key: str
    value: str
    category: str = "general"
    updated_at: datetime = Field(default_factory=utcnow)


def _float_or(value: Optional[str], fallback: Optional[float]) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    return number if number > 0 else fallback


def _int_or(value: Optional[str], fallback: int) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return fallback


class LedgerSettings(BaseModel):
    """Per-request snapshot of the settings the ledger engine reads."""
    default_rate: float = 1200.0
    default_partner_rate: Optional[float] = 1000.0
    receipt_prefix: str = "GM"
    receipt_start: int = 9001

    @classmethod
    def from_flat(cls, flat: Dict[str, str]) -> "LedgerSettings":
        defaults = cls()
        return cls(
            default_rate=_float_or(flat.get("default_rate"), defaults.default_rate),
            default_partner_rate=_float_or(flat.get("default_partner_rate"), None),
            receipt_prefix=flat.get("receipt_prefix") or defaults.receipt_prefix,
            receipt_start=_int_or(flat.get("receipt_start"), defaults.receipt_start),
        )
