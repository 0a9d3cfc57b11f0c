import logging
from typing import List, Optional

from quarry_ledger.core.exceptions import NotFoundError, ValidationError
from quarry_ledger.models.owner import TruckOwner
from quarry_ledger.repositories.store import LedgerStore
from quarry_ledger.schemas.owner import OwnerSave, OwnerUpdate, PartnerStatusUpdate
from quarry_ledger.services.rate_service import RateResolution, RateResolver

logger = logging.getLogger(__name__)


class OwnerService:
    """Truck owner directory. Balances are never written from here."""

    def __init__(self, store: LedgerStore):
        self.store = store

    async def list_owners(self, is_partner: Optional[bool] = None) -> List[TruckOwner]:
        return await self.store.owners.list_owners(is_partner)

    async def get_by_name(self, name: str) -> Optional[TruckOwner]:
        return await self.store.owners.get_by_name(name.strip())

    async def quote_rate(self, name: str) -> RateResolution:
        ledger_settings = await self.store.settings.get_ledger_settings()
        owner = await self.store.owners.get_by_name(name.strip())
        return RateResolver(ledger_settings).quote(owner)

    async def save_owner(self, owner_in: OwnerSave) -> TruckOwner:
        name = (owner_in.name or "").strip()
        vehicle_number = (owner_in.vehicle_number or "").strip()
        if not name or not vehicle_number:
            raise ValidationError("Name and vehicle number are required")

        fields = owner_in.model_dump(exclude_unset=True, exclude={"name"})
        fields["vehicle_number"] = vehicle_number
        owner = await self.store.owners.save(name, fields)
        logger.info("Saved truck owner %s", name)
        return owner

    async def update_owner(self, owner_id: str, update: OwnerUpdate) -> TruckOwner:
        return await self._update(owner_id, update.model_dump(exclude_unset=True))

    async def set_partner_status(self, owner_id: str, update: PartnerStatusUpdate) -> TruckOwner:
        fields = {"is_partner": update.is_partner}
        if update.partner_rate is not None:
            fields["partner_rate"] = update.partner_rate
        owner = await self._update(owner_id, fields)
        logger.info("Owner %s partner status set to %s", owner.name, owner.is_partner)
        return owner

    async def deactivate_owner(self, owner_id: str) -> TruckOwner:
        owner = await self._update(owner_id, {"is_active": False})
        logger.info("Owner %s deactivated", owner.name)
        return owner

    async def _update(self, owner_id: str, fields: dict) -> TruckOwner:
        owner = await self.store.owners.update_fields(owner_id, fields, active_only=True)
        if owner is None:
            raise NotFoundError("Truck owner not found")
        return owner
