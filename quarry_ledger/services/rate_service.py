from dataclasses import dataclass
from typing import Optional

from quarry_ledger.models.owner import TruckOwner
from quarry_ledger.models.receipt import OwnerType
from quarry_ledger.models.setting import LedgerSettings


@dataclass(frozen=True)
class RateResolution:
    owner_type: OwnerType
    rate: float
    applied_rate: float


class RateResolver:
    """
    Decides the unit rate billed on a receipt.

    Precedence:
    1. An explicit ``owner_type`` from the caller is trusted and the caller's
       rate is billed verbatim.
    2. An active partner without a caller override is billed their partner
       rate, else the default partner rate, else the caller's rate.
    3. Everyone else, including owners not in the directory yet, is billed the
       caller's rate as a regular owner.
    """

    def __init__(self, ledger_settings: LedgerSettings):
        self.ledger_settings = ledger_settings

    def resolve(
        self,
        owner: Optional[TruckOwner],
        rate: float,
        owner_type: Optional[str] = None,
        applied_rate: Optional[float] = None,
    ) -> RateResolution:
        if owner_type:
            return RateResolution(
                owner_type=OwnerType(owner_type),
                rate=rate,
                applied_rate=applied_rate or rate,
            )

        if owner is not None and owner.is_active and owner.is_partner:
            if applied_rate:
                return RateResolution(OwnerType.PARTNER, rate, applied_rate)
            partner_rate = self.partner_rate_for(owner) or rate
            return RateResolution(OwnerType.PARTNER, partner_rate, partner_rate)

        return RateResolution(OwnerType.REGULAR, rate, applied_rate or rate)

    def partner_rate_for(self, owner: TruckOwner) -> Optional[float]:
        if owner.partner_rate and owner.partner_rate > 0:
            return owner.partner_rate
        return self.ledger_settings.default_partner_rate

    def quote(self, owner: Optional[TruckOwner]) -> RateResolution:
        """Rate to pre-fill for an owner before the caller enters anything."""
        default_rate = self.ledger_settings.default_rate
        if owner is not None and owner.is_active and owner.is_partner:
            partner_rate = self.partner_rate_for(owner) or default_rate
            return RateResolution(OwnerType.PARTNER, partner_rate, partner_rate)
        return RateResolution(OwnerType.REGULAR, default_rate, default_rate)
