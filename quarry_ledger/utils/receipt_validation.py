"""Receipt validation and payment split utilities."""
import math
import re
from dataclasses import dataclass
from typing import Any, Optional

from quarry_ledger.core.exceptions import ValidationError
from quarry_ledger.models.receipt import OwnerType, PaymentMethod, PaymentStatus

# Amounts closer than this compare equal (half a paisa)
MONEY_TOLERANCE = 0.005

_TRAILING_DIGITS = re.compile(r"(\d+)\D*$")


def to_money(value: float) -> float:
    """Round to paise; -0.0 is normalised to 0.0."""
    return round(float(value), 2) + 0.0


def coerce_number(value: Any) -> float:
    """
    Permissive numeric coercion for form input.

    Blank, missing and non-numeric values count as 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


@dataclass(frozen=True)
class PaymentSplit:
    material_cost: float
    total_amount: float
    cash_paid: float
    deposit_deducted: float
    credit_amount: float
    payment_status: PaymentStatus


def compute_payment_status(total_amount: float, cash_paid: float, deposit_deducted: float = 0.0) -> PaymentStatus:
    settled = cash_paid + deposit_deducted
    if settled <= 0:
        return PaymentStatus.UNPAID
    if settled >= total_amount - MONEY_TOLERANCE:
        return PaymentStatus.PAID
    return PaymentStatus.PARTIAL


def calculate_split(
    brass_qty: Any,
    rate: Any,
    loading_charge: Any = 0,
    cash_paid: Any = 0,
    deposit_deducted: Any = 0,
) -> PaymentSplit:
    """
    Turn quantity, rate and payments into the canonical split.

    credit_amount is whatever cash and deposit leave uncovered; it goes
    negative on overpayment.
    """
    qty = coerce_number(brass_qty)
    unit_rate = coerce_number(rate)
    loading = coerce_number(loading_charge)
    cash = to_money(coerce_number(cash_paid))
    deposit = to_money(coerce_number(deposit_deducted))

    material_cost = to_money(qty * unit_rate)
    total_amount = to_money(material_cost + loading)
    credit_amount = to_money(total_amount - cash - deposit)

    return PaymentSplit(
        material_cost=material_cost,
        total_amount=total_amount,
        cash_paid=cash,
        deposit_deducted=deposit,
        credit_amount=credit_amount,
        payment_status=compute_payment_status(total_amount, cash, deposit),
    )


def infer_payment_method(cash_paid: float) -> PaymentMethod:
    """Cash when anything was paid at the gate, credit otherwise."""
    return PaymentMethod.CASH if cash_paid > 0 else PaymentMethod.CREDIT


def validate_receipt_input(
    truck_owner: Optional[str],
    vehicle_number: Optional[str],
    brass_qty: Any,
    rate: Any,
    loading_charge: Any = 0,
    cash_paid: Any = 0,
    payment_method: Optional[str] = None,
    deposit_deducted: Any = None,
    owner_type: Optional[str] = None,
) -> None:
    """
    Validate a create-receipt request before anything is written.

    Rules:
    - truck_owner and vehicle_number must be non-blank
    - brass_qty and rate must be positive
    - loading_charge and cash_paid must not be negative
    - deposit payments must name the amount to deduct
    """
    if not (truck_owner or "").strip() or not (vehicle_number or "").strip():
        raise ValidationError("Truck owner and vehicle number are required")

    if coerce_number(brass_qty) <= 0 or coerce_number(rate) <= 0:
        raise ValidationError("Valid brass quantity and rate are required")

    if coerce_number(loading_charge) < 0:
        raise ValidationError(f"Loading charge cannot be negative: {loading_charge}")

    if coerce_number(cash_paid) < 0:
        raise ValidationError(f"Cash paid cannot be negative: {cash_paid}")

    if payment_method is not None and payment_method not in {m.value for m in PaymentMethod}:
        raise ValidationError(f"Unknown payment method: {payment_method}")

    if payment_method == PaymentMethod.DEPOSIT:
        if deposit_deducted is None:
            raise ValidationError("Deposit amount is required for deposit payments")
        if coerce_number(deposit_deducted) < 0:
            raise ValidationError(f"Deposit amount cannot be negative: {deposit_deducted}")

    if owner_type and owner_type not in {t.value for t in OwnerType}:
        raise ValidationError(f"Unknown owner type: {owner_type}")


def receipt_sequence(receipt_no: str) -> Optional[int]:
    """Integer value of the trailing digits of a receipt number."""
    match = _TRAILING_DIGITS.search(receipt_no or "")
    return int(match.group(1)) if match else None


def format_receipt_no(prefix: str, number: int) -> str:
    return f"{prefix}{number:04d}"
