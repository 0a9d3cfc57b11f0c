import logging
from typing import List, Optional, Tuple

from quarry_ledger.core.exceptions import ConflictError, NotFoundError, ValidationError
from quarry_ledger.db.session import UnitOfWork
from quarry_ledger.models.base import to_naive_utc, utcnow
from quarry_ledger.models.owner import PaymentType, TruckOwner
from quarry_ledger.models.receipt import CreditPayment, PaymentMethod, Receipt
from quarry_ledger.models.setting import LedgerSettings
from quarry_ledger.repositories.store import LedgerStore
from quarry_ledger.schemas.receipt import ReceiptCreate, ReceiptFilters, ReceiptPaymentUpdate
from quarry_ledger.services.deposit_service import DepositService
from quarry_ledger.services.rate_service import RateResolver
from quarry_ledger.utils.locks import KeyedLocks, ledger_locks
from quarry_ledger.utils.receipt_validation import (
    MONEY_TOLERANCE,
    calculate_split,
    coerce_number,
    compute_payment_status,
    format_receipt_no,
    infer_payment_method,
    receipt_sequence,
    to_money,
    validate_receipt_input,
)

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2


class ReceiptService:
    def __init__(
        self,
        store: LedgerStore,
        ledger_settings: Optional[LedgerSettings] = None,
        locks: Optional[KeyedLocks] = None,
    ):
        self.store = store
        self.ledger_settings = ledger_settings
        self.locks = locks or ledger_locks
        self.deposits = DepositService(store, self.locks)

    async def create_receipt(self, receipt_in: ReceiptCreate) -> Receipt:
        """
        Bill one gate pass.

        Rate resolution, split, deposit deduction, receipt insert and ledger
        append form a single unit of work. A conflict (receipt number taken,
        balance moved underneath us) rolls the unit back and it runs once more
        with a fresh number and a fresh balance.
        """
        validate_receipt_input(
            receipt_in.truck_owner,
            receipt_in.vehicle_number,
            receipt_in.brass_qty,
            receipt_in.rate,
            loading_charge=receipt_in.loading_charge,
            cash_paid=receipt_in.cash_paid,
            payment_method=receipt_in.payment_method,
            deposit_deducted=receipt_in.deposit_deducted,
            owner_type=receipt_in.owner_type,
        )
        ledger_settings = self.ledger_settings or await self.store.settings.get_ledger_settings()

        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                return await self._create_once(receipt_in, ledger_settings)
            except ConflictError as e:
                if attempt == MAX_ATTEMPTS:
                    raise
                logger.warning("Receipt for %s hit a conflict (%s), retrying", receipt_in.truck_owner, e.message)

    async def _create_once(self, receipt_in: ReceiptCreate, ledger_settings: LedgerSettings) -> Receipt:
        name = receipt_in.truck_owner.strip()
        vehicle_number = receipt_in.vehicle_number.strip()
        brass_qty = coerce_number(receipt_in.brass_qty)
        requested_rate = to_money(coerce_number(receipt_in.rate))
        applied_rate = coerce_number(receipt_in.applied_rate) or None
        loading_charge = to_money(coerce_number(receipt_in.loading_charge))
        cash_paid = to_money(coerce_number(receipt_in.cash_paid))
        requested_deposit = to_money(coerce_number(receipt_in.deposit_deducted))
        pays_by_deposit = receipt_in.payment_method == PaymentMethod.DEPOSIT

        owners = self.store.owners
        async with self.locks.hold(name):
            async with self.store.unit_of_work() as uow:
                owner = await owners.get_by_name(name, session=uow.session)
                if pays_by_deposit and owner is None:
                    raise ValidationError("Owner not found for deposit deduction")

                resolution = RateResolver(ledger_settings).resolve(
                    owner, requested_rate, receipt_in.owner_type, applied_rate
                )
                receipt_no, receipt_seq = await self._issue_receipt_number(
                    receipt_in.receipt_no, ledger_settings, uow
                )

                deposit_deducted = 0.0
                if pays_by_deposit and requested_deposit > 0:
                    bill = calculate_split(brass_qty, resolution.rate, loading_charge)
                    txn = await self.deposits.apply_deduction(
                        uow,
                        owner.id,
                        requested_deposit,
                        cap=bill.total_amount,
                        notes="Receipt deduction",
                        receipt_no=receipt_no,
                    )
                    if txn is not None:
                        deposit_deducted = txn.amount

                split = calculate_split(
                    brass_qty, resolution.rate, loading_charge, cash_paid, deposit_deducted
                )

                created = False
                if owner is None:
                    owner, created = await owners.find_or_create(name, vehicle_number, session=uow.session)
                self._undo_owner_changes(uow, owner, created)
                payment_type = PaymentType.CASH if split.cash_paid >= split.total_amount else PaymentType.MIXED
                await owners.update_fields(owner.id, {"payment_type": payment_type}, session=uow.session)

                receipt = Receipt(
                    receipt_no=receipt_no,
                    receipt_seq=receipt_seq,
                    truck_owner=name,
                    owner_id=owner.id,
                    vehicle_number=vehicle_number,
                    date_time=to_naive_utc(receipt_in.date_time) if receipt_in.date_time else utcnow(),
                    brass_qty=brass_qty,
                    rate=resolution.rate,
                    applied_rate=resolution.applied_rate,
                    loading_charge=loading_charge,
                    total_amount=split.total_amount,
                    cash_paid=split.cash_paid,
                    deposit_deducted=split.deposit_deducted,
                    credit_amount=split.credit_amount,
                    payment_status=split.payment_status,
                    payment_method=receipt_in.payment_method or infer_payment_method(split.cash_paid),
                    owner_type=resolution.owner_type,
                    notes=receipt_in.notes or "",
                )
                await self.store.receipts.insert(receipt, session=uow.session)

        logger.info(
            "Receipt %s created for %s: total=%.2f cash=%.2f deposit=%.2f credit=%.2f (%s)",
            receipt.receipt_no, name, receipt.total_amount, receipt.cash_paid,
            receipt.deposit_deducted, receipt.credit_amount, receipt.payment_status,
        )
        return receipt

    def _undo_owner_changes(self, uow: UnitOfWork, owner: TruckOwner, created: bool) -> None:
        owners = self.store.owners

        if created:
            async def discard_owner():
                await owners.discard(owner.id)

            uow.on_rollback(discard_owner)
            return

        async def restore_payment_type():
            await owners.update_fields(owner.id, {"payment_type": owner.payment_type})

        uow.on_rollback(restore_payment_type)

    async def _issue_receipt_number(
        self,
        requested: Optional[str],
        ledger_settings: LedgerSettings,
        uow: UnitOfWork,
    ) -> Tuple[str, Optional[int]]:
        """
        Keep a caller-supplied number unless it is taken; otherwise issue the
        next number from the counter, which never hands out the same value
        twice even to concurrent callers.
        """
        requested = (requested or "").strip()
        receipts = self.store.receipts
        if requested:
            if not await receipts.receipt_no_exists(requested, session=uow.session):
                return requested, receipt_sequence(requested)
            logger.info("Receipt number %s already taken, generating a new one", requested)

        highest = await receipts.highest_receipt_seq(session=uow.session) or 0
        floor = max(highest, ledger_settings.receipt_start - 1)
        # Issued outside the transaction: a burned number is a gap, not a duplicate
        number = await receipts.next_receipt_seq(floor)
        return format_receipt_no(ledger_settings.receipt_prefix, number), number

    async def update_payment(self, receipt_id: str, update: ReceiptPaymentUpdate) -> Receipt:
        """
        Record cash collected after issue.

        credit_amount and payment_status are recomputed against the unchanged
        total; any increase in cash is appended to the credit-payment log.
        """
        async with self.locks.hold(f"receipt:{receipt_id}"):
            receipt = await self.store.receipts.get(receipt_id)
            if receipt is None:
                raise NotFoundError("Receipt not found")

            if update.cash_paid is None:
                cash_paid = receipt.cash_paid
            else:
                cash_paid = to_money(coerce_number(update.cash_paid))
            if cash_paid < 0:
                raise ValidationError(f"Cash paid cannot be negative: {update.cash_paid}")

            fields = {
                "cash_paid": cash_paid,
                "credit_amount": to_money(receipt.total_amount - cash_paid - receipt.deposit_deducted),
                "payment_status": compute_payment_status(
                    receipt.total_amount, cash_paid, receipt.deposit_deducted
                ).value,
            }
            if update.notes is not None:
                fields["notes"] = update.notes

            async with self.store.unit_of_work() as uow:
                updated = await self.store.receipts.update_payment(receipt.id, fields, session=uow.session)
                if updated is None:
                    raise NotFoundError("Receipt not found")

                collected = to_money(cash_paid - receipt.cash_paid)
                if collected >= MONEY_TOLERANCE:
                    await self.store.receipts.insert_credit_payment(
                        CreditPayment(
                            receipt_id=receipt.id,
                            receipt_no=receipt.receipt_no,
                            amount_paid=collected,
                            payment_mode=update.payment_mode,
                            reference_no=update.reference_no,
                        ),
                        session=uow.session,
                    )

        logger.info("Receipt %s payment updated: cash=%.2f status=%s", updated.receipt_no, cash_paid, updated.payment_status)
        return updated

    async def get_receipt(self, receipt_id: str) -> Receipt:
        receipt = await self.store.receipts.get(receipt_id)
        if receipt is None:
            raise NotFoundError("Receipt not found")
        return receipt

    async def list_receipts(self, filters: ReceiptFilters) -> Tuple[List[Receipt], int]:
        return await self.store.receipts.list_receipts(
            start_date=to_naive_utc(filters.start_date) if filters.start_date else None,
            end_date=to_naive_utc(filters.end_date) if filters.end_date else None,
            truck_owner=filters.truck_owner,
            vehicle_number=filters.vehicle_number,
            payment_status=filters.payment_status,
            owner_type=filters.owner_type,
            page=filters.page,
            limit=filters.limit,
        )

    async def delete_receipt(self, receipt_id: str) -> None:
        """Soft delete. Deposit history and balances are not touched."""
        if not await self.store.receipts.soft_delete(receipt_id):
            raise NotFoundError("Receipt not found")
        logger.info("Receipt %s soft-deleted", receipt_id)

    async def list_payments(self, receipt_id: str) -> List[CreditPayment]:
        receipt = await self.get_receipt(receipt_id)
        return await self.store.receipts.list_credit_payments(receipt.id)
