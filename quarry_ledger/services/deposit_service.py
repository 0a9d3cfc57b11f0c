"""
Deposit ledger operations.

Every balance change is a compare-and-set on the owner document followed by
an appended DepositTransaction, both inside one unit of work and under the
owner's lock. A lost compare-and-set means another writer moved the balance
between our read and our write; the whole operation is then retried once
against the fresh balance.
"""

import logging
from typing import List, Optional

from quarry_ledger.core.exceptions import ConflictError, NotFoundError, ValidationError
from quarry_ledger.db.session import UnitOfWork
from quarry_ledger.models.deposit import DepositTransaction, DepositTransactionType
from quarry_ledger.models.owner import TruckOwner
from quarry_ledger.repositories.store import LedgerStore
from quarry_ledger.utils.locks import KeyedLocks, ledger_locks
from quarry_ledger.utils.receipt_validation import MONEY_TOLERANCE, coerce_number, to_money

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2


class DepositService:
    def __init__(self, store: LedgerStore, locks: Optional[KeyedLocks] = None):
        self.store = store
        self.locks = locks or ledger_locks

    async def record_transaction(
        self,
        owner_id: str,
        transaction_type: str,
        amount,
        notes: Optional[str] = None,
        receipt_no: Optional[str] = None,
    ) -> DepositTransaction:
        """
        Add to or deduct from an owner's deposit.

        "add" always succeeds. "deduct" is capped at the balance held at the
        instant of the write; an empty balance is rejected because a ledger
        entry cannot carry a zero amount.
        """
        if transaction_type not in {t.value for t in DepositTransactionType}:
            raise ValidationError(f"Unknown deposit transaction type: {transaction_type}")
        value = to_money(coerce_number(amount))
        if value <= 0:
            raise ValidationError("Amount must be greater than 0")

        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                return await self._record_once(owner_id, transaction_type, value, notes, receipt_no)
            except ConflictError:
                if attempt == MAX_ATTEMPTS:
                    raise
                logger.warning("Deposit balance for owner %s changed concurrently, retrying", owner_id)

    async def _record_once(self, owner_id, transaction_type, value, notes, receipt_no) -> DepositTransaction:
        owner = await self._require_owner(owner_id)
        async with self.locks.hold(owner.name):
            async with self.store.unit_of_work() as uow:
                if transaction_type == DepositTransactionType.ADD:
                    return await self.apply_addition(uow, owner.id, value, notes or "Manual deposit add")

                txn = await self.apply_deduction(
                    uow, owner.id, value, notes=notes or "Manual deposit deduct", receipt_no=receipt_no
                )
                if txn is None:
                    raise ValidationError("Insufficient deposit balance")
                return txn

    async def set_balance(self, owner_id: str, amount, notes: Optional[str] = None) -> Optional[DepositTransaction]:
        """
        Bring the balance to ``amount`` through an add or deduct entry for the
        difference. Returns None when the balance already matches.
        """
        target = coerce_number(amount)
        if amount is None or target < 0:
            raise ValidationError("Amount must be a non-negative number")
        target = to_money(target)

        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                owner = await self._require_owner(owner_id)
                async with self.locks.hold(owner.name):
                    async with self.store.unit_of_work() as uow:
                        current = await self._current_balance(owner.id, uow)
                        difference = to_money(target - current)
                        if abs(difference) < MONEY_TOLERANCE:
                            return None
                        if difference > 0:
                            return await self.apply_addition(uow, owner.id, difference, notes or "Set balance")
                        return await self.apply_deduction(uow, owner.id, -difference, notes=notes or "Set balance")
            except ConflictError:
                if attempt == MAX_ATTEMPTS:
                    raise
                logger.warning("Deposit balance for owner %s changed concurrently, retrying", owner_id)

    async def apply_addition(self, uow: UnitOfWork, owner_oid, amount: float, notes: str) -> DepositTransaction:
        current = await self._current_balance(owner_oid, uow)
        new_balance = to_money(current + amount)
        return await self._move_balance(
            uow, owner_oid, DepositTransactionType.ADD, amount, current, new_balance, notes, None
        )

    async def apply_deduction(
        self,
        uow: UnitOfWork,
        owner_oid,
        requested: float,
        cap: Optional[float] = None,
        notes: str = "",
        receipt_no: Optional[str] = None,
    ) -> Optional[DepositTransaction]:
        """
        Deduct ``min(requested, current balance, cap)`` from the owner.

        The balance is re-read inside the unit of work, never taken from a
        cached owner. Returns None when nothing could be deducted.
        """
        current = await self._current_balance(owner_oid, uow)
        candidates = [requested, current]
        if cap is not None:
            candidates.append(cap)
        actual = to_money(min(candidates))
        if actual <= 0:
            return None
        new_balance = to_money(current - actual)
        return await self._move_balance(
            uow, owner_oid, DepositTransactionType.DEDUCT, actual, current, new_balance, notes, receipt_no
        )

    async def list_transactions(self, owner_id: str) -> List[DepositTransaction]:
        owner = await self._require_owner(owner_id, active_only=False)
        return await self.store.deposits.list_for_owner(owner.id)

    async def reconcile(self, owner_id: str) -> dict:
        """
        Replay the owner's ledger oldest first and compare it with the stored
        balance.
        """
        owner = await self._require_owner(owner_id, active_only=False)
        entries = await self.store.deposits.list_for_owner(owner.id, newest_first=False)

        chain_intact = True
        # Balances carried in before the first entry are the opening balance
        running = entries[0].previous_balance if entries else 0.0
        for entry in entries:
            if abs(entry.previous_balance - running) >= MONEY_TOLERANCE:
                chain_intact = False
            if entry.type == DepositTransactionType.ADD:
                expected = to_money(entry.previous_balance + entry.amount)
            else:
                expected = to_money(entry.previous_balance - entry.amount)
            if abs(expected - entry.new_balance) >= MONEY_TOLERANCE:
                chain_intact = False
            running = entry.new_balance

        ledger_balance = entries[-1].new_balance if entries else 0.0
        consistent = chain_intact and abs(ledger_balance - owner.deposit_balance) < MONEY_TOLERANCE
        if not consistent:
            logger.error("Deposit ledger for owner %s does not reconcile", owner.name)

        return {
            "owner_id": str(owner.id),
            "owner_name": owner.name,
            "stored_balance": owner.deposit_balance,
            "ledger_balance": ledger_balance,
            "entries": len(entries),
            "consistent": consistent,
        }

    # ===== PRIVATE HELPERS =====

    async def _require_owner(self, owner_id: str, active_only: bool = True) -> TruckOwner:
        owner = await self.store.owners.get_by_id(owner_id, active_only=active_only)
        if owner is None:
            raise NotFoundError("Truck owner not found")
        return owner

    async def _current_balance(self, owner_oid, uow: UnitOfWork) -> float:
        owner = await self.store.owners.get_by_id(owner_oid, session=uow.session)
        if owner is None:
            raise NotFoundError("Truck owner not found")
        return owner.deposit_balance

    async def _move_balance(
        self,
        uow: UnitOfWork,
        owner_oid,
        transaction_type: DepositTransactionType,
        amount: float,
        previous_balance: float,
        new_balance: float,
        notes: str,
        receipt_no: Optional[str],
    ) -> DepositTransaction:
        if new_balance < 0:
            raise ValidationError("Deposit balance cannot go negative")

        owners = self.store.owners
        moved = await owners.compare_and_set_balance(
            owner_oid, previous_balance, new_balance, session=uow.session
        )
        if not moved:
            raise ConflictError("Deposit balance changed concurrently")

        async def restore_balance():
            await owners.compare_and_set_balance(owner_oid, new_balance, previous_balance)

        uow.on_rollback(restore_balance)

        txn = DepositTransaction(
            owner_id=owner_oid,
            type=transaction_type,
            amount=amount,
            previous_balance=previous_balance,
            new_balance=new_balance,
            receipt_no=receipt_no,
            notes=notes,
        )
        await self.store.deposits.append(txn, session=uow.session)

        async def discard_entry():
            await self.store.deposits.discard(txn.id)

        uow.on_rollback(discard_entry)

        logger.info(
            "Deposit %s of %.2f for owner %s: %.2f -> %.2f",
            txn.type, amount, owner_oid, previous_balance, new_balance,
        )
        return txn
