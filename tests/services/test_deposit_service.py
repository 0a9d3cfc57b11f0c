import asyncio
import pytest
from quarry_ledger.core.exceptions import NotFoundError, ValidationError
from quarry_ledger.services.deposit_service import DepositService
from quarry_ledger.utils.locks import KeyedLocks


async def _balance(store, owner):
    return (await store.owners.get_by_id(owner.id)).deposit_balance


@pytest.mark.asyncio
async def test_add_increases_balance_and_logs_entry(store, locks, deposit_owner):
    service = DepositService(store, locks)

    txn = await service.record_transaction(str(deposit_owner.id), "add", 200, "Advance")

    assert txn.type == "add"
    assert txn.previous_balance == 300
    assert txn.new_balance == 500
    assert await _balance(store, deposit_owner) == 500


@pytest.mark.asyncio
async def test_deduct_is_capped_at_balance(store, locks, deposit_owner):
    service = DepositService(store, locks)

    txn = await service.record_transaction(str(deposit_owner.id), "deduct", 500)

    assert txn.amount == 300
    assert txn.new_balance == 0
    assert await _balance(store, deposit_owner) == 0


@pytest.mark.asyncio
async def test_deduct_from_empty_balance_is_rejected(store, locks):
    owner = store.owners.add(name="Empty", vehicle_number="MH01")
    service = DepositService(store, locks)

    with pytest.raises(ValidationError, match="Insufficient deposit balance"):
        await service.record_transaction(str(owner.id), "deduct", 100)
    assert store.deposits.entries == []


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -10, "", None, "abc"])
async def test_amount_must_be_positive(store, locks, deposit_owner, amount):
    service = DepositService(store, locks)

    with pytest.raises(ValidationError):
        await service.record_transaction(str(deposit_owner.id), "add", amount)


@pytest.mark.asyncio
async def test_unknown_type_rejected(store, locks, deposit_owner):
    with pytest.raises(ValidationError):
        await DepositService(store, locks).record_transaction(str(deposit_owner.id), "set", 10)


@pytest.mark.asyncio
async def test_unknown_owner(store, locks):
    with pytest.raises(NotFoundError):
        await DepositService(store, locks).record_transaction("507f1f77bcf86cd799439099", "add", 10)


@pytest.mark.asyncio
async def test_set_balance_writes_difference(store, locks, deposit_owner):
    service = DepositService(store, locks)

    raised = await service.set_balance(str(deposit_owner.id), 1000)
    lowered = await service.set_balance(str(deposit_owner.id), 250)
    unchanged = await service.set_balance(str(deposit_owner.id), 250)

    assert (raised.type, raised.amount) == ("add", 700)
    assert (lowered.type, lowered.amount) == ("deduct", 750)
    assert unchanged is None
    assert await _balance(store, deposit_owner) == 250


@pytest.mark.asyncio
async def test_set_balance_rejects_negative(store, locks, deposit_owner):
    with pytest.raises(ValidationError):
        await DepositService(store, locks).set_balance(str(deposit_owner.id), -1)


@pytest.mark.asyncio
async def test_ledger_reconstructs_balance(store, locks, deposit_owner):
    owner = store.owners.add(name="Fresh", vehicle_number="MH02")
    service = DepositService(store, locks)
    for kind, amount in [("add", 1000), ("deduct", 250), ("add", 75.5), ("deduct", 400)]:
        await service.record_transaction(str(owner.id), kind, amount)

    entries = await service.list_transactions(str(owner.id))
    report = await service.reconcile(str(owner.id))

    assert entries[0].new_balance == await _balance(store, owner)
    assert report["ledger_balance"] == report["stored_balance"] == 425.5
    assert report["entries"] == 4
    assert report["consistent"] is True


@pytest.mark.asyncio
async def test_reconcile_flags_drift(store, locks):
    owner = store.owners.add(name="Drifted", vehicle_number="MH03")
    service = DepositService(store, locks)
    await service.record_transaction(str(owner.id), "add", 100)
    store.owners.owners[owner.id].deposit_balance = 80

    report = await service.reconcile(str(owner.id))

    assert report["consistent"] is False


@pytest.mark.asyncio
async def test_concurrent_deductions_never_overdraw(store, deposit_owner):
    # Separate lock registries so only compare-and-set protects the balance
    first = DepositService(store, KeyedLocks())
    second = DepositService(store, KeyedLocks())
    deposit_owner_id = str(deposit_owner.id)

    results = await asyncio.gather(
        first.record_transaction(deposit_owner_id, "deduct", 200),
        second.record_transaction(deposit_owner_id, "deduct", 200),
    )

    assert sorted(txn.amount for txn in results) == [100, 200]
    assert await _balance(store, deposit_owner) == 0
    assert (await first.reconcile(deposit_owner_id))["consistent"] is True


@pytest.mark.asyncio
async def test_same_owner_requests_serialize_under_lock(store, locks, deposit_owner):
    service = DepositService(store, locks)

    await asyncio.gather(*[
        service.record_transaction(str(deposit_owner.id), "add", 10) for _ in range(10)
    ])

    assert await _balance(store, deposit_owner) == 400
    assert len(store.deposits.entries) == 10


@pytest.mark.asyncio
async def test_reconcile_replays_from_opening_balance(store, locks, deposit_owner):
    service = DepositService(store, locks)
    await service.record_transaction(str(deposit_owner.id), "deduct", 100)

    report = await service.reconcile(str(deposit_owner.id))

    assert report["stored_balance"] == report["ledger_balance"] == 200
    assert report["entries"] == 1
    assert report["consistent"] is True


@pytest.mark.asyncio
async def test_reconcile_flags_broken_chain(store, locks, deposit_owner):
    service = DepositService(store, locks)
    await service.record_transaction(str(deposit_owner.id), "deduct", 100)
    await service.record_transaction(str(deposit_owner.id), "add", 50)
    store.deposits.entries[1].previous_balance = 180

    report = await service.reconcile(str(deposit_owner.id))

    assert report["consistent"] is False
