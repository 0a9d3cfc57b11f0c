import logging
from typing import Awaitable, Callable, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from quarry_ledger.core.config import settings
from quarry_ledger.core.exceptions import ConflictError, LedgerError, PersistenceError

logger = logging.getLogger(__name__)


def translate_error(exc: PyMongoError) -> LedgerError:
    """Map a driver error onto the ledger error taxonomy."""
    if isinstance(exc, DuplicateKeyError):
        return ConflictError("Duplicate key: a concurrent request wrote the same record")
    if exc.has_error_label("TransientTransactionError"):
        return ConflictError("Concurrent update detected, please retry")
    return PersistenceError(f"Database operation failed: {exc}")


class UnitOfWork:
    """
    One atomic sequence of ledger writes.

    With transactions enabled every repository call receives ``session`` and
    the whole sequence commits or aborts together. Without them (standalone
    servers, tests) registered compensations run in reverse order when an
    error escapes, so no half-applied balance change survives a failure.
    """

    def __init__(self, db: AsyncIOMotorDatabase, use_transactions: Optional[bool] = None):
        self.db = db
        self.use_transactions = (
            settings.MONGODB_TRANSACTIONS if use_transactions is None else use_transactions
        )
        self.session = None
        self._compensations: List[Callable[[], Awaitable[None]]] = []

    def on_rollback(self, callback: Callable[[], Awaitable[None]]) -> None:
        """Register an undo step; ignored when a real transaction is open."""
        self._compensations.append(callback)

    async def __aenter__(self) -> "UnitOfWork":
        if self.use_transactions:
            try:
                self.session = await self.db.client.start_session()
                self.session.start_transaction()
            except PyMongoError as e:
                raise translate_error(e) from e
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        try:
            if self.session is not None:
                if exc is None:
                    await self.session.commit_transaction()
                else:
                    await self.session.abort_transaction()
            elif exc is not None:
                await self._compensate()
        except PyMongoError as e:
            raise translate_error(e) from e
        finally:
            if self.session is not None:
                await self.session.end_session()
                self.session = None

        if isinstance(exc, PyMongoError):
            raise translate_error(exc) from exc
        return False

    async def _compensate(self) -> None:
        while self._compensations:
            callback = self._compensations.pop()
            try:
                await callback()
            except Exception:
                logger.exception("Compensation step failed; ledger needs reconciliation")
