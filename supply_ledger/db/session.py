from contextlib import asynccontextmanager

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from supply_ledger.core.exceptions import TransactionFailure
from supply_ledger.core.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def transaction(db: AsyncIOMotorDatabase, operation: str):
    """
    Run the body as one multi-document transaction.

    Any exception raised inside aborts the transaction. Driver errors are
    reported as TransactionFailure; nothing is retried here.
    """
    try:
        async with await db.client.start_session() as session:
            async with session.start_transaction():
                yield session
    except PyMongoError as exc:
        logger.error("transaction_failed", operation=operation, error=str(exc))
        raise TransactionFailure(f"Failed to {operation.replace('_', ' ')}: {exc}") from exc
