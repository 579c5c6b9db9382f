import logging
from contextlib import asynccontextmanager

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import StorageUnavailable

logger = logging.getLogger(__name__)


@asynccontextmanager
async def tx(db: AsyncSession):
    """
    Transaction helper tolerant to autobegin.
    If no transaction is active, opens one via begin().
    If a transaction is already active (autobegin after a SELECT),
    performs work and commits/rolls back manually.
    Driver-level failures are re-raised as StorageUnavailable after rollback.
    """
    try:
        if not db.in_transaction():
            async with db.begin():
                yield
        else:
            try:
                yield
                await db.commit()
            except Exception:
                await db.rollback()
                raise
    except (OperationalError, InterfaceError) as exc:
        logger.error("storage failure, transaction rolled back: %s", exc)
        raise StorageUnavailable("Storage is unavailable, retry the operation") from exc
