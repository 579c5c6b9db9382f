import asyncio
import logging
import sys
from stockledger.db import AsyncSessionLocal
from stockledger.services.stock import find_ledger_drift


logger = logging.getLogger("check_ledger")


async def run() -> int:
    async with AsyncSessionLocal() as session:
        drift = await find_ledger_drift(session)
    for row in drift:
        logger.error(
            "stock item %s: quantity=%s movements=%s", row.item_id, row.quantity, row.movement_total
        )
    if drift:
        logger.error("%d stock item(s) out of sync with their movements", len(drift))
        return 1
    logger.info("ledger consistent")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    sys.exit(asyncio.run(run()))
