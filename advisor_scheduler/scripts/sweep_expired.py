"""
Mark pending appointments whose date and time have passed as no_response.

Safe to run repeatedly (e.g. from cron); a second run finds nothing.
Usage: python -m advisor_scheduler.scripts.sweep_expired
"""

import asyncio
import logging
from datetime import datetime

from advisor_scheduler.api.v1.appointments import service
from advisor_scheduler.api.v1.appointments.repository import SqlAppointmentRepository
from advisor_scheduler.core.logging import configure_logging
from advisor_scheduler.db.session import AsyncSessionLocal

logger = logging.getLogger(__name__)


async def run_sweep() -> int:
    async with AsyncSessionLocal() as session:
        return await service.sweep_expired(SqlAppointmentRepository(session), datetime.now())


def main() -> None:
    configure_logging()
    count = asyncio.run(run_sweep())
    logger.info("Done. %d appointment(s) expired.", count)


if __name__ == "__main__":
    main()
