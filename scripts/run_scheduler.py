"""
Script to run the report ETL on a cron schedule until interrupted
"""

import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, ingestion, etc.
sys.path.append(os.getcwd())

from pydantic import ValidationError

from core.config import Settings
from core.exceptions import ConfigurationError
from core.logging import setup_logging
from ingestion.endpoints import select_endpoints
from ingestion.pipeline import run_pipeline
from ingestion.scheduler import ETLScheduler

logger = logging.getLogger(__name__)


async def serve() -> int:
    """Run the ETL on its cron schedule; returns the process exit status"""
    try:
        settings = Settings()
    except ValidationError as e:
        setup_logging()
        logger.error(f"Invalid configuration: {e}")
        return 1

    setup_logging(settings.LOG_LEVEL)

    try:
        settings.require_credentials(select_endpoints(settings.ENDPOINT))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    scheduler = ETLScheduler(settings, run_pipeline)
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.stop()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(serve()))
    except KeyboardInterrupt:
        pass
