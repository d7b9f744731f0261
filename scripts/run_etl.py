"""
Script to run the report ETL once for the configured window and endpoints
"""

import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, ingestion, etc.
sys.path.append(os.getcwd())

from pydantic import ValidationError

from core.config import Settings, resolve_time_window
from core.exceptions import ConfigurationError
from core.logging import setup_logging
from ingestion.pipeline import run_pipeline

logger = logging.getLogger(__name__)


async def run_etl() -> int:
    """Run ETL for the selected endpoints; returns the process exit status"""
    try:
        settings = Settings()
    except ValidationError as e:
        setup_logging()
        logger.error(f"Invalid configuration: {e}")
        return 1

    setup_logging(settings.LOG_LEVEL)

    try:
        window = resolve_time_window(settings)
        summary = await run_pipeline(settings, window)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}", extra={"error_context": e.to_dict()})
        return 1

    for result in summary.results:
        logger.info(
            f"{result.endpoint}: {result.status.value} "
            f"(extracted={result.records_extracted}, loaded={result.records_loaded})"
        )
    logger.info("Process finished.")
    return 0


def main():
    sys.exit(asyncio.run(run_etl()))


if __name__ == "__main__":
    main()
