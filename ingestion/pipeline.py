"""
Build the runner's collaborators from settings and run it once
"""

from typing import Optional
import logging

import httpx

from core.config import Settings
from core.database import create_engine
from core.storage import SupabaseObjectStore
from ingestion.endpoints import ENDPOINTS, select_endpoints
from ingestion.extractors.argus_extractor import ArgusExtractor
from ingestion.loaders.storage_archiver import CsvArchiver
from ingestion.loaders.table_loader import BulkLoader, PostgresTableWriter
from ingestion.runner import PipelineRunner
from schemas.pipeline import RunSummary, TimeWindow

logger = logging.getLogger(__name__)


async def run_pipeline(
    settings: Settings,
    window: TimeWindow,
    selection: Optional[str] = None,
) -> RunSummary:
    """
    Run the selected endpoints once for ``window``.

    Endpoint selection and credentials are checked before any client is
    created.

    Raises:
        ConfigurationError: Unknown endpoint or missing credentials
    """
    selection = selection or settings.ENDPOINT
    selected = select_endpoints(selection, ENDPOINTS)
    settings.require_credentials(selected)

    store = await SupabaseObjectStore.connect(
        settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY
    )

    engine = None
    loader = None
    if any(e.table_target for e in selected):
        engine = create_engine(settings.DATABASE_URL)
        loader = BulkLoader(PostgresTableWriter(engine))

    try:
        async with httpx.AsyncClient(timeout=settings.API_TIMEOUT_SECONDS) as client:
            runner = PipelineRunner(
                extractor=ArgusExtractor(
                    client, settings.ARGUS_API_TOKEN, max_pages=settings.MAX_PAGES
                ),
                archiver=CsvArchiver(store),
                loader=loader,
                window=window,
                endpoints=ENDPOINTS,
            )
            return await runner.run(selection)
    finally:
        await store.close()
        if engine is not None:
            await engine.dispose()
