"""
ETL pipeline components for Argus report ingestion.

This package contains all components for the Extract-Archive-Load pipeline:

Modules:
    endpoints: Report endpoint descriptors and endpoint selection
    runner: Orchestrator that processes endpoints one after another
    pipeline: Builds clients from settings and runs the orchestrator once
    scheduler: APScheduler integration for scheduled runs

Subpackages:
    extractors: Cursor-paginated report extractor
    transformers: CSV flattening of heterogeneous records
    loaders: Chunked table loader and CSV archiver

Architecture:
    Each endpoint goes through three phases:

    1. Extract - Page through the report API until the server signals the end
    2. Archive - Write the records as a CSV object in storage
    3. Load - Append the records to a table in chunks of 500 (optional)

    Archive and load read the same records independently; a failure in one
    does not prevent the other, and a failing endpoint never stops the run.

Usage:
    from ingestion.extractors.argus_extractor import ArgusExtractor
    from ingestion.loaders.table_loader import BulkLoader, PostgresTableWriter
    from ingestion.loaders.storage_archiver import CsvArchiver
    from ingestion.runner import PipelineRunner

Example:
    runner = PipelineRunner(
        extractor=ArgusExtractor(client, api_token),
        archiver=CsvArchiver(store),
        loader=BulkLoader(PostgresTableWriter(engine)),
        window=window,
    )
    summary = await runner.run("all")
"""

__all__ = [
    "ArgusExtractor",
    "CSVTransformer",
    "BulkLoader",
    "PostgresTableWriter",
    "CsvArchiver",
    "PipelineRunner",
    "run_pipeline",
]
