# ============================================================================
# File: ingestion/runner.py
# Description: Sequential per-endpoint ETL orchestrator
# ============================================================================
"""
Pipeline Runner - Orchestrates Extract, Archive and Load per endpoint.

This module runs the selected endpoints one after another with:
- Extraction with partial-result semantics
- CSV archival and table load as independent stages over the same records
- Per-endpoint failure isolation; one endpoint never stops the next
- An explicit EndpointResult per endpoint, collected into a RunSummary
"""

from datetime import datetime
from typing import List, Optional, Sequence
import logging

from core.exceptions import (
    ETLException,
    LoadError,
    TransformationError,
)
from ingestion.endpoints import ALL_ENDPOINTS, ENDPOINTS, select_endpoints
from ingestion.extractors.argus_extractor import ArgusExtractor
from ingestion.loaders.storage_archiver import CsvArchiver
from ingestion.loaders.table_loader import BulkLoader
from schemas.pipeline import (
    EndpointDescriptor,
    EndpointResult,
    EndpointStatus,
    RunSummary,
    TimeWindow,
)

logger = logging.getLogger(__name__)


class PipelineRunner:
    """
    Report ETL Orchestrator

    Responsibilities:
    - Select endpoints and reject unknown selections before any work
    - Run Extract -> (Archive, Load) for each endpoint, strictly in sequence
    - Classify each endpoint's outcome
    - Log a final summary
    """

    def __init__(
        self,
        extractor: ArgusExtractor,
        archiver: CsvArchiver,
        loader: Optional[BulkLoader],
        window: TimeWindow,
        endpoints: Sequence[EndpointDescriptor] = ENDPOINTS,
    ):
        self.extractor = extractor
        self.archiver = archiver
        self.loader = loader
        self.window = window
        self.endpoints = list(endpoints)

    async def run(self, selection: str = ALL_ENDPOINTS) -> RunSummary:
        """
        Process every endpoint matching ``selection``.

        Raises:
            ConfigurationError: If ``selection`` matches no endpoint
        """
        selected = select_endpoints(selection, self.endpoints)
        summary = RunSummary(window=self.window)

        logger.info(
            f"Run started for {len(selected)} endpoint(s), "
            f"window {self.window.start_timestamp} -> {self.window.end_timestamp}"
        )

        for descriptor in selected:
            logger.info(f"--- Processing endpoint: {descriptor.name} ---")
            try:
                result = await self.run_endpoint(descriptor)
            except Exception as e:
                error = ETLException(
                    "Unexpected error processing endpoint",
                    context={"endpoint": descriptor.name},
                    original_exception=e
                )
                logger.exception(
                    f"General error processing endpoint {descriptor.name}",
                    extra={"error_context": error.to_dict()}
                )
                result = EndpointResult(
                    endpoint=descriptor.name,
                    status=EndpointStatus.FAILED,
                    errors=[f"{error.message}: {e}"],
                )
            summary.results.append(result)
            logger.info(
                f"--- Finished endpoint: {descriptor.name} ({result.status.value}) ---"
            )

        summary.completed_at = datetime.utcnow()
        logger.info(
            f"Run finished in {summary.duration_seconds:.1f}s: "
            f"{summary.count(EndpointStatus.SUCCESS)} success, "
            f"{summary.count(EndpointStatus.PARTIAL)} partial, "
            f"{summary.count(EndpointStatus.FAILED)} failed, "
            f"{summary.count(EndpointStatus.NO_DATA)} no data"
        )
        return summary

    async def run_endpoint(self, descriptor: EndpointDescriptor) -> EndpointResult:
        """Extract, archive and load one endpoint; never raises ETL errors"""
        extraction = await self.extractor.extract(descriptor, self.window)
        errors: List[str] = []
        if extraction.error:
            errors.append(f"extraction: {extraction.error}")

        if not extraction.records:
            logger.warning(f"No data returned for {descriptor.name}. Skipping uploads.")
            return EndpointResult(
                endpoint=descriptor.name,
                status=EndpointStatus.NO_DATA,
                extraction_stop_reason=extraction.stop_reason,
                errors=errors,
            )

        records = extraction.records
        stages_ok: List[bool] = []

        # Archive
        archive_key: Optional[str] = None
        try:
            archive_key = await self.archiver.archive(descriptor, self.window, records)
            stages_ok.append(True)
        except (TransformationError, LoadError) as e:
            errors.append(f"archive: {e.message}")
            stages_ok.append(False)
            logger.error(
                f"Archival failed for {descriptor.name}: {e.message}",
                extra={"error_context": e.to_dict()}
            )

        # Load
        records_loaded = 0
        if descriptor.table_target and self.loader is not None:
            try:
                records_loaded = await self.loader.load(descriptor.table_target, records)
                stages_ok.append(True)
            except LoadError as e:
                errors.append(f"load: {e.message}")
                stages_ok.append(False)
                logger.error(
                    f"Load failed for {descriptor.name}: {e.message}",
                    extra={"error_context": e.to_dict()}
                )
        elif descriptor.table_target:
            errors.append("load: no table writer configured")
            stages_ok.append(False)
            logger.error(
                f"Endpoint {descriptor.name} targets {descriptor.table_target} "
                f"but no table writer is configured"
            )
        else:
            logger.info(f"Table load not configured for {descriptor.name}. Skipping.")

        status = self._classify(extraction.complete, stages_ok)
        return EndpointResult(
            endpoint=descriptor.name,
            status=status,
            records_extracted=len(records),
            records_loaded=records_loaded,
            archive_key=archive_key,
            extraction_stop_reason=extraction.stop_reason,
            errors=errors,
        )

    @staticmethod
    def _classify(extraction_complete: bool, stages_ok: List[bool]) -> EndpointStatus:
        if stages_ok and not any(stages_ok):
            return EndpointStatus.FAILED
        if extraction_complete and all(stages_ok):
            return EndpointStatus.SUCCESS
        return EndpointStatus.PARTIAL
