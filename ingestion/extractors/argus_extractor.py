"""
Argus report extractor with cursor pagination and soft-stop error handling.

This module pulls every page of a report for one endpoint and time window:
- Cursor pagination driven by the server (idProxPagina / endOfTable)
- Soft-stop on API failures and transport errors, keeping partial results
- Page cap so a server that never signals completion cannot loop forever
- No retries; a failed page ends the extraction for that endpoint
"""

import httpx
from typing import Any, Dict, List, Optional, Tuple
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import APIExtractionError, ExtractionError, NetworkError
from schemas.pipeline import (
    EndpointDescriptor,
    ExtractionResult,
    PageCursor,
    Record,
    ReportPage,
    StopReason,
    TimeWindow,
)
import logging

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 10000


class ArgusExtractor:
    """
    Extract report records from the Argus reporting API.

    Features:
    - Static token authentication (Token-Signature header)
    - Cursor pagination with an immutable PageCursor per iteration
    - Partial-result semantics: ``extract`` never raises

    Attributes:
        client: Shared HTTP client, owned by the caller
        api_token: Token sent with every page request
        max_pages: Page cap per extraction (default: 10000)
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_token: str,
        max_pages: int = DEFAULT_MAX_PAGES
    ):
        self.client = client
        self.api_token = api_token
        self.max_pages = max_pages

    def _headers(self) -> Dict[str, str]:
        return {
            "Token-Signature": self.api_token,
            "Content-Type": "application/json"
        }

    @staticmethod
    def _build_body(
        descriptor: EndpointDescriptor,
        window: TimeWindow,
        cursor: PageCursor
    ) -> Dict[str, Any]:
        return {
            "idCampanha": descriptor.campaign_id,
            "periodoInicial": window.start_timestamp,
            "periodoFinal": window.end_timestamp,
            "ultimoId": cursor.last_id,
        }

    async def _fetch_page(
        self,
        descriptor: EndpointDescriptor,
        window: TimeWindow,
        cursor: PageCursor
    ) -> Tuple[ReportPage, List[Record]]:
        """
        Request one page and split it into envelope and records.

        Returns:
            The parsed envelope and the records array (possibly empty)

        Raises:
            NetworkError: Transport failure, non-2xx status or undecodable body
            APIExtractionError: The API reported a failure or sent a malformed page
        """
        context = {
            "endpoint": descriptor.name,
            "page": cursor.page_index,
            "cursor": cursor.last_id,
        }

        try:
            response = await self.client.post(
                descriptor.source_url,
                json=self._build_body(descriptor, window, cursor),
                headers=self._headers()
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"HTTP {e.response.status_code} from {descriptor.source_url}",
                context={
                    **context,
                    "http_status": e.response.status_code,
                    "response_body": e.response.text[:500]
                },
                original_exception=e
            )
        except httpx.HTTPError as e:
            raise NetworkError(
                f"Request to {descriptor.source_url} failed",
                context=context,
                original_exception=e
            )

        try:
            data = response.json()
        except ValueError as e:
            raise NetworkError(
                "Failed to parse JSON response",
                context={**context, "response_body": response.text[:500]},
                original_exception=e
            )

        if not isinstance(data, dict):
            raise APIExtractionError(
                "Unexpected response shape",
                context={**context, "response_type": type(data).__name__}
            )

        try:
            page = ReportPage.model_validate(data)
        except PydanticValidationError as e:
            raise APIExtractionError(
                "Malformed report page",
                context=context,
                original_exception=e
            )

        if not page.succeeded:
            raise APIExtractionError(
                page.status_description or "No description",
                context={
                    **context,
                    "status_code": page.status_code,
                    "status_description": page.status_description
                }
            )

        records = data.get(descriptor.records_field)
        if not isinstance(records, list):
            records = []
        if not all(isinstance(r, dict) for r in records):
            raise APIExtractionError(
                f"Non-object entries in {descriptor.records_field}",
                context=context
            )
        return page, records

    async def extract(
        self,
        descriptor: EndpointDescriptor,
        window: TimeWindow
    ) -> ExtractionResult:
        """
        Pull every page for ``descriptor`` within ``window``.

        Stops when the server reports endOfTable, returns cursor 0, sends an
        empty or failed page, the request fails, or the page cap is hit.

        Returns:
            Records accumulated so far, in API order, with the stop reason
        """
        records: List[Record] = []
        cursor = PageCursor()
        pages_fetched = 0
        stop_reason = StopReason.COMPLETED
        error: Optional[str] = None

        logger.info(
            f"Starting extraction for {descriptor.name} ({descriptor.records_field}) "
            f"for {window.start_timestamp} -> {window.end_timestamp}"
        )

        while not cursor.exhausted:
            if cursor.page_index > self.max_pages:
                stop_reason = StopReason.PAGE_CAP
                error = f"Page cap of {self.max_pages} reached"
                logger.error(
                    f"{descriptor.name}: {error} at cursor {cursor.last_id}; "
                    f"stopping with {len(records)} records"
                )
                cursor = cursor.stop()
                break

            logger.info(
                f"{descriptor.name}: fetching page {cursor.page_index} "
                f"(cursor: {cursor.last_id})"
            )

            try:
                page, page_records = await self._fetch_page(descriptor, window, cursor)
            except APIExtractionError as e:
                stop_reason = StopReason.API_FAILURE
                error = e.message
                logger.warning(
                    f"{descriptor.name}: empty or failed response on page "
                    f"{cursor.page_index}: {e.message}",
                    extra={"error_context": e.to_dict()}
                )
                cursor = cursor.stop()
                continue
            except NetworkError as e:
                stop_reason = StopReason.TRANSPORT_FAILURE
                error = e.message
                logger.error(
                    f"{descriptor.name}: error fetching page {cursor.page_index}: {e}",
                    extra={"error_context": e.to_dict()}
                )
                cursor = cursor.stop()
                continue
            except Exception as e:
                wrapped = ExtractionError(
                    "Unexpected error during page fetch",
                    context={"endpoint": descriptor.name, "page": cursor.page_index},
                    original_exception=e
                )
                stop_reason = StopReason.TRANSPORT_FAILURE
                error = wrapped.message
                logger.exception(
                    f"{descriptor.name}: unexpected error on page {cursor.page_index}",
                    extra={"error_context": wrapped.to_dict()}
                )
                cursor = cursor.stop()
                continue

            if not page_records:
                logger.warning(
                    f"{descriptor.name}: empty response on page {cursor.page_index}: "
                    f"{page.status_description or 'No description'}"
                )
                cursor = cursor.stop()
                continue

            records.extend(page_records)
            pages_fetched += 1
            logger.info(
                f"{descriptor.name}:  -> {page.record_count} records reported, "
                f"{len(page_records)} received (total: {len(records)})"
            )
            cursor = cursor.advance(page)

        logger.info(
            f"Extraction finished for {descriptor.name}: {len(records)} records "
            f"from {pages_fetched} pages ({stop_reason.value})"
        )
        return ExtractionResult(
            endpoint=descriptor.name,
            records=records,
            pages_fetched=pages_fetched,
            stop_reason=stop_reason,
            error=error
        )
