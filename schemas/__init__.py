"""
Pydantic schemas for the report ETL.

Schemas:
    pipeline: Endpoint descriptors, time windows, pagination cursor,
        report page envelope and run results

Usage:
    from schemas.pipeline import EndpointDescriptor, TimeWindow, PageCursor

Example:
    window = TimeWindow.from_parts(
        date(2024, 1, 1), time(0, 0), date(2024, 1, 7), time(23, 59, 59)
    )
    assert window.start_timestamp == "2024-01-01T00:00:00"
"""

__all__ = [
    "EndpointDescriptor",
    "TimeWindow",
    "PageCursor",
    "ReportPage",
    "ExtractionResult",
    "EndpointResult",
    "RunSummary",
    "EndpointStatus",
    "StopReason",
]
