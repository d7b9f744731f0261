"""
Pydantic schemas for endpoint metadata, pagination state and run results
"""

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional
import enum

from pydantic import BaseModel, Field, field_validator

Record = Dict[str, Any]

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


class StopReason(str, enum.Enum):
    """Why an extraction loop stopped"""
    COMPLETED = "completed"
    API_FAILURE = "api_failure"
    TRANSPORT_FAILURE = "transport_failure"
    PAGE_CAP = "page_cap"


class EndpointStatus(str, enum.Enum):
    """Outcome of one endpoint within a run"""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    NO_DATA = "no_data"


class EndpointDescriptor(BaseModel):
    """Static metadata for one reporting source and its destinations"""

    name: str = Field(..., min_length=1)
    archive_target: str = Field(..., min_length=1)
    source_url: str
    records_field: str
    campaign_id: int
    table_target: Optional[str] = None

    class Config:
        frozen = True


class TimeWindow(BaseModel):
    """Inclusive extraction window shared by every endpoint of a run"""

    start: datetime
    end: datetime

    class Config:
        frozen = True

    @classmethod
    def from_parts(
        cls, start_date: date, start_time: time, end_date: date, end_time: time
    ) -> "TimeWindow":
        return cls(
            start=datetime.combine(start_date, start_time),
            end=datetime.combine(end_date, end_time),
        )

    @property
    def start_timestamp(self) -> str:
        return self.start.strftime(TIMESTAMP_FORMAT)

    @property
    def end_timestamp(self) -> str:
        return self.end.strftime(TIMESTAMP_FORMAT)

    @property
    def start_date(self) -> str:
        return self.start.date().isoformat()

    @property
    def end_date(self) -> str:
        return self.end.date().isoformat()


class ReportPage(BaseModel):
    """
    One page of a report response.

    The API names its envelope fields in Portuguese; the records array
    lives under an endpoint-specific key and is read separately.
    """

    status_code: int = Field(..., alias="codStatus")
    status_description: Optional[str] = Field(None, alias="descStatus")
    record_count: int = Field(0, alias="qtdeRegistros")
    next_page_cursor: int = Field(0, alias="idProxPagina")
    end_of_table: bool = Field(False, alias="endOfTable")

    class Config:
        populate_by_name = True
        extra = "ignore"

    @field_validator("record_count", "next_page_cursor", "end_of_table", mode="before")
    @classmethod
    def null_as_default(cls, value, info):
        """The API sends null for these on some final pages"""
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @property
    def succeeded(self) -> bool:
        return self.status_code == 1


class PageCursor(BaseModel):
    """
    Pagination state for one extraction.

    Never mutated; ``advance`` and ``stop`` return new cursors.
    """

    last_id: int = 0
    page_index: int = 1
    exhausted: bool = False

    class Config:
        frozen = True

    def advance(self, page: ReportPage) -> "PageCursor":
        """Cursor for the page after ``page``"""
        next_id = page.next_page_cursor
        return PageCursor(
            last_id=next_id,
            page_index=self.page_index + 1,
            exhausted=page.end_of_table or next_id == 0,
        )

    def stop(self) -> "PageCursor":
        return self.model_copy(update={"exhausted": True})


class ExtractionResult(BaseModel):
    """Records pulled from one endpoint, in API order across pages"""

    endpoint: str
    records: List[Record] = Field(default_factory=list)
    pages_fetched: int = 0
    stop_reason: StopReason = StopReason.COMPLETED
    error: Optional[str] = None

    @property
    def complete(self) -> bool:
        return self.stop_reason == StopReason.COMPLETED

    def __len__(self) -> int:
        return len(self.records)


class EndpointResult(BaseModel):
    """Per-endpoint outcome collected by the runner"""

    endpoint: str
    status: EndpointStatus
    records_extracted: int = 0
    records_loaded: int = 0
    archive_key: Optional[str] = None
    extraction_stop_reason: Optional[StopReason] = None
    errors: List[str] = Field(default_factory=list)


class RunSummary(BaseModel):
    """Aggregate of every endpoint processed in a run"""

    window: TimeWindow
    results: List[EndpointResult] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    def count(self, status: EndpointStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()
