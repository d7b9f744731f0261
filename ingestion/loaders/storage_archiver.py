"""
Archive extracted records as CSV objects in storage
"""

from typing import Callable, Optional, Protocol, Sequence
import logging
import time

from core.exceptions import ArchiveError
from ingestion.transformers.csv_transformer import CSVTransformer
from schemas.pipeline import EndpointDescriptor, Record, TimeWindow

logger = logging.getLogger(__name__)

CSV_CONTENT_TYPE = "text/csv"


class ObjectStore(Protocol):
    async def put(
        self,
        bucket: str,
        key: str,
        content: str,
        content_type: str = CSV_CONTENT_TYPE,
        overwrite: bool = True,
    ) -> None:
        ...


def _epoch_millis() -> int:
    return int(time.time() * 1000)


def archive_key(
    descriptor: EndpointDescriptor, window: TimeWindow, epoch_millis: int
) -> str:
    """Object key: ``{name}_{startDate}_ate_{endDate}_{epochMillis}.csv``"""
    return (
        f"{descriptor.name}_{window.start_date}_ate_{window.end_date}"
        f"_{epoch_millis}.csv"
    )


class CsvArchiver:
    """Serialize records to CSV and upload them to the endpoint's bucket"""

    def __init__(
        self,
        store: ObjectStore,
        transformer: Optional[CSVTransformer] = None,
        clock: Callable[[], int] = _epoch_millis,
    ):
        self.store = store
        self.transformer = transformer or CSVTransformer()
        self.clock = clock

    async def archive(
        self,
        descriptor: EndpointDescriptor,
        window: TimeWindow,
        records: Sequence[Record],
    ) -> Optional[str]:
        """
        Upload ``records`` as one CSV object.

        Returns:
            The object key, or None when there was nothing to write

        Raises:
            TransformationError: If the records cannot be serialized
            ArchiveError: If the upload fails
        """
        content = self.transformer.to_csv(records)
        if content is None:
            return None

        key = archive_key(descriptor, window, self.clock())
        bucket = descriptor.archive_target
        logger.info(f"Uploading CSV {key} to bucket {bucket}")

        try:
            await self.store.put(
                bucket, key, content, content_type=CSV_CONTENT_TYPE, overwrite=True
            )
        except Exception as e:
            raise ArchiveError(
                f"Failed to upload {key}",
                context={"bucket": bucket, "key": key},
                original_exception=e
            )

        logger.info(f"CSV upload complete: {bucket}/{key}")
        return key
