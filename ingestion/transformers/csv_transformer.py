"""
Flatten heterogeneous report records into CSV text with pandas
"""

from typing import Any, Dict, List, Optional, Sequence
import csv
import json
import logging

import pandas as pd

from core.exceptions import DataFormatError, TransformationError
from schemas.pipeline import Record

logger = logging.getLogger(__name__)

_SCALAR_TYPES = (str, int, float, bool)


def union_columns(records: Sequence[Record]) -> List[str]:
    """Union of record keys in first-seen order across the sequence"""
    columns: Dict[str, None] = {}
    for record in records:
        for key in record:
            columns.setdefault(key, None)
    return list(columns)


def _cell(value: Any, row: int, column: str) -> Any:
    """Coerce one value into something the CSV writer renders faithfully"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        # JSON does not distinguish 2.0 from 2
        return int(value)
    if value is None or isinstance(value, _SCALAR_TYPES):
        return value
    if isinstance(value, (dict, list)):
        try:
            return json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise DataFormatError(
                "Nested value is not JSON serializable",
                context={"row": row, "column": column},
                original_exception=e
            )
    raise DataFormatError(
        "Value cannot be written as a CSV field",
        context={"row": row, "column": column, "value_type": type(value).__name__}
    )


class CSVTransformer:
    """
    Convert report records to CSV.

    Handles:
    - Records with differing key sets (header is the union of keys)
    - Missing keys and nulls rendered as empty fields
    - Minimal quoting for delimiters, quotes and line breaks
    """

    def to_csv(self, records: Sequence[Record]) -> Optional[str]:
        """
        Serialize ``records`` in input order.

        Returns:
            CSV text with a header row, or None when there are no records

        Raises:
            TransformationError: If any value cannot be serialized
        """
        if not records:
            logger.info("No records to convert to CSV")
            return None

        columns = union_columns(records)
        rows = [
            [_cell(record.get(column), index, column) for column in columns]
            for index, record in enumerate(records)
        ]

        try:
            # object dtype keeps ints as ints when a column has gaps
            frame = pd.DataFrame(rows, columns=columns, dtype=object)
            return frame.to_csv(
                index=False,
                na_rep="",
                lineterminator="\n",
                quoting=csv.QUOTE_MINIMAL
            )
        except Exception as e:
            raise TransformationError(
                "Failed to serialize records to CSV",
                context={"records": len(records), "columns": len(columns)},
                original_exception=e
            )
