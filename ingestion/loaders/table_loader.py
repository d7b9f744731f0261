"""
Append report records to a PostgreSQL table in fixed-size chunks
"""

from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence
import logging

from sqlalchemy import column, insert, table
from sqlalchemy.ext.asyncio import AsyncEngine

from core.exceptions import ChunkInsertError
from schemas.pipeline import Record

logger = logging.getLogger(__name__)

CHUNK_SIZE = 500


class TableWriter(Protocol):
    async def insert_batch(self, table_name: str, rows: Sequence[Record]) -> None:
        ...


def chunked(records: Sequence[Record], size: int = CHUNK_SIZE) -> Iterator[Sequence[Record]]:
    """Consecutive slices of ``size`` records; the last may be shorter"""
    for start in range(0, len(records), size):
        yield records[start:start + size]


def sanitize_record(record: Record) -> Record:
    """Copy of ``record`` with empty strings replaced by None"""
    return {
        key: None if isinstance(value, str) and value == "" else value
        for key, value in record.items()
    }


def _split_table_name(table_name: str):
    schema, _, name = table_name.rpartition(".")
    return (schema or None), name


class PostgresTableWriter:
    """
    Insert batches through SQLAlchemy Core.

    Each batch runs in its own transaction, so a failing batch never undoes
    the ones before it. There are no conflict clauses; rows are appended.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    @staticmethod
    def _normalize(rows: Sequence[Record]) -> List[Dict[str, Any]]:
        # executemany needs one key set per statement
        columns: Dict[str, None] = {}
        for row in rows:
            for key in row:
                columns.setdefault(key, None)
        return [{key: row.get(key) for key in columns} for row in rows]

    async def insert_batch(self, table_name: str, rows: Sequence[Record]) -> None:
        if not rows:
            return

        normalized = self._normalize(rows)
        schema, name = _split_table_name(table_name)
        target = table(name, *[column(key) for key in normalized[0]], schema=schema)

        async with self.engine.begin() as conn:
            await conn.execute(insert(target), normalized)


class BulkLoader:
    """
    Load records into a destination table in chunks, failing fast.

    Ensures:
    - Chunks of ``chunk_size`` records, split by position only
    - Empty strings are stored as NULL
    - Chunks are inserted strictly in order, one at a time
    - The first failing chunk stops the load; earlier chunks stay committed
      and are not rolled back
    """

    def __init__(self, writer: TableWriter, chunk_size: int = CHUNK_SIZE):
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self.writer = writer
        self.chunk_size = chunk_size

    async def load(self, table_name: str, records: Sequence[Record]) -> int:
        """
        Append ``records`` to ``table_name``.

        Args:
            table_name: Destination table, optionally schema-qualified
            records: Records in extraction order; not modified

        Returns:
            Number of rows inserted

        Raises:
            ChunkInsertError: Naming the 1-based chunk that failed
        """
        if not records:
            return 0

        total_chunks = (len(records) + self.chunk_size - 1) // self.chunk_size
        logger.info(
            f"Starting load of {len(records)} records into {table_name} "
            f"({total_chunks} chunks)"
        )

        rows_committed = 0
        for chunk_index, chunk in enumerate(chunked(records, self.chunk_size), start=1):
            sanitized = [sanitize_record(record) for record in chunk]
            logger.info(
                f"  -> Inserting chunk {chunk_index}/{total_chunks} "
                f"({len(sanitized)} records) into {table_name}"
            )

            try:
                await self.writer.insert_batch(table_name, sanitized)
            except Exception as e:
                error = ChunkInsertError(
                    f"Failed to insert chunk {chunk_index} into {table_name}",
                    table_name=table_name,
                    chunk_index=chunk_index,
                    context={
                        "total_chunks": total_chunks,
                        "chunk_size": len(sanitized),
                        "rows_committed": rows_committed
                    },
                    original_exception=e
                )
                logger.error(
                    f"Chunk {chunk_index}/{total_chunks} failed for {table_name}: {e}",
                    extra={"error_context": error.to_dict()}
                )
                raise error

            rows_committed += len(sanitized)

        logger.info(f"Load into {table_name} finished: {rows_committed} rows")
        return rows_committed
