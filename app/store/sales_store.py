"""
Storage for imported sales records.

The store is append-only. Readers get an immutable snapshot from ``all()`` so
a query never observes a half-applied append and never mutates stored data.
File-backed stores keep the full collection in memory and rewrite their file
on every append; a failed write leaves both the file and the in-memory
collection unchanged.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Union
from uuid import uuid4

import pyarrow as pa
import pyarrow.parquet as pq
import structlog

from app.models import SalesRecord

logger = structlog.get_logger()


class StoreError(Exception):
    """Raised when the backing store cannot be read or written."""

    pass


def stamp_record(record: SalesRecord) -> SalesRecord:
    """Assign an id and creation timestamp to a record that lacks them."""
    updates = {}
    if not record.id:
        updates["id"] = uuid4().hex
    if record.created_at is None:
        updates["created_at"] = datetime.now(timezone.utc)
    return record.model_copy(update=updates) if updates else record


class SalesStore(ABC):
    """Append-only collection of sales records."""

    backend_name = "abstract"

    @abstractmethod
    def append(self, records: Iterable[SalesRecord]) -> int:
        """Append records and return how many were stored."""

    @abstractmethod
    def all(self) -> Sequence[SalesRecord]:
        """Return an immutable snapshot of every stored record."""

    def count(self) -> int:
        return len(self.all())


class InMemorySalesStore(SalesStore):
    """Process-lifetime store holding records in a list."""

    backend_name = "memory"

    def __init__(self, records: Iterable[SalesRecord] = ()):
        self._records: List[SalesRecord] = [stamp_record(r) for r in records]

    def append(self, records: Iterable[SalesRecord]) -> int:
        stamped = [stamp_record(record) for record in records]
        if not stamped:
            return 0
        self._persist(self._records + stamped)
        self._records = self._records + stamped
        return len(stamped)

    def all(self) -> Sequence[SalesRecord]:
        return tuple(self._records)

    def count(self) -> int:
        return len(self._records)

    def _persist(self, records: List[SalesRecord]) -> None:
        """Hook for file-backed stores; the in-memory store keeps nothing."""


class FileSalesStore(InMemorySalesStore):
    """Base for stores persisting the whole collection to a single file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__()
        self._records = self._load()

    def _load(self) -> List[SalesRecord]:
        if not self.path.exists():
            logger.info("Sales dataset not found, starting empty", path=str(self.path))
            return []
        try:
            rows = self._read_rows()
            records = [SalesRecord.model_validate(row) for row in rows]
        except (OSError, ValueError) as e:
            logger.warning(
                "Could not load sales dataset", path=str(self.path), error=str(e)
            )
            return []

        logger.info("Sales dataset loaded", path=str(self.path), records=len(records))
        return records

    def _persist(self, records: List[SalesRecord]) -> None:
        rows = [record.model_dump(mode="json") for record in records]
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            os.close(fd)
            self._write_rows(rows, tmp_path)
            os.replace(tmp_path, self.path)
        except (OSError, ValueError, pa.ArrowException) as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)
            logger.error("Failed to write sales dataset", path=str(self.path), error=str(e))
            raise StoreError(f"Failed to write {self.path}: {e}") from e

    @abstractmethod
    def _read_rows(self) -> List[Dict[str, Any]]:
        """Read the raw rows stored at ``self.path``."""

    @abstractmethod
    def _write_rows(self, rows: List[Dict[str, Any]], path: str) -> None:
        """Write ``rows`` to ``path``."""


class JsonFileSalesStore(FileSalesStore):
    """Store persisted as a flat JSON array."""

    backend_name = "json"

    def _read_rows(self) -> List[Dict[str, Any]]:
        with open(self.path, encoding="utf-8") as f:
            rows = json.load(f)
        if not isinstance(rows, list):
            raise ValueError("Sales dataset must be a JSON array")
        return rows

    def _write_rows(self, rows: List[Dict[str, Any]], path: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(rows, f, ensure_ascii=False)


class ParquetFileSalesStore(FileSalesStore):
    """Store persisted as a Parquet table."""

    backend_name = "parquet"

    def __init__(self, path: Union[str, Path], compression: str = "snappy"):
        self.compression = compression
        super().__init__(path)

    def _read_rows(self) -> List[Dict[str, Any]]:
        return pq.read_table(self.path).to_pylist()

    def _write_rows(self, rows: List[Dict[str, Any]], path: str) -> None:
        table = pa.Table.from_pylist(rows)
        pq.write_table(table, path, compression=self.compression)


STORE_BACKENDS = {
    "memory": InMemorySalesStore,
    "json": JsonFileSalesStore,
    "parquet": ParquetFileSalesStore,
}

DEFAULT_DATA_FILES = {
    "json": "data/sales.json",
    "parquet": "data/sales.parquet",
}


def create_store(backend: str = "memory", data_file: str = None) -> SalesStore:
    """Build the store for ``backend``, reading ``data_file`` if file-backed."""
    backend = backend.lower()
    if backend not in STORE_BACKENDS:
        raise ValueError(
            f"Unknown store backend '{backend}'. Expected one of: {sorted(STORE_BACKENDS)}"
        )

    if backend == "memory":
        return InMemorySalesStore()

    path = data_file or DEFAULT_DATA_FILES[backend]
    return STORE_BACKENDS[backend](path)
