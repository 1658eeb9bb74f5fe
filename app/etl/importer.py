"""
CSV import pipeline for sales data.

Decodes an uploaded file, parses it into sales records, runs the data quality
report and appends the records to the store in fixed-size batches.
"""

import time
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

import chardet
import structlog
from pydantic import BaseModel, Field, ValidationError

from app.models import SalesRecord
from app.store import SalesStore

from .config import ImportConfig
from .csv_parser import parse_sales_csv
from .validation import DataValidator, ImportValidationError

logger = structlog.get_logger()

NO_RECORDS_MESSAGE = "No valid records found in CSV file"
DEFAULT_BATCH_SIZE = 1000
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class ImportSummary(BaseModel):
    """Outcome of one CSV import."""

    records_parsed: int
    records_imported: int
    batches: int
    total_records: int
    duration_seconds: float
    quality: Dict[str, Any] = Field(default_factory=dict)


def chunk_records(records: Sequence[Any], size: int) -> Iterator[List[Any]]:
    """Yield consecutive slices of ``records`` holding at most ``size`` items."""
    if size < 1:
        raise ValueError("Batch size must be positive")
    for start in range(0, len(records), size):
        yield list(records[start:start + size])


def decode_upload(payload: bytes, fallback_encodings: Optional[List[str]] = None) -> str:
    """
    Decode uploaded bytes to text.

    UTF-8 (with or without BOM) is tried first, then the encoding detected by
    chardet, then the fallback list. latin-1 at the end of the default list
    accepts any byte sequence.
    """
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass

    detected = chardet.detect(payload).get("encoding")
    candidates = [detected] if detected else []
    candidates += fallback_encodings or ImportConfig.FALLBACK_ENCODINGS

    for encoding in candidates:
        try:
            text = payload.decode(encoding)
            logger.info("Decoded upload", encoding=encoding)
            return text
        except (UnicodeDecodeError, LookupError):
            continue

    raise ImportValidationError("Could not decode uploaded file")


class SalesImportPipeline:
    """CSV import pipeline with batching, quality reporting and logging"""

    def __init__(
        self,
        store: SalesStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        delimiter: str = ImportConfig.CSV_DELIMITER,
        enable_quality_report: bool = ImportConfig.ENABLE_QUALITY_REPORT,
    ):
        """
        Initialize the import pipeline

        Args:
            store: Store receiving the imported records
            batch_size: Number of records appended per store call
            max_upload_bytes: Largest accepted upload
            delimiter: CSV field delimiter
            enable_quality_report: Whether to run the data quality report
        """
        if batch_size < 1:
            raise ValueError("Batch size must be positive")

        self.store = store
        self.batch_size = batch_size
        self.max_upload_bytes = max_upload_bytes
        self.delimiter = delimiter
        self.enable_quality_report = enable_quality_report
        self.validator = DataValidator()

    def parse(self, text: str) -> List[Dict[str, Any]]:
        """Parse CSV text, failing when it yields no records"""
        rows = parse_sales_csv(text, self.delimiter)
        if not rows:
            logger.warning("CSV import produced no records")
            raise ImportValidationError(NO_RECORDS_MESSAGE)
        logger.info("CSV parsed", records=len(rows))
        return rows

    def build_records(self, rows: List[Dict[str, Any]]) -> List[SalesRecord]:
        try:
            return [SalesRecord.model_validate(row) for row in rows]
        except ValidationError as e:
            raise ImportValidationError(f"Invalid sales record: {e}") from e

    def load(self, records: Sequence[SalesRecord]) -> Dict[str, int]:
        """Append records to the store batch by batch"""
        imported = 0
        batches = 0
        for batch in chunk_records(records, self.batch_size):
            imported += self.store.append(batch)
            batches += 1
            logger.info(
                "Imported batch",
                batch=batches,
                imported=imported,
                total=len(records),
            )
        return {"imported": imported, "batches": batches}

    def run(self, payload: Union[bytes, str]) -> ImportSummary:
        """Run the full import for one uploaded file"""
        start_time = time.time()

        if isinstance(payload, bytes):
            if len(payload) > self.max_upload_bytes:
                raise ImportValidationError(
                    f"Upload exceeds the {self.max_upload_bytes} byte limit"
                )
            text = decode_upload(payload)
        else:
            text = payload

        rows = self.parse(text)
        quality = self.validator.quality_report(rows) if self.enable_quality_report else {}
        records = self.build_records(rows)
        loaded = self.load(records)

        summary = ImportSummary(
            records_parsed=len(rows),
            records_imported=loaded["imported"],
            batches=loaded["batches"],
            total_records=self.store.count(),
            duration_seconds=round(time.time() - start_time, 3),
            quality=quality,
        )
        logger.info(
            "CSV import completed",
            records_imported=summary.records_imported,
            batches=summary.batches,
            duration_seconds=summary.duration_seconds,
        )
        return summary
