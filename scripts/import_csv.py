#!/usr/bin/env python3
"""
Import a sales CSV export into a file-backed sales store.
"""

import argparse
import sys
from pathlib import Path

base_path = Path(__file__).parent.parent
sys.path.insert(0, str(base_path))

from app.etl.importer import SalesImportPipeline  # noqa: E402
from app.etl.validation import ImportValidationError, setup_logging  # noqa: E402
from app.store import StoreError, create_store  # noqa: E402


def import_csv(csv_path: Path, backend: str, data_file: str, batch_size: int) -> int:
    store = create_store(backend, data_file)
    pipeline = SalesImportPipeline(store, batch_size=batch_size)

    try:
        summary = pipeline.run(csv_path.read_bytes())
    except (ImportValidationError, StoreError) as e:
        print(f"Import failed: {e}", file=sys.stderr)
        return 1

    print(f"Successfully imported {summary.records_imported} records from {csv_path}")
    print(f"Store: {backend} ({getattr(store, 'path', 'in memory')})")
    print(f"Total records: {summary.total_records}")
    if summary.quality.get("flagged_rows"):
        print(f"Rows flagged by quality checks: {summary.quality['flagged_rows']}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("csv_path", type=Path, help="CSV export to import")
    parser.add_argument("--backend", choices=["json", "parquet"], default="json")
    parser.add_argument("--data-file", default=None, help="Store file to append to")
    parser.add_argument("--batch-size", type=int, default=1000)
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args()

    setup_logging(args.log_level)

    if not args.csv_path.exists():
        print(f"File not found: {args.csv_path}", file=sys.stderr)
        return 1

    return import_csv(args.csv_path, args.backend, args.data_file, args.batch_size)


if __name__ == "__main__":
    sys.exit(main())
