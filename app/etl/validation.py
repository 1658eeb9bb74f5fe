"""
Data validation and logging setup for sales imports.

Imported values are trusted: the quality report built here flags suspicious
rows (negative amounts, out-of-range discounts) for the logs but never drops
them. The only hard failure of an import is having nothing to import.
"""

import logging
from typing import Any, Dict, List

import pandas as pd
import structlog
from pandera import Check, Column, DataFrameSchema
from pandera.errors import SchemaErrors

from .config import ImportConfig

logger = structlog.get_logger()

NUMERIC_COLUMNS = [
    "age",
    "quantity",
    "price_per_unit",
    "discount_percentage",
    "total_amount",
    "final_amount",
]


class DataValidationError(Exception):
    """Custom exception for data validation failures"""

    pass


class ImportValidationError(DataValidationError):
    """Raised when an upload yields nothing that can be imported"""

    pass


def _non_negative(required: bool = False) -> Column:
    return Column(
        None,
        checks=[Check.greater_than_or_equal_to(0)],
        nullable=True,
        required=required,
    )


class SalesDataSchema:
    """Schema definitions for parsed sales records"""

    SALES_RECORD_SCHEMA = DataFrameSchema(
        {
            "customer_id": Column(
                None, checks=[Check.str_length(min_value=1)], nullable=False
            ),
            "product_id": Column(
                None, checks=[Check.str_length(min_value=1)], nullable=False
            ),
            "age": Column(
                None,
                checks=[Check.in_range(0, ImportConfig.MAX_AGE)],
                nullable=True,
                required=False,
            ),
            "quantity": _non_negative(),
            "price_per_unit": _non_negative(),
            "discount_percentage": Column(
                None,
                checks=[Check.in_range(0, ImportConfig.MAX_DISCOUNT_PERCENTAGE)],
                nullable=True,
                required=False,
            ),
            "total_amount": _non_negative(),
            "final_amount": _non_negative(),
        }
    )


class DataValidator:
    """Builds data quality reports for parsed sales records"""

    def __init__(self, schema: DataFrameSchema = SalesDataSchema.SALES_RECORD_SCHEMA):
        self.schema = schema

    @staticmethod
    def to_frame(rows: List[Dict[str, Any]]) -> pd.DataFrame:
        """Build a DataFrame from parsed rows with numeric columns as floats"""
        df = pd.DataFrame.from_records(rows)
        for col in NUMERIC_COLUMNS:
            if col in df.columns:
                df[col] = pd.to_numeric(df[col], errors="coerce")
        return df

    def calculate_data_quality_metrics(self, df: pd.DataFrame) -> Dict[str, Any]:
        """Calculate basic data quality metrics"""
        metrics: Dict[str, Any] = {
            "total_rows": len(df),
            "total_columns": len(df.columns),
        }

        for col in ("customer_name", "date", "product_category"):
            if col in df.columns:
                null_count = int(df[col].isnull().sum())
                metrics[f"{col}_null_count"] = null_count

        metrics["duplicate_rows"] = int(df.duplicated().sum()) if len(df) else 0
        return metrics

    def quality_report(self, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Validate parsed rows and summarise the rows that look wrong"""
        report: Dict[str, Any] = {
            "rows_checked": len(rows),
            "flagged_rows": 0,
            "issues": [],
            "metrics": {},
        }
        if not rows:
            return report

        df = self.to_frame(rows)
        report["metrics"] = self.calculate_data_quality_metrics(df)

        try:
            self.schema.validate(df, lazy=True)
            logger.info("Sales data quality check passed", rows=len(df))
        except SchemaErrors as e:
            failures = e.failure_cases
            report["flagged_rows"] = int(failures["index"].dropna().nunique())
            grouped = failures.groupby(["column", "check"], dropna=False).size()
            report["issues"] = [
                {"column": str(column), "check": str(check), "count": int(count)}
                for (column, check), count in grouped.items()
            ]
            logger.warning(
                "Sales data quality issues found",
                flagged_rows=report["flagged_rows"],
                issues=report["issues"],
            )

        return report


def setup_logging(level: str = "INFO"):
    """Setup structured logging with structlog"""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
