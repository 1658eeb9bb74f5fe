"""
Configuration settings for CSV parsing and the data quality report.

Batch size, upload limit and log level are application settings and live in
``api.config.Settings``.
"""

import os


class ImportConfig:
    """Configuration class for sales CSV import settings"""

    # Parsing
    CSV_DELIMITER = os.getenv("IMPORT_CSV_DELIMITER", ",")
    FALLBACK_ENCODINGS = ["utf-8", "cp1252", "latin-1"]

    # Data quality report (flags only, never rejects records)
    ENABLE_QUALITY_REPORT = os.getenv("ENABLE_QUALITY_REPORT", "true").lower() == "true"
    MAX_DISCOUNT_PERCENTAGE = 100
    MAX_AGE = 200
