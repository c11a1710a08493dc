"""Output formats of the metadata extraction."""

from __future__ import annotations

from enum import Enum

from ..errors import InvalidArgumentError
from .metadata import METADATA_COLUMNS, metadata_row_values, write_metadata_csv, write_metadata_parquet


class OutputFormat(str, Enum):
    CSV = "CSV"
    CDX = "CDX"
    PARQUET = "PARQUET"

    @classmethod
    def parse(cls, arg: str | None) -> "OutputFormat":
        """Blank defaults to CSV."""

        s = (arg or "").strip().upper()
        if not s:
            return cls.CSV
        for fmt in cls:
            if fmt.value == s:
                return fmt
        raise InvalidArgumentError(f"Output format must be one of 'CSV', 'CDX' or 'PARQUET', got {arg!r}")


__all__ = [
    "METADATA_COLUMNS",
    "OutputFormat",
    "metadata_row_values",
    "write_metadata_csv",
    "write_metadata_parquet",
]
