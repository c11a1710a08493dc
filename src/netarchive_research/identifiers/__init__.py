"""Readers for the identifier CSV files (WIDs and URL intervals)."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Union

from ..errors import InvalidArgumentError
from .interval import UrlInterval, parse_url_interval_row, read_url_intervals
from .wid import WID, JobOffsetWID, UrlDateWID, parse_wid_row, read_wids


class InputFormat(str, Enum):
    WID = "WID"
    URL_INTERVAL = "URL"

    @classmethod
    def parse(cls, arg: str) -> "InputFormat":
        s = (arg or "").strip().upper()
        for fmt in cls:
            if fmt.value == s:
                return fmt
        raise InvalidArgumentError(
            f"Input format must be either '{cls.URL_INTERVAL.value}' or '{cls.WID.value}', got {arg!r}"
        )


def read_identifiers(path: Path | str, input_format: InputFormat) -> Union[List[WID], List[UrlInterval]]:
    if input_format is InputFormat.WID:
        return read_wids(path)
    return read_url_intervals(path)


__all__ = [
    "InputFormat",
    "JobOffsetWID",
    "UrlDateWID",
    "UrlInterval",
    "WID",
    "parse_url_interval_row",
    "parse_wid_row",
    "read_identifiers",
    "read_url_intervals",
    "read_wids",
]
