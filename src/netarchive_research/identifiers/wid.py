"""Web identifiers (WIDs) and the reader for the NAS WID CSV format.

The CSV is converted from the search-extract spreadsheet and has the columns:

    discriminator;#;url;date;location;filename

`X` rows point at a capture by URL and capture time (Wayback WID), `W` rows by
harvest job and offset in the archive file (WPID).
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from ..dateutils import parse_csv_date
from ..harvestdb.jobs import extract_job_id_from_filename
from ..textio import iter_lines

logger = logging.getLogger(__name__)

DISCRIMINATOR_JOB_OFFSET = "W"
DISCRIMINATOR_URL_DATE = "X"

WID_COLUMNS = ("discriminator", "#", "url", "date", "location", "filename")


@dataclass(frozen=True)
class JobOffsetWID:
    """Capture pointed at by harvest job and offset in the archive file.

    `url` is only the lookup key towards the CDX server.
    """

    job_id: int
    file_offset: int
    url: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.job_id, bool) or not isinstance(self.job_id, int) or self.job_id <= 0:
            raise ValueError(f"job id must be a positive integer, got {self.job_id!r}")
        if isinstance(self.file_offset, bool) or not isinstance(self.file_offset, int) or self.file_offset < 0:
            raise ValueError(f"file offset must be a non-negative integer, got {self.file_offset!r}")


@dataclass(frozen=True)
class UrlDateWID:
    """Capture pointed at by URL and capture time (second resolution, UTC)."""

    url: str
    timestamp: datetime

    def __post_init__(self) -> None:
        if not self.url or not self.url.strip():
            raise ValueError("url may not be empty")
        if not isinstance(self.timestamp, datetime):
            raise ValueError(f"timestamp must be a datetime, got {self.timestamp!r}")
        ts = self.timestamp
        ts = ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts.astimezone(timezone.utc)
        object.__setattr__(self, "timestamp", ts.replace(microsecond=0))


WID = Union[JobOffsetWID, UrlDateWID]


def _cell(row: List[str], index: int) -> str:
    return row[index].strip() if index < len(row) else ""


def parse_wid_row(row: List[str]) -> WID:
    """Build a WID from one CSV row; raises ValueError for an invalid row."""

    discriminator = _cell(row, 0).upper()
    url = _cell(row, 2)

    if discriminator == DISCRIMINATOR_URL_DATE:
        timestamp = parse_csv_date(_cell(row, 3))
        if not url or timestamp is None:
            raise ValueError("URL/date row requires both a url and a parseable date")
        return UrlDateWID(url=url, timestamp=timestamp)

    if discriminator == DISCRIMINATOR_JOB_OFFSET:
        filename = _cell(row, 5)
        job_id = extract_job_id_from_filename(filename)
        if job_id is None:
            raise ValueError(f"no job id in filename {filename!r}")
        location = _cell(row, 4)
        try:
            offset = int(location)
        except ValueError:
            raise ValueError(f"invalid file offset {location!r}") from None
        return JobOffsetWID(job_id=job_id, file_offset=offset, url=url or None)

    raise ValueError(f"unrecognized discriminator {_cell(row, 0)!r}")


def read_wids(path: Path | str) -> List[WID]:
    """Read all valid WIDs from a NAS WID CSV file, in file order.

    Invalid rows are logged and skipped.
    """

    p = Path(path)
    out: List[WID] = []
    for n, row in enumerate(csv.reader(iter_lines(p), delimiter=";"), start=1):
        if not any(cell.strip() for cell in row):
            continue
        try:
            out.append(parse_wid_row(row))
        except ValueError as e:
            logger.warning("Skipping WID row %s:%d: %s", p.name, n, e)

    logger.info("Read %d WIDs from %s", len(out), p)
    return out
