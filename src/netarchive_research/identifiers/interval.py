"""URL intervals and the reader for the URL interval CSV format.

Columns: `discriminator;url;earliest date;latest date`. Blank dates leave that
side of the interval open.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..dateutils import parse_csv_date
from ..textio import iter_lines

logger = logging.getLogger(__name__)

URL_INTERVAL_DISCRIMINATOR = "W"


@dataclass(frozen=True)
class UrlInterval:
    url: str
    earliest: Optional[datetime] = None
    latest: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.url or not self.url.strip():
            raise ValueError("url may not be empty")
        if self.earliest is not None and self.latest is not None and self.earliest > self.latest:
            raise ValueError(f"earliest date {self.earliest.isoformat()} is after latest date {self.latest.isoformat()}")


def parse_url_interval_row(row: List[str]) -> UrlInterval:
    cells = [c.strip() for c in row]
    cells += [""] * (4 - len(cells))
    discriminator, url, earliest, latest = cells[:4]
    if discriminator.upper() != URL_INTERVAL_DISCRIMINATOR:
        raise ValueError(f"unrecognized discriminator {discriminator!r}")
    return UrlInterval(url=url, earliest=parse_csv_date(earliest), latest=parse_csv_date(latest))


def read_url_intervals(path: Path | str) -> List[UrlInterval]:
    p = Path(path)
    out: List[UrlInterval] = []
    for n, row in enumerate(csv.reader(iter_lines(p), delimiter=";"), start=1):
        if not any(cell.strip() for cell in row):
            continue
        try:
            out.append(parse_url_interval_row(row))
        except ValueError as e:
            logger.warning("Skipping URL interval row %s:%d: %s", p.name, n, e)

    logger.info("Read %d URL intervals from %s", len(out), p)
    return out
