"""Export of CDX entries with their harvest job info.

The CSV export is `;` separated with a fixed header; one row per entry in the
order given. The same columns can be written to a Parquet file.
"""

from __future__ import annotations

import csv
import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from ..cdx.entry import CDXEntry
from ..dateutils import date_to_cdx_date
from ..errors import OutputExistsError
from ..harvestdb.jobs import HarvestJobInfo

logger = logging.getLogger(__name__)

METADATA_COLUMNS = (
    "URL",
    "Normalized URL",
    "Date",
    "Content type",
    "HTTP Status",
    "Checksum",
    "Redirect URL",
    "Filename",
    "File offset",
    "Job ID",
    "Job Type",
    "Job name",
)

CSV_DELIMITER = ";"
EMPTY_VALUE = "-"
NOT_AVAILABLE = "N/A"

MetadataRow = Tuple[CDXEntry, Optional[HarvestJobInfo]]


def _text(value: object) -> str:
    if value is None or value == "":
        return EMPTY_VALUE
    # Embedded newlines would split one record over several lines.
    return str(value).replace("\r\n", " ").replace("\r", " ").replace("\n", " ")


def metadata_row_values(entry: CDXEntry, job: Optional[HarvestJobInfo]) -> List[str]:
    values = [
        _text(entry.url),
        _text(entry.url_norm),
        date_to_cdx_date(entry.date),
        _text(entry.content_type),
        _text(entry.status_code),
        _text(entry.digest),
        _text(entry.redirect),
        _text(entry.filename),
        _text(entry.offset),
    ]
    if job is None:
        values.extend([NOT_AVAILABLE] * 3)
    else:
        values.extend([_text(job.job_id), _text(job.job_type), _text(job.job_name)])
    return values


def _tmp_path(out_path: Path) -> Path:
    return out_path.with_name(out_path.name + ".part")


def _check_target(out_path: Path, overwrite: bool) -> None:
    if out_path.exists() and not overwrite:
        raise OutputExistsError(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)


def write_metadata_csv(path: Path | str, rows: Iterable[MetadataRow], *, overwrite: bool = False) -> int:
    """Write the metadata CSV; returns the number of data rows.

    Fields containing the delimiter are quoted by the csv writer, so every
    record stays a single row.
    """

    out_path = Path(path)
    _check_target(out_path, overwrite)
    tmp_path = _tmp_path(out_path)

    n = 0
    try:
        with tmp_path.open("w", encoding="utf-8", newline="") as f:
            w = csv.writer(f, delimiter=CSV_DELIMITER, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
            w.writerow(METADATA_COLUMNS)
            for entry, job in rows:
                w.writerow(metadata_row_values(entry, job))
                n += 1
        os.replace(tmp_path, out_path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()

    logger.info("Wrote %d metadata rows to %s", n, out_path)
    return n


def write_metadata_parquet(
    path: Path | str,
    rows: Sequence[MetadataRow],
    *,
    overwrite: bool = False,
    compression: str = "zstd",
) -> int:
    import pyarrow as pa
    import pyarrow.parquet as pq

    out_path = Path(path)
    _check_target(out_path, overwrite)
    tmp_path = _tmp_path(out_path)

    batch = {
        "URL": [e.url for e, _ in rows],
        "Normalized URL": [e.url_norm for e, _ in rows],
        "Date": [date_to_cdx_date(e.date) for e, _ in rows],
        "Content type": [e.content_type for e, _ in rows],
        "HTTP Status": [e.status_code for e, _ in rows],
        "Checksum": [e.digest for e, _ in rows],
        "Redirect URL": [e.redirect for e, _ in rows],
        "Filename": [e.filename for e, _ in rows],
        "File offset": [e.offset for e, _ in rows],
        "Job ID": [j.job_id if j else None for _, j in rows],
        "Job Type": [j.job_type if j else None for _, j in rows],
        "Job name": [j.job_name if j else None for _, j in rows],
    }
    table = pa.Table.from_pydict(
        batch,
        schema=pa.schema(
            [
                ("URL", pa.string()),
                ("Normalized URL", pa.string()),
                ("Date", pa.string()),
                ("Content type", pa.string()),
                ("HTTP Status", pa.int32()),
                ("Checksum", pa.string()),
                ("Redirect URL", pa.string()),
                ("Filename", pa.string()),
                ("File offset", pa.int64()),
                ("Job ID", pa.int64()),
                ("Job Type", pa.string()),
                ("Job name", pa.string()),
            ]
        ),
    )

    try:
        pq.write_table(table, tmp_path, compression=compression)
        os.replace(tmp_path, out_path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()

    logger.info("Wrote %d metadata rows to %s", table.num_rows, out_path)
    return table.num_rows
