"""Parsing and formatting of CDX lines and CDX files.

A CDX file starts with a format line such as:

    ` CDX a A b m s k r g V`

followed by one space separated line per capture, `-` standing for an empty
field. DEFAULT_CDX_FORMAT is the classical NetarchiveSuite field order.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from ..dateutils import cdx_date_to_millis, date_to_cdx_date
from ..errors import CDXFormatError, CDXParseError, OutputExistsError
from ..textio import iter_lines
from .entry import CDX_FIELDS, DEFAULT_CDX_FORMAT, REQUIRED_FIELDS, CDXEntry, CDXFormat

logger = logging.getLogger(__name__)

EMPTY_FIELD = "-"


def is_header_line(line: str) -> bool:
    return line.lstrip().startswith("CDX ")


def _parse_int(attr: str, raw: str, line: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise CDXParseError(f"invalid {attr} {raw!r}", line=line) from None


def parse_line(line: str, fmt: CDXFormat = DEFAULT_CDX_FORMAT) -> CDXEntry:
    """Parse one CDX line into a CDXEntry.

    Letters of `fmt` without a CDXEntry counterpart are ignored. Raises
    CDXParseError when the line has too few fields or a required field is
    missing or malformed.
    """

    text = (line or "").strip()
    parts = text.split()
    if len(parts) < len(fmt.fields):
        raise CDXParseError(f"expected {len(fmt.fields)} fields, got {len(parts)}", line=text)

    values: dict = {}
    for letter, raw in zip(fmt.fields, parts):
        attr = CDX_FIELDS.get(letter)
        if attr is None:
            continue
        if raw == EMPTY_FIELD:
            values[attr] = None
        elif attr == "date":
            try:
                values[attr] = cdx_date_to_millis(raw)
            except ValueError:
                raise CDXParseError(f"invalid date {raw!r}", line=text) from None
        elif attr in {"status_code", "offset"}:
            values[attr] = _parse_int(attr, raw, text)
        else:
            values[attr] = raw

    for attr in REQUIRED_FIELDS:
        if values.get(attr) is None:
            raise CDXParseError(f"missing required field {attr!r}", line=text)
    if values["offset"] < 0:
        raise CDXParseError("negative offset", line=text)

    return CDXEntry(
        url=values["url"],
        url_norm=values.get("url_norm"),
        date=values["date"],
        content_type=values.get("content_type"),
        status_code=values.get("status_code"),
        digest=values.get("digest"),
        redirect=values.get("redirect"),
        filename=values["filename"],
        offset=values["offset"],
    )


def _format_value(entry: CDXEntry, attr: str) -> str:
    value = getattr(entry, attr)
    if value is None or value == "":
        if attr in REQUIRED_FIELDS:
            raise CDXFormatError(f"required field {attr!r} is missing for {entry.url!r}")
        return EMPTY_FIELD
    if attr == "date":
        return date_to_cdx_date(int(value))
    s = str(value)
    if any(c.isspace() for c in s):
        raise CDXFormatError(f"field {attr!r} contains whitespace: {s!r}")
    return s


def format_line(entry: CDXEntry, fmt: CDXFormat = DEFAULT_CDX_FORMAT) -> str:
    out: List[str] = []
    for letter in fmt.fields:
        attr = CDX_FIELDS.get(letter)
        if attr is None:
            raise CDXFormatError(f"unsupported CDX field {letter!r}")
        out.append(_format_value(entry, attr))
    return " ".join(out)


def format_header(fmt: CDXFormat = DEFAULT_CDX_FORMAT) -> str:
    return fmt.header


def iter_cdx_entries(lines: Iterable[str], fmt: Optional[CDXFormat] = None, *, source: str = "") -> Iterator[CDXEntry]:
    """Parse CDX lines, skipping blanks and malformed lines.

    A header line switches the field order used for the lines after it.
    """

    current = fmt or DEFAULT_CDX_FORMAT
    for n, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        if is_header_line(line):
            try:
                current = CDXFormat.parse(line)
            except CDXParseError as e:
                logger.warning("Ignoring CDX header %s:%d: %s", source, n, e)
            continue
        try:
            yield parse_line(line, current)
        except CDXParseError as e:
            logger.warning("Skipping CDX line %s:%d: %s", source, n, e)


def read_cdx_file(path: Path | str) -> List[CDXEntry]:
    p = Path(path)
    return list(iter_cdx_entries(iter_lines(p), source=str(p)))


def write_cdx_file(
    path: Path | str,
    entries: Iterable[CDXEntry],
    fmt: CDXFormat = DEFAULT_CDX_FORMAT,
    *,
    overwrite: bool = False,
) -> int:
    """Write a CDX file with a format header line; returns the number of entries.

    Every entry is formatted before the file is created, so an invalid entry
    leaves no output behind.
    """

    out_path = Path(path)
    if out_path.exists() and not overwrite:
        raise OutputExistsError(out_path)

    lines = [format_line(e, fmt) for e in entries]

    out_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = out_path.with_name(out_path.name + ".part")
    try:
        with tmp_path.open("w", encoding="utf-8", newline="\n") as f:
            f.write(format_header(fmt) + "\n")
            for line in lines:
                f.write(line + "\n")
        os.replace(tmp_path, out_path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()

    logger.info("Wrote %d CDX entries to %s", len(lines), out_path)
    return len(lines)
