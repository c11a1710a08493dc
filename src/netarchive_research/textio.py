"""Line reading for the UTF-8 input files (WID, URL interval and CDX files)."""

from __future__ import annotations

import codecs
import logging
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


def iter_lines(path: Path | str) -> Iterator[str]:
    """Yield the lines of a UTF-8 file without their line terminators.

    A leading byte order mark is dropped. A line that is not valid UTF-8 is
    logged and yielded as an empty line, so the rest of the file is still read
    and line numbers keep matching the file.
    """

    p = Path(path)
    with p.open("rb") as f:
        for n, raw in enumerate(f, start=1):
            if n == 1 and raw.startswith(codecs.BOM_UTF8):
                raw = raw[len(codecs.BOM_UTF8) :]
            try:
                line = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                logger.warning("Skipping line %s:%d: not valid UTF-8 (%s)", p.name, n, e.reason)
                line = ""
            yield line.rstrip("\r\n")
