"""Extracts the WARC records for all the entries of a CDX file."""

from __future__ import annotations

import logging
from pathlib import Path

from .cdx.codec import read_cdx_file
from .errors import check_is_file
from .warc.archive import ArchiveExtractor
from .warc.packer import DEFAULT_MAX_FILE_BYTES, WarcPacker, WarcPackResult

logger = logging.getLogger(__name__)


def extract_warc(
    cdx_file: Path | str,
    out_dir: Path | str,
    extractor: ArchiveExtractor,
    *,
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
    max_workers: int = 1,
) -> WarcPackResult:
    p = check_is_file(cdx_file, "CDX file")
    entries = read_cdx_file(p)
    logger.info("Read %d CDX entries from %s", len(entries), p)

    packer = WarcPacker(extractor, max_file_bytes=max_file_bytes, max_workers=max_workers)
    return packer.pack(entries, out_dir)
