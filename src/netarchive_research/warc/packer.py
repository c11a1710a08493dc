"""Packing of CDX entries into WARC files.

For every CDX entry the captured payload is fetched from the archive and
written as a WARC response record. Entries from the same archive file go to
the same output file series:

    <out_dir>/<archive file stem>-extract-00000.warc.gz
    <out_dir>/<archive file stem>-extract-00001.warc.gz   (after rotation)

A file is rotated before a record would take it past `max_file_bytes`; a
record is never split across files. Each file starts with a warcinfo record.
"""

from __future__ import annotations

import glob
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Dict, Iterable, List, Optional, Sequence, Tuple

from ..cdx.entry import CDXEntry
from ..errors import ArchiveFetchError, InvalidArgumentError, OutputExistsError
from ..workers import ordered_map
from .archive import ArchiveExtractor
from .records import gzip_member, response_record, warcinfo_record

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_BYTES = 1_000_000_000
SOFTWARE = "netarchive-research"

_ARCHIVE_SUFFIXES = (".gz", ".warc", ".arc", ".open")


@dataclass(frozen=True)
class WarcPackResult:
    files: List[Path] = field(default_factory=list)
    packed: int = 0
    skipped: int = 0
    duplicates: int = 0


def archive_stem(filename: str) -> str:
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    stripped = True
    while stripped:
        stripped = False
        for suffix in _ARCHIVE_SUFFIXES:
            if name.lower().endswith(suffix) and len(name) > len(suffix):
                name = name[: -len(suffix)]
                stripped = True
    return name


def output_filename(container: str, serial: int) -> str:
    return f"{archive_stem(container)}-extract-{int(serial):05d}.warc.gz"


def existing_outputs(out_dir: Path, container: str) -> List[Path]:
    """Files of any earlier extract series for the archive file in out_dir."""

    pattern = f"{glob.escape(archive_stem(container))}-extract-*.warc.gz"
    return sorted(out_dir.glob(pattern))


def dedup_entries(entries: Iterable[CDXEntry]) -> Tuple[List[CDXEntry], int]:
    """Drop entries pointing at an already seen (filename, offset); keeps order."""

    seen = set()
    out: List[CDXEntry] = []
    duplicates = 0
    for e in entries:
        key = (e.filename, e.offset)
        if key in seen:
            duplicates += 1
            continue
        seen.add(key)
        out.append(e)
    return out, duplicates


class _WarcFileSeries:
    """Output files for one archive file. Not thread safe; used from the packing thread only."""

    def __init__(self, out_dir: Path, container: str, max_file_bytes: int) -> None:
        self.out_dir = out_dir
        self.container = container
        self.max_file_bytes = int(max_file_bytes)
        self.serial = 0
        self.files: List[Path] = []
        self._fh: Optional[BinaryIO] = None
        self._written = 0
        self._records = 0

    def _open(self) -> BinaryIO:
        path = self.out_dir / output_filename(self.container, self.serial)
        try:
            fh = path.open("xb")
        except FileExistsError:
            raise OutputExistsError(path) from None
        self._fh = fh
        self.serial += 1
        self.files.append(path)
        info = gzip_member(
            warcinfo_record(
                path.name,
                {"software": SOFTWARE, "format": "WARC File Format 1.0", "source-archive-file": self.container},
            )
        )
        fh.write(info)
        self._written = len(info)
        self._records = 0
        logger.info("Writing WARC records to %s", path)
        return fh

    def write(self, entry: CDXEntry, payload: bytes) -> None:
        member = gzip_member(response_record(entry, payload))
        if self._fh is not None and self._records > 0 and self._written + len(member) > self.max_file_bytes:
            self.close()
        fh = self._fh if self._fh is not None else self._open()
        fh.write(member)
        self._written += len(member)
        self._records += 1

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None


class WarcPacker:
    def __init__(
        self,
        extractor: ArchiveExtractor,
        *,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
        max_workers: int = 1,
    ) -> None:
        if int(max_file_bytes) <= 0:
            raise InvalidArgumentError("max_file_bytes must be positive")
        self.extractor = extractor
        self.max_file_bytes = int(max_file_bytes)
        self.max_workers = max(1, int(max_workers))

    def _fetch(self, entry: CDXEntry) -> Optional[bytes]:
        try:
            return self.extractor.fetch(entry.filename, entry.offset)
        except ArchiveFetchError as e:
            logger.warning("Skipping %s (%s:%d): %s", entry.url, entry.filename, entry.offset, e)
        except Exception as e:
            logger.warning(
                "Skipping %s (%s:%d): %s: %s", entry.url, entry.filename, entry.offset, type(e).__name__, e
            )
        return None

    def pack(self, entries: Sequence[CDXEntry], out_dir: Path | str) -> WarcPackResult:
        """Fetch and write every entry; returns the files written and the counts.

        Raises OutputExistsError before any fetch when any file of an output
        series of the run already exists.
        """

        out = Path(out_dir)
        if out.exists() and not out.is_dir():
            raise InvalidArgumentError(f"The output directory '{out}' is not a directory")
        out.mkdir(parents=True, exist_ok=True)

        unique, duplicates = dedup_entries(entries)
        if duplicates:
            logger.info("Ignoring %d duplicate CDX entries", duplicates)

        groups: Dict[str, List[CDXEntry]] = {}
        for e in unique:
            groups.setdefault(archive_stem(e.filename), []).append(e)

        for stem in groups:
            existing = existing_outputs(out, stem)
            if existing:
                raise OutputExistsError(existing[0])

        files: List[Path] = []
        packed = 0
        skipped = 0
        batch_size = self.max_workers * 4

        for group in groups.values():
            series = _WarcFileSeries(out, group[0].filename, self.max_file_bytes)
            try:
                for i in range(0, len(group), batch_size):
                    batch = group[i : i + batch_size]
                    payloads = ordered_map(self._fetch, batch, self.max_workers)
                    for entry, payload in zip(batch, payloads):
                        if payload is None:
                            skipped += 1
                            continue
                        series.write(entry, payload)
                        packed += 1
            finally:
                series.close()
                files.extend(series.files)

        logger.info("Packed %d records into %d WARC files (%d skipped)", packed, len(files), skipped)
        return WarcPackResult(files=files, packed=packed, skipped=skipped, duplicates=duplicates)
