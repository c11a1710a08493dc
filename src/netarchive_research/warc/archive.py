"""Access to the captured payloads in the archive.

An archive extractor returns the raw payload of the capture stored at a given
offset of an archive file. Failures are raised as ArchiveFetchError (or
ArchiveRecordNotFound) and handled per entry by the WARC packer.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Protocol

from ..errors import ArchiveFetchError, ArchiveRecordNotFound, InvalidArgumentError, check_url
from ..workers import SessionPool
from .records import read_warc_record

logger = logging.getLogger(__name__)


class ArchiveExtractor(Protocol):
    def fetch(self, filename: str, offset: int) -> bytes:
        ...


class HttpArchiveExtractor:
    """Client for the archive repository: `GET <base_url>/<filename>?offset=<offset>`."""

    def __init__(self, base_url: str, *, session: Any = None, timeout_s: float = 30.0) -> None:
        self.base_url = check_url(base_url, "archive repository url").rstrip("/")
        self.timeout_s = float(timeout_s)
        self._sessions = SessionPool(session)

    def record_url(self, filename: str) -> str:
        return f"{self.base_url}/{filename.lstrip('/')}"

    def fetch(self, filename: str, offset: int) -> bytes:
        url = self.record_url(filename)
        try:
            resp = self._sessions.get().get(url, params={"offset": int(offset)}, timeout=self.timeout_s)
        except Exception as e:
            raise ArchiveFetchError(
                f"request failed: {type(e).__name__}: {e}", filename=filename, offset=offset
            ) from e

        if resp.status_code == 404:
            raise ArchiveRecordNotFound(f"no record at {filename}:{offset}", filename=filename, offset=offset)
        if resp.status_code != 200:
            raise ArchiveFetchError(
                f"archive repository HTTP {resp.status_code}", filename=filename, offset=offset
            )
        return resp.content


class LocalArchiveExtractor:
    """Reads records from WARC files in a local directory (plain or gzip per record).

    The record block is returned as the payload; for response records that is
    the full HTTP response.
    """

    def __init__(self, root_dir: Path | str) -> None:
        self.root_dir = Path(root_dir).expanduser()
        if not self.root_dir.is_dir():
            raise InvalidArgumentError(f"The archive directory '{self.root_dir}' is not a directory")

    def _resolve(self, filename: str) -> Optional[Path]:
        name = Path(filename).name
        for candidate in (self.root_dir / name, self.root_dir / (name + ".gz")):
            if candidate.is_file():
                return candidate
        return None

    def fetch(self, filename: str, offset: int) -> bytes:
        path = self._resolve(filename)
        if path is None:
            raise ArchiveRecordNotFound(f"archive file {filename} not found in {self.root_dir}", filename=filename, offset=offset)

        logger.debug("Reading record at %s:%d", path, offset)
        try:
            with path.open("rb") as fh:
                fh.seek(int(offset))
                _headers, block = read_warc_record(fh)
        except (OSError, ValueError) as e:
            raise ArchiveFetchError(
                f"could not read record at {path}:{offset}: {type(e).__name__}: {e}", filename=filename, offset=offset
            ) from e
        return block
