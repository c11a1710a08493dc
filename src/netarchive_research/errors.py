"""Exception types shared by the research tools.

Input validation and output conflicts are fatal and surface at startup.
Remote lookup errors are raised by the collaborator clients and recovered per
entry by the pipelines.
"""

from __future__ import annotations

import urllib.parse
from pathlib import Path
from typing import Optional


class ResearchError(Exception):
    """Base class for all errors raised by netarchive_research."""


class InvalidArgumentError(ResearchError, ValueError):
    """Invalid input file, URL, format flag or configuration."""


class OutputExistsError(ResearchError, FileExistsError):
    def __init__(self, path: Path | str):
        super().__init__(f"The output location '{path}' is not vacant")
        self.path = Path(path)


class CDXParseError(ResearchError, ValueError):
    def __init__(self, message: str, *, line: Optional[str] = None):
        super().__init__(message if line is None else f"{message}: {line!r}")
        self.line = line


class CDXFormatError(ResearchError, ValueError):
    """An entry cannot be written as a CDX line."""


class CDXLookupError(ResearchError, RuntimeError):
    def __init__(self, message: str, *, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class HarvestJobLookupError(ResearchError, RuntimeError):
    def __init__(self, message: str, *, job_id: Optional[int] = None):
        super().__init__(message)
        self.job_id = job_id


class ArchiveFetchError(ResearchError, IOError):
    def __init__(self, message: str, *, filename: Optional[str] = None, offset: Optional[int] = None):
        super().__init__(message)
        self.filename = filename
        self.offset = offset


class ArchiveRecordNotFound(ArchiveFetchError):
    pass


def check_not_empty(value: Optional[str], name: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidArgumentError(f"Argument may not be null or empty: {name}")
    return str(value).strip()


def check_is_file(path: Path | str, name: str) -> Path:
    p = Path(path)
    if not p.is_file():
        raise InvalidArgumentError(
            f"The {name} '{p.absolute()}' is not a valid file (either does not exist or is a directory)"
        )
    return p


def check_url(url: Optional[str], name: str) -> str:
    """Require an absolute http(s) URL with a host."""

    s = check_not_empty(url, name)
    parsed = urllib.parse.urlparse(s)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise InvalidArgumentError(f"The {name} '{s}' is invalid")
    return s
