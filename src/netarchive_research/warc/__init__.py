"""Re-materialization of captures into WARC files."""

from .archive import ArchiveExtractor, HttpArchiveExtractor, LocalArchiveExtractor
from .packer import WarcPacker, WarcPackResult
from .records import read_warc_record

__all__ = [
    "ArchiveExtractor",
    "HttpArchiveExtractor",
    "LocalArchiveExtractor",
    "WarcPackResult",
    "WarcPacker",
    "read_warc_record",
]
