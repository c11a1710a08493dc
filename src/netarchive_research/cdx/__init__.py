"""CDX entries and the CDX line/file codec.

The CDX server client lives in `netarchive_research.cdx.extractor`.
"""

from .codec import format_header, format_line, iter_cdx_entries, parse_line, read_cdx_file, write_cdx_file
from .entry import DEFAULT_CDX_FORMAT, CDXEntry, CDXFormat

__all__ = [
    "CDXEntry",
    "CDXFormat",
    "DEFAULT_CDX_FORMAT",
    "format_header",
    "format_line",
    "iter_cdx_entries",
    "parse_line",
    "read_cdx_file",
    "write_cdx_file",
]
