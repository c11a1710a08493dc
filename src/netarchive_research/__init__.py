"""Research tools for the Danish web archive.

Extracts CDX entries and harvest job metadata for lists of web identifiers,
and re-packages archived captures into WARC files.
"""

__version__ = "0.1.0"
