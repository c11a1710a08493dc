"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest


@pytest.fixture
def repo_root():
    """Return the repository root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def src_path(repo_root):
    """Return the src directory path."""
    return repo_root / "src"


@pytest.fixture
def make_entry():
    """Factory for CDX entries with sensible defaults."""
    from netarchive_research.cdx.entry import CDXEntry
    from netarchive_research.dateutils import cdx_date_to_millis

    def _make(
        url="http://example.org/",
        date="20120402235239",
        filename="42-117-20120402235000-00000-sb-test-har-001.statsbiblioteket.dk.warc",
        offset=1234,
        **kw,
    ):
        values = dict(
            url_norm=url,
            content_type="text/html",
            status_code=200,
            digest="ABCDEFGHIJKLMNOPQRSTUVWXYZ234567",
            redirect=None,
        )
        values.update(kw)
        return CDXEntry(url=url, date=cdx_date_to_millis(date), filename=filename, offset=offset, **values)

    return _make
