"""Retrieval of CDX entries for WIDs and URL intervals from a CDX server.

The CDX server is only queried by URL. Matching an entry against the capture
time of a WID, its job/offset, or the date window of a URL interval happens
here on the client, so the policy does not depend on how a given CDX server
interprets extra query parameters.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Protocol, Sequence

from ..dateutils import check_date_interval, datetime_to_millis
from ..errors import CDXLookupError, check_url
from ..harvestdb.jobs import extract_job_id
from ..identifiers import WID, JobOffsetWID, UrlDateWID, UrlInterval
from ..workers import SessionPool, ordered_map
from .codec import iter_cdx_entries
from .entry import CDXEntry

logger = logging.getLogger(__name__)


class CDXExtractor(Protocol):
    def retrieve_cdx_entries(self, wids: Sequence[WID]) -> List[CDXEntry]:
        ...

    def retrieve_cdx_for_interval(self, interval: UrlInterval) -> List[CDXEntry]:
        ...


def matches_wid(entry: CDXEntry, wid: WID) -> bool:
    if isinstance(wid, UrlDateWID):
        return entry.date // 1000 == datetime_to_millis(wid.timestamp) // 1000
    return extract_job_id(entry) == wid.job_id and entry.offset == wid.file_offset


class CdxServerExtractor:
    """CDX extractor backed by a CDX server answering `GET <base_url>?url=<url>`.

    The response is plain CDX lines, optionally preceded by a ` CDX ...` format
    line. A failing request for one identifier is logged and yields no entries.
    """

    def __init__(
        self,
        base_url: str,
        *,
        session: Any = None,
        timeout_s: float = 30.0,
        max_workers: int = 1,
    ) -> None:
        self.base_url = check_url(base_url, "CDX server url")
        self.timeout_s = float(timeout_s)
        self.max_workers = max(1, int(max_workers))
        self._sessions = SessionPool(session)

    def query_url(self, url: str) -> List[CDXEntry]:
        """All CDX entries the server has for the URL; raises CDXLookupError."""

        try:
            resp = self._sessions.get().get(self.base_url, params={"url": url}, timeout=self.timeout_s)
        except Exception as e:
            raise CDXLookupError(f"request failed: {type(e).__name__}: {e}", url=url) from e

        if resp.status_code == 404:
            return []
        if resp.status_code != 200:
            raise CDXLookupError(f"CDX server HTTP {resp.status_code}: {resp.text[:500]}", url=url)

        return list(iter_cdx_entries(resp.text.splitlines(), source=url))

    def _lookup(self, url: str) -> List[CDXEntry]:
        try:
            return self.query_url(url)
        except CDXLookupError as e:
            logger.warning("CDX lookup failed for '%s': %s", url, e)
            return []

    def resolve_wid(self, wid: WID) -> Optional[CDXEntry]:
        if isinstance(wid, JobOffsetWID) and not wid.url:
            logger.warning("Cannot look up job %d offset %d without a url", wid.job_id, wid.file_offset)
            return None

        for entry in self._lookup(wid.url):
            if matches_wid(entry, wid):
                return entry
        logger.warning("No CDX entry found for %s", wid)
        return None

    def retrieve_cdx_entries(self, wids: Sequence[WID]) -> List[CDXEntry]:
        resolved = ordered_map(self.resolve_wid, list(wids), self.max_workers)
        out = [e for e in resolved if e is not None]
        logger.info("Resolved %d of %d WIDs to CDX entries", len(out), len(resolved))
        return out

    def retrieve_cdx_for_interval(self, interval: UrlInterval) -> List[CDXEntry]:
        return [
            e for e in self._lookup(interval.url) if check_date_interval(e, interval.earliest, interval.latest)
        ]

