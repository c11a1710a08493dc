"""Harvest job lookup for CDX entries.

NetarchiveSuite names its archive files `<jobId>-<harvestId>-<timestamp>-...`,
so the harvest job of a capture can be read from the filename of its CDX entry
and then looked up in the harvest job service.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from ..cdx.entry import CDXEntry
from ..errors import HarvestJobLookupError, check_url
from ..workers import SessionPool

logger = logging.getLogger(__name__)

# Leading numeric segment of the basename, terminated by '-'.
JOB_ID_PATTERN = re.compile(r"^(\d+)-")


@dataclass(frozen=True)
class HarvestJobInfo:
    job_id: int
    job_type: str
    job_name: str


class HarvestJobExtractor(Protocol):
    def extract_job(self, job_id: int) -> Optional[HarvestJobInfo]:
        """Return the job info, or None for an unknown job."""
        ...


def extract_job_id_from_filename(filename: Optional[str]) -> Optional[int]:
    if not filename:
        return None
    base = filename.replace("\\", "/").rsplit("/", 1)[-1]
    m = JOB_ID_PATTERN.match(base)
    if not m:
        return None
    job_id = int(m.group(1))
    return job_id if job_id > 0 else None


def extract_job_id(entry: CDXEntry) -> Optional[int]:
    return extract_job_id_from_filename(entry.filename)


def correlate(entry: CDXEntry, provider: Optional[HarvestJobExtractor]) -> Optional[HarvestJobInfo]:
    """Best-effort harvest job info for the entry; None when it cannot be had.

    Provider failures are logged here and never propagate.
    """

    job_id = extract_job_id(entry)
    if provider is None or job_id is None:
        logger.debug("Cannot extract harvest job info for %s: missing job extractor or job id", entry.filename)
        return None

    logger.debug("Extracting harvest job info for job '%d'", job_id)
    try:
        info = provider.extract_job(job_id)
    except Exception as e:
        logger.warning("Could not extract harvest job info for job '%d': %s: %s", job_id, type(e).__name__, e)
        return None
    if info is None:
        logger.info("Unknown harvest job '%d' for %s", job_id, entry.filename)
    return info


class HttpHarvestJobExtractor:
    """Client for the harvest job service.

    `GET <base_url>/jobs/<id>` answers `{"id": .., "type": .., "name": ..}`,
    or 404 for an unknown job.
    """

    def __init__(self, base_url: str, *, session: Any = None, timeout_s: float = 30.0) -> None:
        self.base_url = check_url(base_url, "harvest job service url").rstrip("/")
        self.timeout_s = float(timeout_s)
        self._sessions = SessionPool(session)

    def job_url(self, job_id: int) -> str:
        return f"{self.base_url}/jobs/{int(job_id)}"

    def extract_job(self, job_id: int) -> Optional[HarvestJobInfo]:
        url = self.job_url(job_id)
        try:
            resp = self._sessions.get().get(url, headers={"Accept": "application/json"}, timeout=self.timeout_s)
        except Exception as e:
            raise HarvestJobLookupError(f"request failed: {type(e).__name__}: {e}", job_id=job_id) from e

        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise HarvestJobLookupError(f"Harvest job service HTTP {resp.status_code}: {resp.text[:500]}", job_id=job_id)

        try:
            data = resp.json()
        except ValueError as e:
            raise HarvestJobLookupError("non-JSON response", job_id=job_id) from e
        if not isinstance(data, dict):
            raise HarvestJobLookupError("unexpected response", job_id=job_id)

        return HarvestJobInfo(
            job_id=int(data.get("id") or job_id),
            job_type=str(data.get("type") or ""),
            job_name=str(data.get("name") or ""),
        )
