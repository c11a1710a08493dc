"""Harvest job metadata for CDX entries."""

from .jobs import (
    HarvestJobExtractor,
    HarvestJobInfo,
    HttpHarvestJobExtractor,
    correlate,
    extract_job_id,
    extract_job_id_from_filename,
)

__all__ = [
    "HarvestJobExtractor",
    "HarvestJobInfo",
    "HttpHarvestJobExtractor",
    "correlate",
    "extract_job_id",
    "extract_job_id_from_filename",
]
