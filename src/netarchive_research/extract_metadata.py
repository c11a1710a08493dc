"""Extracts metadata for the entries of a NAS WID file or a URL interval file.

The CDX entries for the identifiers are retrieved from the CDX server and
written either as a classical CDX file, or as a metadata CSV (or Parquet) file
combining each CDX entry with the harvest job that produced it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from .cdx.codec import write_cdx_file
from .cdx.entry import DEFAULT_CDX_FORMAT, CDXEntry
from .cdx.extractor import CDXExtractor
from .errors import InvalidArgumentError, OutputExistsError, check_is_file
from .export import OutputFormat
from .export.metadata import MetadataRow, write_metadata_csv, write_metadata_parquet
from .harvestdb.jobs import HarvestJobExtractor, correlate
from .identifiers import InputFormat, read_url_intervals, read_wids
from .workers import ordered_map

logger = logging.getLogger(__name__)


def check_output_options(output_format: OutputFormat, job_extractor: Optional[HarvestJobExtractor]) -> None:
    if output_format is OutputFormat.CDX and job_extractor is not None:
        raise InvalidArgumentError(
            "Cannot export in CDX format when also extracting the harvest job info. "
            "Either turn off the harvest job extraction or change output format."
        )


class MetadataExtractor:
    def __init__(
        self,
        input_file: Path | str,
        cdx_extractor: CDXExtractor,
        job_extractor: Optional[HarvestJobExtractor],
        out_file: Path | str,
        *,
        max_workers: int = 1,
    ) -> None:
        self.input_file = Path(input_file)
        self.cdx_extractor = cdx_extractor
        self.job_extractor = job_extractor
        self.out_file = Path(out_file)
        self.max_workers = max(1, int(max_workers))

    def extract_cdx_for_file_entries(self, input_format: InputFormat) -> List[CDXEntry]:
        if input_format is InputFormat.WID:
            return self.cdx_extractor.retrieve_cdx_entries(read_wids(self.input_file))

        intervals = read_url_intervals(self.input_file)
        out: List[CDXEntry] = []
        for entries in ordered_map(self.cdx_extractor.retrieve_cdx_for_interval, intervals, self.max_workers):
            out.extend(entries)
        logger.info("Found %d CDX entries for %d URL intervals", len(out), len(intervals))
        return out

    def correlate_entries(self, entries: List[CDXEntry]) -> List[MetadataRow]:
        jobs = ordered_map(lambda e: correlate(e, self.job_extractor), entries, self.max_workers)
        return list(zip(entries, jobs))

    def extract_metadata(self, input_format: InputFormat, output_format: OutputFormat) -> int:
        """Run the extraction; returns the number of entries written.

        Configuration errors and an existing output file are raised before any
        input is read or any remote call is made.
        """

        check_output_options(output_format, self.job_extractor)
        if self.out_file.exists():
            raise OutputExistsError(self.out_file)
        check_is_file(self.input_file, "CSV file")

        entries = self.extract_cdx_for_file_entries(input_format)

        if output_format is OutputFormat.CDX:
            return write_cdx_file(self.out_file, entries, DEFAULT_CDX_FORMAT)

        rows = self.correlate_entries(entries)
        if output_format is OutputFormat.PARQUET:
            return write_metadata_parquet(self.out_file, rows)
        return write_metadata_csv(self.out_file, rows)
