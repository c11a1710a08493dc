"""netarchive research CLI.

Examples:
    python -m netarchive_research.cli --help
    nark-research extract-metadata wids.csv WID --cdx-server-url http://cdx.example/cdx --out metadata.csv
    nark-research extract-metadata urls.csv URL --extract-jobs no --output-format cdx --out extract.cdx
    nark-research warc-extract extract.cdx out/ --archive-url http://archive.example/get
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .cdx.extractor import CdxServerExtractor
from .errors import InvalidArgumentError, OutputExistsError, ResearchError, check_not_empty
from .export import OutputFormat
from .extract_metadata import MetadataExtractor, check_output_options
from .harvestdb.jobs import HttpHarvestJobExtractor
from .identifiers import InputFormat
from .settings import ResearchSettings
from .warc.archive import HttpArchiveExtractor, LocalArchiveExtractor
from .warc_extract import extract_warc

logger = logging.getLogger(__name__)


def parse_yes_no(arg: str) -> bool:
    """'y'/'yes' or 'n'/'no', case-insensitive; otherwise the first letter decides."""

    s = check_not_empty(arg, "harvest job extraction flag").strip()
    if s.lower() in ("y", "yes"):
        return True
    if s.lower() in ("n", "no"):
        return False
    logger.warning("Unexpected value %r for whether to extract harvest jobs; trying prefix 'y' or 'n'", s)
    if s.startswith("y"):
        return True
    if s.startswith("n"):
        return False
    raise InvalidArgumentError(
        "Cannot decipher argument for whether or not to extract the harvest job. Must be either 'yes' or 'no'."
    )


def _load_settings(args: argparse.Namespace) -> ResearchSettings:
    base = ResearchSettings.from_json(args.config) if args.config else ResearchSettings.from_env()
    return base.with_overrides(
        http_timeout_s=args.timeout_s,
        max_workers=args.max_workers,
        log_level=args.log_level,
    )


def _cmd_extract_metadata(args: argparse.Namespace, settings: ResearchSettings) -> int:
    settings = settings.with_overrides(
        cdx_server_url=args.cdx_server_url,
        harvest_job_url=args.harvest_job_url,
    )
    input_format = InputFormat.parse(args.input_format)
    output_format = OutputFormat.parse(args.output_format)
    extract_jobs = parse_yes_no(args.extract_jobs)

    if not settings.cdx_server_url:
        raise InvalidArgumentError("No CDX server url given (--cdx-server-url or NARK_CDX_SERVER_URL)")

    job_extractor = None
    if extract_jobs:
        if not settings.harvest_job_url:
            raise InvalidArgumentError(
                "Harvest job extraction requires a job service url (--harvest-job-url or NARK_HARVEST_JOB_URL)"
            )
        logger.debug("Using %s for extracting harvest job info", settings.harvest_job_url)
        job_extractor = HttpHarvestJobExtractor(settings.harvest_job_url, timeout_s=settings.http_timeout_s)
    check_output_options(output_format, job_extractor)

    cdx_extractor = CdxServerExtractor(
        settings.cdx_server_url,
        timeout_s=settings.http_timeout_s,
        max_workers=settings.max_workers,
    )
    extractor = MetadataExtractor(
        args.csv_file,
        cdx_extractor,
        job_extractor,
        args.out,
        max_workers=settings.max_workers,
    )
    n = extractor.extract_metadata(input_format, output_format)
    logger.info("Wrote %d entries to %s", n, args.out)
    return 0


def _cmd_warc_extract(args: argparse.Namespace, settings: ResearchSettings) -> int:
    settings = settings.with_overrides(
        archive_url=args.archive_url,
        archive_dir=args.archive_dir,
        warc_max_file_bytes=args.max_file_bytes,
    )
    if settings.archive_dir is not None:
        extractor = LocalArchiveExtractor(settings.archive_dir)
    elif settings.archive_url:
        extractor = HttpArchiveExtractor(settings.archive_url, timeout_s=settings.http_timeout_s)
    else:
        raise InvalidArgumentError(
            "No archive given (--archive-url / NARK_ARCHIVE_URL or --archive-dir / NARK_ARCHIVE_DIR)"
        )

    res = extract_warc(
        args.cdx_file,
        args.out_dir,
        extractor,
        max_file_bytes=settings.warc_max_file_bytes,
        max_workers=settings.max_workers,
    )
    logger.info(
        "Packed %d records into %d files (%d skipped, %d duplicates)",
        res.packed,
        len(res.files),
        res.skipped,
        res.duplicates,
    )
    return 0


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", type=Path, default=None, help="JSON settings file (environment still wins)")
    p.add_argument("--timeout-s", type=float, default=None, help="Per-request timeout (NARK_HTTP_TIMEOUT_S)")
    p.add_argument("--max-workers", type=int, default=None, help="Concurrent remote lookups (NARK_MAX_WORKERS)")
    p.add_argument("--log-level", type=str, default=None, help="Logging level (NARK_LOG_LEVEL)")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="nark-research", description="Netarchive research tools")
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_meta = sub.add_parser("extract-metadata", help="Extract CDX entries and harvest job info for a CSV file")
    ap_meta.add_argument("csv_file", type=Path, help="NAS WID file or URL interval file")
    ap_meta.add_argument("input_format", help="Format of the CSV file: 'WID' or 'URL'")
    ap_meta.add_argument("--cdx-server-url", default=None, help="Base url of the CDX server (NARK_CDX_SERVER_URL)")
    ap_meta.add_argument("--extract-jobs", default="no", help="Extract harvest job info: 'yes' or 'no' (default: no)")
    ap_meta.add_argument(
        "--harvest-job-url", default=None, help="Base url of the harvest job service (NARK_HARVEST_JOB_URL)"
    )
    ap_meta.add_argument("--output-format", default="csv", help="'csv', 'cdx' or 'parquet' (default: csv)")
    ap_meta.add_argument("--out", type=Path, required=True, help="Output file; must not exist")
    _add_common(ap_meta)
    ap_meta.set_defaults(func=_cmd_extract_metadata)

    ap_warc = sub.add_parser("warc-extract", help="Extract the WARC records for the entries of a CDX file")
    ap_warc.add_argument("cdx_file", type=Path, help="CDX file")
    ap_warc.add_argument("out_dir", type=Path, nargs="?", default=Path("."), help="Output directory (default: .)")
    ap_warc.add_argument("--archive-url", default=None, help="Base url of the archive repository (NARK_ARCHIVE_URL)")
    ap_warc.add_argument("--archive-dir", type=Path, default=None, help="Local WARC directory (NARK_ARCHIVE_DIR)")
    ap_warc.add_argument(
        "--max-file-bytes", type=int, default=None, help="Rotate output files at this size (NARK_WARC_MAX_FILE_BYTES)"
    )
    _add_common(ap_warc)
    ap_warc.set_defaults(func=_cmd_warc_extract)

    return ap


def main(argv: list[str] | None = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    try:
        settings = _load_settings(args)
    except InvalidArgumentError as e:
        sys.stderr.write(f"{e}\n")
        return 2

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        stream=sys.stderr,
    )

    try:
        rc = int(args.func(args, settings))
    except (InvalidArgumentError, OutputExistsError) as e:
        logger.error("%s", e)
        return 2
    except (ResearchError, OSError) as e:
        logger.error("Failed: %s", e)
        return 1

    sys.stdout.write("Finished\n")
    return rc


if __name__ == "__main__":
    raise SystemExit(main())
