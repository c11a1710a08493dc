from __future__ import annotations

from pathlib import Path

import pytest

from netarchive_research.cdx.codec import read_cdx_file
from netarchive_research.cdx.extractor import CdxServerExtractor
from netarchive_research.errors import InvalidArgumentError, OutputExistsError
from netarchive_research.export import OutputFormat
from netarchive_research.extract_metadata import MetadataExtractor
from netarchive_research.harvestdb.jobs import HarvestJobInfo
from netarchive_research.identifiers import InputFormat

CDX_BODY = "\n".join(
    [
        " CDX a A b m s k r g V",
        "http://example.org/ example.org/ 20120301101010 text/html 200 AAAA - 42-1-x.warc 100",
        "http://example.org/ example.org/ 20120402235239 text/html 200 BBBB - 42-1-x.warc 200",
        "http://example.org/ example.org/ 20130101000000 text/html 200 CCCC - 43-1-y.warc 300",
    ]
)


class _Resp:
    def __init__(self, text: str, status_code: int = 200):
        self.status_code = status_code
        self.text = text


class _Session:
    def __init__(self, body: str):
        self.body = body
        self.calls = 0

    def get(self, url, params=None, timeout=None):
        self.calls += 1
        return _Resp(self.body)


class _Jobs:
    def __init__(self, jobs: dict):
        self.jobs = jobs

    def extract_job(self, job_id):
        return self.jobs.get(job_id)


class _RecordingCdx:
    def __init__(self):
        self.calls = 0

    def retrieve_cdx_entries(self, wids):
        self.calls += 1
        return []

    def retrieve_cdx_for_interval(self, interval):
        self.calls += 1
        return []


def _cdx(session: _Session) -> CdxServerExtractor:
    return CdxServerExtractor("http://cdx.example/cdx", session=session)


def test_wid_to_metadata_csv_with_job(tmp_path: Path):
    wids = tmp_path / "wids.csv"
    wids.write_text("X;1;http://example.org/;2012-04-02T23:52:39Z;;\n", encoding="utf-8")
    out = tmp_path / "metadata.csv"

    ex = MetadataExtractor(
        wids,
        _cdx(_Session(CDX_BODY)),
        _Jobs({42: HarvestJobInfo(42, "FOCUSED", "test")}),
        out,
    )
    assert ex.extract_metadata(InputFormat.WID, OutputFormat.CSV) == 1

    lines = out.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert lines[1].startswith("http://example.org/;example.org/;20120402235239;")
    assert lines[1].endswith(";42;FOCUSED;test")


def test_url_interval_to_cdx_export(tmp_path: Path):
    urls = tmp_path / "urls.csv"
    urls.write_text("W;http://example.org/;2012-01-01;2012-12-31\n", encoding="utf-8")
    out = tmp_path / "extract.cdx"

    ex = MetadataExtractor(urls, _cdx(_Session(CDX_BODY)), None, out)
    assert ex.extract_metadata(InputFormat.URL_INTERVAL, OutputFormat.CDX) == 2

    assert [e.digest for e in read_cdx_file(out)] == ["AAAA", "BBBB"]


def test_url_intervals_without_jobs_keep_input_order(tmp_path: Path):
    urls = tmp_path / "urls.csv"
    urls.write_text(
        "W;http://example.org/;2013-01-01;\nW;http://example.org/;;2012-03-31\n",
        encoding="utf-8",
    )
    out = tmp_path / "metadata.csv"

    ex = MetadataExtractor(urls, _cdx(_Session(CDX_BODY)), None, out, max_workers=4)
    assert ex.extract_metadata(InputFormat.URL_INTERVAL, OutputFormat.CSV) == 2

    rows = out.read_text(encoding="utf-8").splitlines()[1:]
    assert [r.split(";")[5] for r in rows] == ["CCCC", "AAAA"]
    assert all(r.endswith(";N/A;N/A;N/A") for r in rows)


def test_cdx_export_with_job_extraction_is_rejected_before_io(tmp_path: Path):
    cdx = _RecordingCdx()
    out = tmp_path / "extract.cdx"

    ex = MetadataExtractor(tmp_path / "missing.csv", cdx, _Jobs({}), out)
    with pytest.raises(InvalidArgumentError, match="CDX format"):
        ex.extract_metadata(InputFormat.WID, OutputFormat.CDX)

    assert cdx.calls == 0
    assert not out.exists()


def test_existing_output_is_rejected_before_lookups(tmp_path: Path):
    wids = tmp_path / "wids.csv"
    wids.write_text("X;1;http://example.org/;2012-04-02T23:52:39Z;;\n", encoding="utf-8")
    out = tmp_path / "metadata.csv"
    out.write_text("keep", encoding="utf-8")
    session = _Session(CDX_BODY)

    with pytest.raises(OutputExistsError):
        MetadataExtractor(wids, _cdx(session), None, out).extract_metadata(InputFormat.WID, OutputFormat.CSV)
    assert session.calls == 0
    assert out.read_text(encoding="utf-8") == "keep"


def test_missing_input_file(tmp_path: Path):
    ex = MetadataExtractor(tmp_path / "missing.csv", _RecordingCdx(), None, tmp_path / "out.csv")
    with pytest.raises(InvalidArgumentError):
        ex.extract_metadata(InputFormat.WID, OutputFormat.CSV)
