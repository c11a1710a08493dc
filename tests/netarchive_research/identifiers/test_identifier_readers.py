from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from netarchive_research.errors import InvalidArgumentError
from netarchive_research.identifiers import (
    InputFormat,
    JobOffsetWID,
    UrlDateWID,
    UrlInterval,
    parse_wid_row,
    read_identifiers,
    read_url_intervals,
    read_wids,
)


def _write(tmp_path: Path, name: str, text: str) -> Path:
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_read_wids_both_variants(tmp_path: Path):
    p = _write(
        tmp_path,
        "wids.csv",
        "discriminator;#;url;date;location;filename\n"
        "X;1;http://example.org/;2012-04-02T23:52:39Z;;\n"
        "W;2;http://example.org/a;;4567;42-117-20120402235000-00000-sb.warc\n",
    )

    wids = read_wids(p)
    assert wids == [
        UrlDateWID("http://example.org/", datetime(2012, 4, 2, 23, 52, 39, tzinfo=timezone.utc)),
        JobOffsetWID(job_id=42, file_offset=4567, url="http://example.org/a"),
    ]


def test_unknown_discriminator_is_skipped(tmp_path: Path, caplog):
    p = _write(
        tmp_path,
        "wids.csv",
        "Q;1;http://example.org/;2012-04-02T23:52:39Z;;\n"
        "X;2;http://example.org/b;2012-04-02T23:52:39Z;;\n",
    )

    wids = read_wids(p)
    assert [w.url for w in wids] == ["http://example.org/b"]
    assert "unrecognized discriminator" in caplog.text


def test_invalid_wid_rows_are_rejected():
    with pytest.raises(ValueError):
        parse_wid_row(["X", "1", "http://example.org/", "yesterday", "", ""])
    with pytest.raises(ValueError):
        parse_wid_row(["X", "1", "", "2012-04-02T23:52:39Z", "", ""])
    with pytest.raises(ValueError):
        parse_wid_row(["W", "1", "", "", "12", "no-job-id.warc"])
    with pytest.raises(ValueError):
        parse_wid_row(["W", "1", "", "", "-5", "42-1-x.warc"])
    with pytest.raises(ValueError):
        parse_wid_row(["W", "1", "", "", "", "42-1-x.warc"])


def test_wid_variants_validate_fields():
    with pytest.raises(ValueError):
        JobOffsetWID(job_id=0, file_offset=1)
    with pytest.raises(ValueError):
        JobOffsetWID(job_id=True, file_offset=1)
    with pytest.raises(ValueError):
        UrlDateWID("", datetime(2012, 1, 1, tzinfo=timezone.utc))

    naive = UrlDateWID("http://example.org/", datetime(2012, 1, 1, 10, 0, 0, 500000))
    assert naive.timestamp == datetime(2012, 1, 1, 10, tzinfo=timezone.utc)


def test_empty_file_gives_empty_list(tmp_path: Path):
    assert read_wids(_write(tmp_path, "empty.csv", "")) == []
    assert read_url_intervals(_write(tmp_path, "empty2.csv", "\n\n")) == []


def test_header_only_file_gives_empty_list(tmp_path: Path):
    wids = _write(tmp_path, "wids.csv", "discriminator;#;url;date;location;filename\n")
    intervals = _write(tmp_path, "urls.csv", "discriminator;url;earliestDate;latestDate\n")

    assert read_wids(wids) == []
    assert read_url_intervals(intervals) == []


def test_non_utf8_row_is_skipped_and_rest_is_read(tmp_path: Path, caplog):
    p = tmp_path / "wids.csv"
    p.write_bytes(
        b"\xef\xbb\xbfX;1;http://example.org/;2012-04-02T23:52:39Z;;\r\n"
        b"X;2;http://example.dk/bl\xe5b\xe6r;2012-04-02T23:52:39Z;;\r\n"
        b"X;3;http://example.org/b;2012-04-02T23:52:40Z;;\r\n"
    )

    wids = read_wids(p)
    assert [w.url for w in wids] == ["http://example.org/", "http://example.org/b"]
    assert "wids.csv:2: not valid UTF-8" in caplog.text


def test_non_utf8_interval_row_is_skipped(tmp_path: Path):
    p = tmp_path / "urls.csv"
    p.write_bytes(b"W;http://example.org/;;\nW;http://example.dk/bl\xe5b\xe6r;;\nW;http://example.org/b;;\n")

    assert [i.url for i in read_url_intervals(p)] == ["http://example.org/", "http://example.org/b"]


def test_read_url_intervals(tmp_path: Path):
    p = _write(
        tmp_path,
        "urls.csv",
        "W;http://example.org/;2012-01-01;2012-12-31\n"
        "W;http://example.org/open;;\n"
        "W;http://example.org/half;2012-01-01T00:00:00Z\n",
    )

    intervals = read_url_intervals(p)
    assert intervals[0] == UrlInterval(
        "http://example.org/",
        earliest=datetime(2012, 1, 1, tzinfo=timezone.utc),
        latest=datetime(2012, 12, 31, tzinfo=timezone.utc),
    )
    assert intervals[1] == UrlInterval("http://example.org/open")
    assert intervals[2].earliest == datetime(2012, 1, 1, tzinfo=timezone.utc)
    assert intervals[2].latest is None


def test_inverted_interval_is_skipped(tmp_path: Path, caplog):
    p = _write(
        tmp_path,
        "urls.csv",
        "W;http://example.org/;2013-01-01;2012-01-01\nW;http://example.org/ok;;\n",
    )

    intervals = read_url_intervals(p)
    assert [i.url for i in intervals] == ["http://example.org/ok"]
    assert "is after latest date" in caplog.text


def test_unparseable_interval_bound_is_open(tmp_path: Path):
    p = _write(tmp_path, "urls.csv", "W;http://example.org/;sometime;2012-12-31\n")

    [interval] = read_url_intervals(p)
    assert interval.earliest is None
    assert interval.latest == datetime(2012, 12, 31, tzinfo=timezone.utc)


def test_input_format_parse():
    assert InputFormat.parse("wid") is InputFormat.WID
    assert InputFormat.parse("URL") is InputFormat.URL_INTERVAL
    with pytest.raises(InvalidArgumentError):
        InputFormat.parse("json")


def test_read_identifiers_dispatches_on_format(tmp_path: Path):
    p = _write(tmp_path, "urls.csv", "W;http://example.org/;;\n")
    assert read_identifiers(p, InputFormat.URL_INTERVAL) == [UrlInterval("http://example.org/")]
