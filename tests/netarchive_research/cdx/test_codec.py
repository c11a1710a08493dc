from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from netarchive_research.cdx.codec import (
    format_header,
    format_line,
    iter_cdx_entries,
    parse_line,
    read_cdx_file,
    write_cdx_file,
)
from netarchive_research.cdx.entry import DEFAULT_CDX_FORMAT, CDXFormat
from netarchive_research.errors import CDXFormatError, CDXParseError, OutputExistsError

LINE = (
    "http://example.org/ example.org/ 20120402235239 text/html 200 "
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567 - 42-117-20120402235000-00000-sb.warc 1234"
)


def test_parse_line_default_format():
    e = parse_line(LINE)
    assert e.url == "http://example.org/"
    assert e.url_norm == "example.org/"
    assert e.content_type == "text/html"
    assert e.status_code == 200
    assert e.digest == "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
    assert e.redirect is None
    assert e.filename == "42-117-20120402235000-00000-sb.warc"
    assert e.offset == 1234


def test_format_line_is_inverse_of_parse_line(make_entry):
    e = make_entry(status_code=None, content_type=None, redirect="http://example.org/moved")
    line = format_line(e)
    assert line.split()[3] == "-"
    assert line.split()[4] == "-"
    assert parse_line(line) == e
    assert format_line(parse_line(LINE)) == LINE


def test_format_header():
    assert format_header(DEFAULT_CDX_FORMAT) == " CDX a A b m s k r g V"
    assert CDXFormat.parse(" CDX a b g V") == CDXFormat(("a", "b", "g", "V"))


def test_parse_line_rejects_malformed():
    with pytest.raises(CDXParseError):
        parse_line("http://example.org/ 20120402235239")
    with pytest.raises(CDXParseError):
        parse_line(LINE.replace("20120402235239", "2012"))
    with pytest.raises(CDXParseError):
        parse_line(LINE.replace(" 1234", " abc"))
    with pytest.raises(CDXParseError):
        parse_line(LINE.replace(" 1234", " -"))


def test_format_line_rejects_missing_required_field_and_whitespace(make_entry):
    with pytest.raises(CDXFormatError):
        format_line(make_entry(filename=""))
    with pytest.raises(CDXFormatError):
        format_line(make_entry(url="http://example.org/a b"))


def test_iter_cdx_entries_honours_header_and_skips_bad_lines(caplog):
    lines = [
        " CDX a b g V",
        "http://example.org/ 20120402235239 1-2-3.warc 10",
        "garbage",
        "",
        "http://example.org/b 20120402235240 1-2-3.warc 20",
    ]
    entries = list(iter_cdx_entries(lines, source="test"))
    assert [e.offset for e in entries] == [10, 20]
    assert entries[0].content_type is None
    assert "Skipping CDX line test:3" in caplog.text


def test_write_and_read_cdx_file(tmp_path: Path, make_entry):
    entries = [make_entry(offset=1), make_entry(url="http://example.org/b", offset=2)]
    out = tmp_path / "out.cdx"

    assert write_cdx_file(out, entries) == 2
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[0] == " CDX a A b m s k r g V"
    assert len(lines) == 3
    assert read_cdx_file(out) == entries
    assert not (tmp_path / "out.cdx.part").exists()


def test_read_cdx_file_skips_non_utf8_line(tmp_path: Path, caplog):
    p = tmp_path / "in.cdx"
    p.write_bytes(
        b" CDX a A b m s k r g V\n"
        + LINE.encode()
        + b"\nhttp://example.dk/bl\xe5b\xe6r - 20120402235239 text/html 200 - - 42-1-x.warc 5\n"
        + LINE.replace(" 1234", " 99").encode()
        + b"\n"
    )

    entries = read_cdx_file(p)
    assert [e.offset for e in entries] == [1234, 99]
    assert "in.cdx:3: not valid UTF-8" in caplog.text


def test_sub_second_date_is_truncated(make_entry):
    e = make_entry()
    later = dataclasses.replace(e, date=e.date + 500)

    assert later.date == e.date
    assert later.date % 1000 == 0
    assert parse_line(format_line(later)) == later


def test_write_cdx_file_refuses_existing_target(tmp_path: Path, make_entry):
    out = tmp_path / "out.cdx"
    out.write_text("keep", encoding="utf-8")

    with pytest.raises(OutputExistsError):
        write_cdx_file(out, [make_entry()])
    assert out.read_text(encoding="utf-8") == "keep"


def test_write_cdx_file_invalid_entry_leaves_no_file(tmp_path: Path, make_entry):
    out = tmp_path / "out.cdx"
    with pytest.raises(CDXFormatError):
        write_cdx_file(out, [make_entry(), make_entry(filename="")])
    assert not out.exists()
