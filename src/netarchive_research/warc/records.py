"""Reading and building WARC/1.0 records.

Records are written one per gzip member, so a `.warc.gz` file can be read from
any record offset and a truncated file stays valid up to its last member.
"""

from __future__ import annotations

import base64
import gzip
import hashlib
import io
import uuid
import zlib
from datetime import datetime, timezone
from http import HTTPStatus
from typing import BinaryIO, Dict, List, Optional, Tuple

from requests.structures import CaseInsensitiveDict

from ..cdx.entry import CDXEntry
from ..dateutils import millis_to_datetime

WARC_VERSION = "WARC/1.0"
CRLF = b"\r\n"

_GZIP_MAGIC = b"\x1f\x8b"


def parse_headers_block(text: str) -> Tuple[str, CaseInsensitiveDict]:
    """Split a WARC header block into its version line and named fields.

    Field names keep their case but are looked up case-insensitively. Lines
    starting with whitespace continue the value of the previous field.
    """

    headers: CaseInsensitiveDict = CaseInsensitiveDict()
    lines = [ln.rstrip("\r") for ln in text.split("\n")]
    lines = [ln for ln in lines if ln.strip()]
    if not lines:
        return "", headers

    name: Optional[str] = None
    for ln in lines[1:]:
        if ln[0] in " \t" and name is not None:
            headers[name] = f"{headers[name]} {ln.strip()}"
            continue
        if ":" not in ln:
            continue
        k, v = ln.split(":", 1)
        name = k.strip()
        headers[name] = v.strip()
    return lines[0].strip(), headers


def _split_record(data: bytes) -> Tuple[CaseInsensitiveDict, bytes]:
    sep = data.find(b"\r\n\r\n")
    sep_len = 4
    if sep == -1:
        sep = data.find(b"\n\n")
        sep_len = 2
    if sep == -1:
        raise ValueError("missing WARC header separator")

    version, headers = parse_headers_block(data[:sep].decode("utf-8", errors="replace"))
    if not version.startswith("WARC/"):
        raise ValueError(f"not a WARC record: {version!r}")

    rest = data[sep + sep_len :]
    try:
        length = int(headers.get("content-length", ""))
    except ValueError:
        raise ValueError("WARC record without a valid Content-Length") from None
    if len(rest) < length:
        raise ValueError(f"truncated WARC record, expected {length} bytes, got {len(rest)}")
    return headers, rest[:length]


def _read_gzip_member(fh: BinaryIO, chunk_bytes: int = 64 * 1024) -> bytes:
    d = zlib.decompressobj(16 + zlib.MAX_WBITS)
    out = bytearray()
    while not d.eof:
        chunk = fh.read(chunk_bytes)
        if not chunk:
            raise ValueError("truncated gzip member")
        out.extend(d.decompress(chunk))
    # Leave fh at the start of the next member.
    if d.unused_data:
        fh.seek(-len(d.unused_data), io.SEEK_CUR)
    return bytes(out)


def _read_plain_record(fh: BinaryIO) -> bytes:
    head = bytearray()
    while True:
        line = fh.readline()
        if not line:
            raise ValueError("truncated WARC header")
        head.extend(line)
        if line in (b"\r\n", b"\n") and len(head) > len(line):
            break
    _version, headers = parse_headers_block(head.decode("utf-8", errors="replace"))
    try:
        length = int(headers.get("content-length", ""))
    except ValueError:
        raise ValueError("WARC record without a valid Content-Length") from None
    return bytes(head) + fh.read(length)


def read_warc_record(fh: BinaryIO) -> Tuple[CaseInsensitiveDict, bytes]:
    """Read the record starting at the current position of fh.

    Handles both gzip-per-record and uncompressed WARC files. Returns the WARC
    headers and the record block.
    """

    start = fh.tell()
    magic = fh.read(2)
    fh.seek(start)
    if magic == _GZIP_MAGIC:
        return _split_record(_read_gzip_member(fh))
    return _split_record(_read_plain_record(fh))


def sha1_digest(data: bytes) -> str:
    return "sha1:" + base64.b32encode(hashlib.sha1(data).digest()).decode("ascii")


def warc_date(ms: Optional[int] = None) -> str:
    dt = millis_to_datetime(ms) if ms is not None else datetime.now(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


def new_record_id() -> str:
    return f"<urn:uuid:{uuid.uuid4()}>"


def build_record(headers: List[Tuple[str, str]], block: bytes) -> bytes:
    """Serialize one uncompressed WARC record; Content-Length is appended here."""

    lines = [WARC_VERSION] + [f"{k}: {v}" for k, v in headers] + [f"Content-Length: {len(block)}"]
    head = "\r\n".join(lines).encode("utf-8") + CRLF + CRLF
    return head + block + CRLF + CRLF


def gzip_member(record: bytes) -> bytes:
    return gzip.compress(record)


def http_response_block(entry: CDXEntry, payload: bytes) -> bytes:
    """The HTTP response of the capture.

    Payloads that already start with an HTTP status line are kept as they are;
    otherwise a status line and Content-Type are built from the CDX entry.
    """

    if payload.startswith(b"HTTP/"):
        return payload

    status = entry.status_code or 200
    try:
        reason = HTTPStatus(status).phrase
    except ValueError:
        reason = ""
    head = [f"HTTP/1.1 {status} {reason}".rstrip()]
    if entry.content_type:
        head.append(f"Content-Type: {entry.content_type}")
    head.append(f"Content-Length: {len(payload)}")
    return ("\r\n".join(head) + "\r\n\r\n").encode("latin-1", errors="replace") + payload


def payload_digest(entry: CDXEntry) -> Optional[str]:
    if not entry.digest:
        return None
    return entry.digest if ":" in entry.digest else "sha1:" + entry.digest


def response_record(entry: CDXEntry, payload: bytes) -> bytes:
    block = http_response_block(entry, payload)
    headers: List[Tuple[str, str]] = [
        ("WARC-Type", "response"),
        ("WARC-Record-ID", new_record_id()),
        ("WARC-Date", warc_date(entry.date)),
        ("WARC-Target-URI", entry.url),
    ]
    digest = payload_digest(entry)
    if digest:
        headers.append(("WARC-Payload-Digest", digest))
    headers.append(("WARC-Block-Digest", sha1_digest(block)))
    if entry.content_type:
        headers.append(("WARC-Identified-Payload-Type", entry.content_type))
    headers.append(("Content-Type", "application/http; msgtype=response"))
    return build_record(headers, block)


def warcinfo_record(filename: str, fields: Dict[str, str]) -> bytes:
    block = "".join(f"{k}: {v}\r\n" for k, v in fields.items()).encode("utf-8")
    headers = [
        ("WARC-Type", "warcinfo"),
        ("WARC-Record-ID", new_record_id()),
        ("WARC-Date", warc_date()),
        ("WARC-Filename", filename),
        ("Content-Type", "application/warc-fields"),
    ]
    return build_record(headers, block)
