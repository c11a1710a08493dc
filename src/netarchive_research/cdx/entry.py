from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from ..errors import CDXParseError


@dataclass(frozen=True)
class CDXEntry:
    """One capture as recorded by a CDX index.

    `date` is the capture time in epoch milliseconds (UTC), truncated to whole
    seconds. Optional text fields are None when the index has no value (`-` on disk).
    """

    url: str
    url_norm: Optional[str]
    date: int
    content_type: Optional[str]
    status_code: Optional[int]
    digest: Optional[str]
    redirect: Optional[str]
    filename: str
    offset: int

    def __post_init__(self) -> None:
        # CDX dates have second resolution
        object.__setattr__(self, "date", int(self.date) - int(self.date) % 1000)
        for name in ("url_norm", "content_type", "digest", "redirect"):
            if getattr(self, name) == "":
                object.__setattr__(self, name, None)


# CDX field letters and the CDXEntry attribute each one maps to.
CDX_FIELDS: Dict[str, str] = {
    "a": "url",
    "A": "url_norm",
    "b": "date",
    "m": "content_type",
    "s": "status_code",
    "k": "digest",
    "r": "redirect",
    "g": "filename",
    "V": "offset",
}

REQUIRED_FIELDS = frozenset({"url", "date", "filename", "offset"})


@dataclass(frozen=True)
class CDXFormat:
    """Ordered field letters of a CDX file, as declared by its ` CDX ...` header."""

    fields: Tuple[str, ...]

    @classmethod
    def parse(cls, spec: str) -> "CDXFormat":
        """Parse either `a A b ...` or a full header line ` CDX a A b ...`."""

        parts = (spec or "").split()
        if parts and parts[0] == "CDX":
            parts = parts[1:]
        if not parts:
            raise CDXParseError("empty CDX format", line=spec)
        return cls(tuple(parts))

    @classmethod
    def of(cls, letters: Iterable[str]) -> "CDXFormat":
        return cls(tuple(letters))

    @property
    def header(self) -> str:
        return " CDX " + " ".join(self.fields)

    def __str__(self) -> str:
        return " ".join(self.fields)


DEFAULT_CDX_FORMAT = CDXFormat.parse("a A b m s k r g V")
