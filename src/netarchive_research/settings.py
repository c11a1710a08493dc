"""Runtime configuration.

Values come from the environment (NARK_* variables), optionally from a JSON
file with the same keys in lower case, and are overridden by CLI flags.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import InvalidArgumentError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0
DEFAULT_MAX_WORKERS = 1
DEFAULT_WARC_MAX_FILE_BYTES = 1_000_000_000

ENV_PREFIX = "NARK_"


@dataclass(frozen=True)
class ResearchSettings:
    cdx_server_url: Optional[str] = None
    harvest_job_url: Optional[str] = None
    archive_url: Optional[str] = None
    archive_dir: Optional[Path] = None
    http_timeout_s: float = DEFAULT_TIMEOUT_S
    max_workers: int = DEFAULT_MAX_WORKERS
    warc_max_file_bytes: int = DEFAULT_WARC_MAX_FILE_BYTES
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.archive_dir is not None and not isinstance(self.archive_dir, Path):
            object.__setattr__(self, "archive_dir", Path(self.archive_dir).expanduser())
        try:
            object.__setattr__(self, "http_timeout_s", float(self.http_timeout_s))
            object.__setattr__(self, "max_workers", int(self.max_workers))
            object.__setattr__(self, "warc_max_file_bytes", int(self.warc_max_file_bytes))
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(f"Invalid setting: {e}") from e
        if self.http_timeout_s <= 0:
            raise InvalidArgumentError("http_timeout_s must be positive")
        if self.max_workers < 1:
            raise InvalidArgumentError("max_workers must be at least 1")
        if self.warc_max_file_bytes <= 0:
            raise InvalidArgumentError("warc_max_file_bytes must be positive")
        object.__setattr__(self, "log_level", str(self.log_level or "INFO").upper())

    @classmethod
    def _from_mapping(cls, data: Mapping[str, Any]) -> "ResearchSettings":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning("Ignoring unknown settings: %s", ", ".join(sorted(unknown)))
        return cls(**{k: v for k, v in data.items() if k in known and v not in (None, "")})

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ResearchSettings":
        return cls._from_mapping(_env_values(environ))

    @classmethod
    def from_json(cls, path: Path | str, environ: Optional[Mapping[str, str]] = None) -> "ResearchSettings":
        """Settings from a JSON file; environment variables still take precedence."""

        p = Path(path)
        try:
            with p.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise InvalidArgumentError(f"Cannot read settings file '{p}': {e}") from e
        if not isinstance(data, dict):
            raise InvalidArgumentError(f"Settings file '{p}' must contain a JSON object")
        logger.info("Loading configuration from %s", p)
        merged = dict(data)
        merged.update(_env_values(environ))
        return cls._from_mapping(merged)

    def with_overrides(self, **overrides: Any) -> "ResearchSettings":
        """Copy with every non-None override applied."""

        values = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **values) if values else self


def _env_values(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    env = os.environ if environ is None else environ
    out: Dict[str, str] = {}
    for f in fields(ResearchSettings):
        raw = env.get(ENV_PREFIX + f.name.upper())
        if raw is not None and raw.strip():
            out[f.name] = raw.strip()
    return out
