# === FILE: site_mirror/config.py ===
"""
Loading and validation of the SiteMirror run configuration.
The schema is described with Pydantic; YAML and JSON files are accepted.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

__all__ = ["MirrorConfig", "load_config", "build_config"]


class MirrorConfig(BaseModel):
    """Configuration of one mirroring run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    root_url: HttpUrl = Field(..., description="Crawl origin and mirror scope.")
    output_directory: Path = Field(Path("DownloadOutput"), description="Mirror destination.")
    max_parallel_activities: int = Field(8, ge=1, description="Worker tasks per phase.")
    max_concurrent_requests: int = Field(16, ge=1, description="Simultaneous requests across all workers.")
    max_retries: int = Field(5, ge=1, description="Attempts per request; only timeouts are retried.")
    per_request_timeout: float = Field(10.0, gt=0, description="Timeout of one attempt (seconds).")
    retry_backoff: float = Field(0.5, ge=0, description="Base delay of the exponential backoff (seconds).")
    user_agent: str = Field("SiteMirrorBot/1.0", min_length=1, description="User-Agent header.")
    progress_interval: float = Field(0.1, gt=0, description="Progress polling interval (seconds).")
    quiescence_samples: int = Field(3, ge=1, description="Stable samples required to end discovery.")
    rewrite_links: bool = Field(False, description="Rewrite in-site links to local relative paths.")

    @field_validator("root_url", mode="before")
    def _strip_whitespace(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("output_directory", mode="after")
    def _expand_user(cls, v: Path) -> Path:
        return v.expanduser()

    @property
    def root(self) -> str:
        """Root URL as a plain string."""
        return str(self.root_url)


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def _read_mapping(path: Union[str, Path, None]) -> dict[str, Any]:
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Unsupported config format: {suffix}")


def load_config(path: Union[str, Path, None]) -> MirrorConfig:
    """
    Read YAML or JSON and return a validated MirrorConfig.
    Raises FileNotFoundError when the file does not exist.
    """
    return MirrorConfig(**_read_mapping(path))


def build_config(path: Union[str, Path, None], **overrides: Any) -> MirrorConfig:
    """
    Merge command-line *overrides* (``None`` values are ignored) on top of the
    optional config file at *path* and validate the result.

    Without a *path* the default file is used when present; otherwise the
    overrides alone must be enough to build a config.
    """
    if path is None and not _DEFAULT_CFG.exists():
        data: dict[str, Any] = {}
    else:
        data = _read_mapping(path)
    data.update({k: v for k, v in overrides.items() if v is not None})
    return MirrorConfig(**data)
