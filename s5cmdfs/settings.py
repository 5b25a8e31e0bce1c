from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

# Load .env file from project root
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

DEFAULT_UPLOADER_PATH = "s5cmd"
DEFAULT_MULTIPART_THRESHOLD = 100 * 1024 * 1024
DEFAULT_MULTIPART_CONCURRENCY = 10

# Flat keys understood by ``Settings.from_mapping``; the host configuration
# historically namespaces them under ``fs.s3a.s5cmd.``.
HOST_KEY_PREFIX = "fs.s3a.s5cmd."
FLAT_KEYS: dict[str, str] = {
    "path": "path",
    "uploader.path": "path",
    "temp.dir": "temp_dir",
    "additional.args": "additional_args",
    "multipart.threshold": "multipart_threshold",
    "multipart.concurrency": "multipart_concurrency",
}


class UploaderSettings(BaseModel):
    path: str = DEFAULT_UPLOADER_PATH
    temp_dir: str | None = None
    additional_args: str = ""
    multipart_threshold: int = Field(DEFAULT_MULTIPART_THRESHOLD, ge=0)
    multipart_concurrency: int = Field(DEFAULT_MULTIPART_CONCURRENCY, ge=1)

    @field_validator("path", mode="before")
    @classmethod
    def _default_path(cls, value: Any) -> str:  # noqa: D401
        if value is None or not str(value).strip():
            return DEFAULT_UPLOADER_PATH
        return str(value).strip()

    @field_validator("temp_dir", mode="before")
    @classmethod
    def _blank_temp_dir(cls, value: Any) -> str | None:  # noqa: D401
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("additional_args", mode="before")
    @classmethod
    def _normalize_args(cls, value: Any) -> str:  # noqa: D401
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return " ".join(str(item) for item in value)
        return str(value)


class StorageSettings(BaseModel):
    backend: Literal["s3", "local"] = "s3"
    region: str | None = None
    endpoint_url: str | None = None
    local_root: str | None = None


class Settings(BaseModel):
    uploader: UploaderSettings = Field(default_factory=UploaderSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from a YAML configuration file.
        
        Args:
            path: Optional path to configuration file. If not provided, uses
                the S5CMDFS_CONFIG environment variable or config/default.yaml.
        
        Returns:
            Settings instance with loaded configuration.
        
        Raises:
            FileNotFoundError: If configuration file does not exist.
            ConfigurationError: If configuration is invalid.
        """
        config_path = path or Path(os.getenv("S5CMDFS_CONFIG", "config/default.yaml"))
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        with config_path.open("r", encoding="utf-8") as fp:
            payload = yaml.safe_load(fp) or {}
        if not isinstance(payload, dict):
            raise ConfigurationError("Configuration root must be a mapping", {"path": str(config_path)})
        try:
            return cls(**payload)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}", {"path": str(config_path)}) from exc

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "Settings":
        """Build settings from flat dotted keys such as ``multipart.threshold``.

        Keys may carry the ``fs.s3a.s5cmd.`` prefix. Unknown keys are ignored.
        """
        uploader: dict[str, Any] = {}
        for raw_key, value in mapping.items():
            key = str(raw_key)
            if key.startswith(HOST_KEY_PREFIX):
                key = key[len(HOST_KEY_PREFIX):]
            field_name = FLAT_KEYS.get(key)
            if field_name is not None:
                uploader[field_name] = value
        try:
            return cls(uploader=UploaderSettings(**uploader))
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings(path: str | None = None) -> Settings:
    return Settings.load(Path(path) if path else None)


__all__ = [
    "Settings",
    "UploaderSettings",
    "StorageSettings",
    "DEFAULT_UPLOADER_PATH",
    "DEFAULT_MULTIPART_THRESHOLD",
    "DEFAULT_MULTIPART_CONCURRENCY",
    "get_settings",
]
