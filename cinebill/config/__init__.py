"""Configuration helpers for CineBill runtime files.

Provides the loader for ``columns.yaml``: the header aliases used to locate
invoice fields in uploaded sheets, the aggregate column fragments, and the
day-group header pattern.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from cinebill.core.errors import ConfigError


CONFIG_DIR = Path(__file__).resolve().parent
DEFAULT_COLUMNS_PATH = CONFIG_DIR / "columns.yaml"
DEFAULT_PROFILES_PATH = CONFIG_DIR / "profiles.yaml"


class ColumnConfig(BaseModel):
    """Header resolution rules parsed from columns.yaml."""

    model_config = ConfigDict(extra="allow")

    columns: Dict[str, List[str]] = Field(default_factory=dict)
    contains: Dict[str, str] = Field(default_factory=dict)
    required: List[str] = Field(default_factory=lambda: ["client_name"])
    header_marker: str = "bill to"
    day_group_pattern: str = r"^(\d{2})-(\d{2})\s*show\b"
    defaults: Dict[str, str] = Field(default_factory=dict)

    @field_validator("day_group_pattern")
    @classmethod
    def _compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"invalid day_group_pattern: {exc}") from exc
        return value

    @property
    def day_group_regex(self) -> re.Pattern[str]:
        return re.compile(self.day_group_pattern, re.IGNORECASE)


def load_column_config(path: str | Path | None = None) -> ColumnConfig:
    """Load column aliases from YAML, defaulting to the bundled file."""

    cfg_path = Path(path) if path else DEFAULT_COLUMNS_PATH
    if not cfg_path.exists():
        raise ConfigError(f"columns.yaml not found: {cfg_path}")
    yaml = YAML(typ="safe")
    try:
        with cfg_path.open("r", encoding="utf-8") as fh:
            data = yaml.load(fh) or {}
    except YAMLError as exc:
        raise ConfigError(f"columns.yaml is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("columns.yaml must contain a mapping")
    try:
        return ColumnConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid columns.yaml: {exc}") from exc


__all__ = [
    "CONFIG_DIR",
    "ColumnConfig",
    "DEFAULT_COLUMNS_PATH",
    "DEFAULT_PROFILES_PATH",
    "load_column_config",
]
