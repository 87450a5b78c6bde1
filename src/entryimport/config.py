"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "ENTRYIMPORT_"


class Settings(BaseModel):
    app_name:           str  = "entryimport"
    default_mode:       str  = Field(default="auto", pattern="^(auto|json|markup)$", description="auto, json or markup")
    overwrite:          bool = Field(default=False, description="Replace filled fields instead of only filling gaps")
    excerpt_max_length: int  = Field(default=300, ge=1, description="Longest first paragraph accepted as an excerpt")
    markdown_preset:    str  = Field(default="gfm-like", description="MarkdownIt preset for markdown content")
    max_heading_level:  int  = Field(default=3, ge=1, le=6, description="Deepest heading level kept by the converter")
    db_url:             str  = Field(default="sqlite:///entryimport.db", description="Database holding stored entries")
    log_level:          str  = Field(default="WARNING", description="Root logging level for the CLI")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then ENTRYIMPORT_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
