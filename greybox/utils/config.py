# greybox/utils/config.py
from __future__ import annotations

import functools
import json
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------- Enums ----------

class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# ---------- Settings ----------

class Settings(BaseSettings):
    """
    Process-level configuration for the greybox helper.

    Values load in this order of precedence:
      1) Environment variables (GREYBOX_ prefix)
      2) .env file in project root
      3) Defaults below
    """

    # ---- Backend selection ----
    CONFIGURATION: Optional[str] = Field(default=None, description="Named backend configuration profile")
    BACKEND: Optional[str] = Field(default=None, description="Backend factory as 'module:callable'")
    PROJECT_FILE: Path = Field(default=Path("./package.json"), description="File holding the 'detox' section")

    # ---- App lifecycle ----
    RELOAD_REACT_NATIVE: bool = Field(default=False, description="Reload JS bundle instead of relaunching")
    REUSE: bool = Field(default=False, description="Reuse the backend session across the suite")
    LAUNCH_APP: bool = Field(default=True)

    # ---- Scenarios ----
    SCENARIOS_DIR: Path = Field(default=Path("./scenarios"))
    DEFAULT_WAIT_SEC: float = Field(default=5, ge=0)

    # ---- Logging ----
    LOG_LEVEL: LogLevel = Field(default=LogLevel.INFO)
    LOG_TO_FILE: bool = Field(default=False)
    LOG_FILE: Path = Field(default=Path("./greybox.log"))
    COLORIZED_OUTPUT: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_prefix="GREYBOX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("PROJECT_FILE", "SCENARIOS_DIR", "LOG_FILE", mode="after")
    @classmethod
    def _absolutize(cls, v: Path) -> Path:
        return v if v.is_absolute() else Path.cwd() / v

    def helper_config(self) -> dict:
        """Explicit helper config derived from settings (unset profile is omitted)."""
        cfg: dict = {
            "reload_react_native": self.RELOAD_REACT_NATIVE,
            "reuse": self.REUSE,
            "launch_app": self.LAUNCH_APP,
        }
        if self.CONFIGURATION:
            cfg["configuration"] = self.CONFIGURATION
        return cfg


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache settings once per process.
    Call `get_settings.cache_clear()` to reload after changing env.
    """
    return Settings()


# ---------- Helper options ----------

class HelperOptions(BaseModel):
    """Options the helper reads once at construction and never mutates."""

    configuration: str = Field(..., description="Backend configuration profile name")
    reload_react_native: bool = False
    reuse: bool = False
    launch_app: bool = True

    model_config = {"frozen": True, "extra": "ignore"}

    @field_validator("configuration")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("configuration cannot be empty")
        return v


def _read_project_section(project_file: Optional[Path]) -> dict:
    if project_file is None or not project_file.exists():
        return {}
    raw = project_file.read_text(encoding="utf-8")
    try:
        if project_file.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(raw) or {}
        else:
            data = json.loads(raw)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ValueError(f"Cannot parse project file {project_file}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Project file {project_file} must define a mapping at the top level.")
    section = data.get("detox") or {}
    if not isinstance(section, dict):
        raise ValueError(f"'detox' section in {project_file} must be a mapping.")
    return section


def _camel_to_snake(key: str) -> str:
    out = []
    for ch in key:
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out).lstrip("_")


def load_options(config: Optional[Mapping[str, Any]] = None, project_file: Optional[Path] = None) -> HelperOptions:
    """
    Merge defaults, the project file's `detox` section, then explicit config.

    Keys may be camelCase (as written in package.json) or snake_case.
    """
    merged: dict = {}
    for layer in (_read_project_section(project_file), dict(config or {})):
        merged.update({_camel_to_snake(k): v for k, v in layer.items()})
    try:
        return HelperOptions.model_validate(merged)
    except ValidationError as ve:
        lines = ["Invalid helper options:"]
        for e in ve.errors():
            loc = ".".join(str(p) for p in e.get("loc", []))
            lines.append(f"  - {loc}: {e.get('msg', 'invalid value')}")
        raise ValueError("\n".join(lines)) from ve
