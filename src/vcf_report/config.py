from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

from .parser import KEY_MATCHING_MODES

logger = logging.getLogger(__name__)

CONF_NAME = "vcf-report.toml"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class Settings:
    title: str = "Contacts"
    lang: str = "en"
    output_dir: Path = field(default_factory=lambda: Path("."))
    key_matching: str = "prefix"      # prefix | exact
    log_level: str = "WARNING"


DEFAULT_CONF = """# vcf-report local config (TOML)
title = "Contacts"
lang = "en"
output_dir = "."
key_matching = "prefix"
log_level = "WARNING"
"""


def _coerce(name: str, value: Any, default: Any) -> Any:
    if name == "output_dir":
        return Path(str(value))
    if name == "key_matching":
        value = str(value).lower()
        if value not in KEY_MATCHING_MODES:
            logger.warning("Unknown key_matching %r in config, using %r", value, default)
            return default
        return value
    if name == "log_level":
        value = str(value).upper()
        if value not in LOG_LEVELS:
            logger.warning("Unknown log_level %r in config, using %r", value, default)
            return default
        return value
    return str(value)


def load_settings(path: Path | None = None) -> Settings:
    """Read settings from *path* (or ./vcf-report.toml if present).

    A missing file gives the defaults. A malformed file is logged and ignored.
    """
    settings = Settings()
    conf = Path(path) if path is not None else Path(os.getcwd()) / CONF_NAME
    if not conf.exists():
        if path is not None:
            logger.warning("Config file %s not found, using defaults", conf)
        return settings

    try:
        data = tomllib.loads(conf.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        logger.warning("Ignoring unreadable config %s: %s", conf, e)
        return settings

    updates: dict[str, Any] = {}
    for f in fields(Settings):
        if f.name in data:
            updates[f.name] = _coerce(f.name, data[f.name], getattr(settings, f.name))
    unknown = sorted(set(data) - {f.name for f in fields(Settings)})
    if unknown:
        logger.warning("Unknown config key(s) in %s: %s", conf, ", ".join(unknown))
    return replace(settings, **updates)


def write_default_config(path: Path) -> Path:
    """Create *path* with the default settings unless it already exists."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        path.write_text(DEFAULT_CONF, encoding="utf-8")
    return path
