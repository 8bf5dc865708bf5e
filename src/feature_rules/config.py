"""
Configuration loader.

Loads settings from config/settings.yaml and .env,
merges them, and provides a typed Settings object
accessible everywhere via `get_settings()`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Project root = 2 levels up from src/feature_rules/
ROOT = Path(__file__).resolve().parent.parent.parent
CONFIG_DIR = Path(os.getenv("FR_CONFIG_DIR", ROOT / "config"))
SETTINGS_FILE = CONFIG_DIR / "settings.yaml"


@dataclass
class RuleSettings:
    rules_dir: Path = field(default_factory=lambda: CONFIG_DIR / "rules")
    rule_files: list[str] = field(default_factory=lambda: ["examples.yaml"])


@dataclass
class OutputSettings:
    format: str = "table"  # "table", "json"


@dataclass
class Settings:
    """Top-level settings object."""

    rules: RuleSettings = field(default_factory=RuleSettings)
    output: OutputSettings = field(default_factory=OutputSettings)
    log_level: str = "INFO"
    log_file: Path | None = None
    trace_verbosity: int = 0  # 3 = match events, 4 = match events with inputs


# ── Singleton ─────────────────────────────────────────

_settings: Settings | None = None


def _load_yaml() -> dict:
    """Load the YAML config file."""
    if SETTINGS_FILE.exists():
        with open(SETTINGS_FILE, "r") as f:
            return yaml.safe_load(f) or {}
    return {}


def get_settings() -> Settings:
    """Get the global Settings instance (lazy-loaded singleton)."""
    global _settings
    if _settings is not None:
        return _settings

    # Load .env
    load_dotenv(ROOT / ".env")

    # Load YAML
    raw = _load_yaml()

    rules_raw = raw.get("rules", {})
    rules = RuleSettings(
        rules_dir=Path(os.getenv("RULES_DIR", CONFIG_DIR / rules_raw.get("rules_dir", "rules"))),
        rule_files=rules_raw.get("rule_files", ["examples.yaml"]),
    )

    out_raw = raw.get("output", {})
    output = OutputSettings(
        format=os.getenv("OUTPUT_FORMAT", out_raw.get("format", "table")),
    )

    log_raw = raw.get("logging", {})
    log_file = os.getenv("LOG_FILE", log_raw.get("file"))

    _settings = Settings(
        rules=rules,
        output=output,
        log_level=os.getenv("LOG_LEVEL", log_raw.get("level", "INFO")),
        log_file=ROOT / log_file if log_file else None,
        trace_verbosity=int(os.getenv("TRACE_VERBOSITY", log_raw.get("trace_verbosity", 0))),
    )

    return _settings


def reset_settings() -> None:
    """Drop the cached Settings so the next get_settings() reloads."""
    global _settings
    _settings = None
