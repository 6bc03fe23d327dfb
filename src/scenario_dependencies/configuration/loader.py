"""Configuration loader service."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .runtime_settings import (
    DEFAULT_DEPENDENCY_TAG,
    DEFAULT_DEPENDS_ON_PREFIX,
    ConcurrentClaimMode,
    Configuration,
    DependencySettings,
    ReportingSettings,
)


class ConfigurationError(Exception):
    """Raised when the configuration file is invalid."""


def load_configuration(config_path: Path | str | None) -> Configuration:
    """Load and validate the configuration file.

    A missing ``config_path`` yields the default configuration.
    """
    if config_path is None:
        return Configuration()

    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:  # pragma: no cover - exercised indirectly
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        parsed = {}

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")

    dependencies = _parse_dependencies_section(parsed.get("dependencies"))
    reporting = _parse_reporting_section(parsed.get("reporting"), path.parent)

    return Configuration(path=path, dependencies=dependencies, reporting=reporting)


def _parse_dependencies_section(value: Any) -> DependencySettings:
    section = _optional_mapping(value, "dependencies")
    prefix = _require_non_empty_string(
        section.get("depends_on_prefix", DEFAULT_DEPENDS_ON_PREFIX),
        "dependencies.depends_on_prefix",
    )
    dependency_tag = _require_non_empty_string(
        section.get("dependency_tag", DEFAULT_DEPENDENCY_TAG), "dependencies.dependency_tag"
    )
    if dependency_tag.startswith(prefix):
        raise ConfigurationError(
            "dependencies.dependency_tag must not start with dependencies.depends_on_prefix."
        )
    concurrent_claims = _parse_claim_mode(section.get("concurrent_claims", "wait"))
    timeout_raw = section.get("wait_timeout_seconds")
    wait_timeout_seconds = (
        None
        if timeout_raw is None
        else _require_positive_int(timeout_raw, "dependencies.wait_timeout_seconds")
    )
    return DependencySettings(
        depends_on_prefix=prefix,
        dependency_tag=dependency_tag,
        concurrent_claims=concurrent_claims,
        wait_timeout_seconds=wait_timeout_seconds,
    )


def _parse_reporting_section(value: Any, base_path: Path) -> ReportingSettings:
    section = _optional_mapping(value, "reporting")
    workbook_raw = _optional_string(section.get("workbook_path"), "reporting.workbook_path")
    workbook_path = _resolve_path(base_path, workbook_raw) if workbook_raw else None
    terminal_summary = section.get("terminal_summary", True)
    if not isinstance(terminal_summary, bool):
        raise ConfigurationError("reporting.terminal_summary must be a boolean.")
    return ReportingSettings(workbook_path=workbook_path, terminal_summary=terminal_summary)


def _parse_claim_mode(value: Any) -> ConcurrentClaimMode:
    raw = _require_non_empty_string(value, "dependencies.concurrent_claims").lower()
    try:
        return ConcurrentClaimMode(raw)
    except ValueError as exc:
        allowed = ", ".join(mode.value for mode in ConcurrentClaimMode)
        raise ConfigurationError(
            f"dependencies.concurrent_claims must be one of: {allowed}."
        ) from exc


def _resolve_path(base_path: Path, raw_path: str) -> Path:
    candidate = Path(raw_path)
    if not candidate.is_absolute():
        return (base_path / candidate).resolve()
    return candidate


def _optional_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' must be a mapping.")
    return value


def _require_non_empty_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return stripped


def _optional_string(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    return stripped or None


def _require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if not isinstance(value, int):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if value <= 0:
        raise ConfigurationError(f"{field_name} must be greater than zero.")
    return value
