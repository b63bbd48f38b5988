"""Load owlfhir configuration from TOML (owlfhir.toml) and the IRI mappings file.

Config file is looked up in order:
  1. Path in OWLFHIR_CONFIG env var (if set)
  2. owlfhir.toml in the owlfhir package directory
  3. owlfhir.toml in the current working directory

The first existing file wins. Keys are read from its ``[owlfhir]`` table:

    [owlfhir]
    publisher_properties = ["http://purl.org/dc/elements/1.1/publisher"]
    description_properties = ["http://purl.org/dc/elements/1.1/description"]
    iri_mappings_file = "iri_mappings.txt"

If no file is found, or a key is missing or has the wrong type, the built-in
defaults below are used.

The IRI mappings file redirects remote ontology IRIs to local documents, one
``<remote IRI>,<local path>`` pair per line.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from owlfhir.diagnostics import DiagnosticKind, DiagnosticsCollector
from owlfhir.logging import setup_logging

logger = setup_logging()

CONFIG_ENV_VAR = "OWLFHIR_CONFIG"
CONFIG_FILE_NAME = "owlfhir.toml"
IRI_MAPPINGS_FILE_NAME = "iri_mappings.txt"

DEFAULT_PUBLISHER_PROPERTIES: tuple[str, ...] = (
    "http://purl.org/dc/elements/1.1/publisher",
    "http://purl.org/dc/terms/publisher",
    "http://purl.org/dc/elements/1.1/creator",
    "http://purl.org/dc/terms/creator",
)
DEFAULT_DESCRIPTION_PROPERTIES: tuple[str, ...] = (
    "http://purl.org/dc/elements/1.1/description",
    "http://purl.org/dc/terms/description",
    "http://www.w3.org/2000/01/rdf-schema#comment",
)


class TransformConfig(BaseModel):
    """Process-wide settings, read once at startup and passed to the assemblers."""

    model_config = ConfigDict(frozen=True)

    publisher_properties: tuple[str, ...] = DEFAULT_PUBLISHER_PROPERTIES
    description_properties: tuple[str, ...] = DEFAULT_DESCRIPTION_PROPERTIES
    iri_mappings: Mapping[str, Path] = Field(default_factory=dict, validate_default=True)

    @field_validator("publisher_properties", "description_properties")
    @classmethod
    def _strip_and_drop_blank(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(v.strip() for v in value if v.strip())

    @field_validator("iri_mappings")
    @classmethod
    def _read_only_mappings(cls, value: Mapping[str, Path]) -> Mapping[str, Path]:
        return MappingProxyType(dict(value))


def _default_config_paths() -> list[Path]:
    """Return paths to check for owlfhir.toml (first existing wins)."""
    paths: list[Path] = []
    if os.environ.get(CONFIG_ENV_VAR):
        paths.append(Path(os.environ[CONFIG_ENV_VAR]))
    paths.append(Path(__file__).resolve().parent / CONFIG_FILE_NAME)
    paths.append(Path.cwd() / CONFIG_FILE_NAME)
    return paths


def _default_mappings_paths() -> list[Path]:
    return [
        Path(__file__).resolve().parent / IRI_MAPPINGS_FILE_NAME,
        Path.cwd() / IRI_MAPPINGS_FILE_NAME,
    ]


def _string_list(table: dict[str, Any], key: str) -> Optional[tuple[str, ...]]:
    value = table.get(key)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return tuple(value)
    if value is not None:
        logger.warning({"message": f"Ignoring config key {key!r}: expected a list of strings", "value": value})
    return None


def _read_config_table(config_path: Optional[Path]) -> tuple[dict[str, Any], Optional[Path]]:
    candidates = [config_path] if config_path is not None else _default_config_paths()
    for path in candidates:
        if not path.is_file():
            continue
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning({"message": f"Could not read config file {path}", "error": str(e)})
            continue
        table = data.get("owlfhir")
        logger.info({"message": f"Loaded configuration from {path}"})
        return (table if isinstance(table, dict) else {}), path
    return {}, None


def load_iri_mappings(
    path: Path,
    diagnostics: Optional[DiagnosticsCollector] = None,
) -> dict[str, Path]:
    """Read a ``<remote IRI>,<local path>`` mappings file.

    Blank lines and ``#`` comments are skipped. Relative local paths are resolved
    against the mappings file's directory. Malformed lines are skipped and an
    unreadable file gives an empty table; both are reported as diagnostics, never
    raised.
    """
    mappings: dict[str, Path] = {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        message = f"There was a problem loading IRI mappings from {path}: {e}"
        if diagnostics is not None:
            diagnostics.record(DiagnosticKind.IRI_MAPPINGS, message, str(path))
        else:
            logger.warning({"message": message})
        return {}

    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = [p.strip() for p in line.split(",")]
        if len(parts) != 2 or not parts[0] or not parts[1]:
            message = f"Skipping malformed IRI mapping at {path}:{lineno}: {raw!r}"
            if diagnostics is not None:
                diagnostics.record(DiagnosticKind.IRI_MAPPINGS, message, str(path))
            else:
                logger.warning({"message": message})
            continue
        local = Path(parts[1]).expanduser()
        if not local.is_absolute():
            local = path.parent / local
        mappings[parts[0]] = local

    for remote, local in mappings.items():
        logger.info({"message": f"Loaded IRI mapping {remote} -> {local}"})
    return mappings


def find_iri_mappings_file(explicit: Optional[Path] = None) -> Optional[Path]:
    """Return the mappings file to use, or None when redirection is disabled."""
    if explicit is not None:
        return explicit
    for path in _default_mappings_paths():
        if path.is_file():
            return path
    logger.info({"message": f"Did not find {IRI_MAPPINGS_FILE_NAME}; IRI redirection disabled"})
    return None


def load_transform_config(
    config_path: Optional[Path] = None,
    *,
    iri_mappings_path: Optional[Path] = None,
    publisher_properties: Optional[tuple[str, ...]] = None,
    description_properties: Optional[tuple[str, ...]] = None,
    diagnostics: Optional[DiagnosticsCollector] = None,
) -> TransformConfig:
    """Build the TransformConfig for a run.

    Args:
        config_path: Explicit TOML file. When None the default search order applies.
        iri_mappings_path: Explicit mappings file; overrides ``iri_mappings_file``.
        publisher_properties: Overrides the configured publisher properties.
        description_properties: Overrides the configured description properties.
        diagnostics: Receives mappings-file problems.
    """
    table, found = _read_config_table(config_path)

    publishers = publisher_properties or _string_list(table, "publisher_properties") or DEFAULT_PUBLISHER_PROPERTIES
    descriptions = (
        description_properties or _string_list(table, "description_properties") or DEFAULT_DESCRIPTION_PROPERTIES
    )

    mappings_file = iri_mappings_path
    if mappings_file is None and isinstance(table.get("iri_mappings_file"), str):
        mappings_file = Path(table["iri_mappings_file"]).expanduser()
        if not mappings_file.is_absolute() and found is not None:
            mappings_file = found.parent / mappings_file

    mappings_file = find_iri_mappings_file(mappings_file)
    mappings = load_iri_mappings(mappings_file, diagnostics) if mappings_file is not None else {}

    return TransformConfig(
        publisher_properties=publishers,
        description_properties=descriptions,
        iri_mappings=mappings,
    )
