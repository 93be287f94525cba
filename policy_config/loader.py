"""
Configuration Loader (``policy_config.loader``).

Responsibility
--------------
Loads YAML settings files and parses them into the frozen
``policy_config.schema.EngineSettings``.  The single public entry point
for runtime config is ``policy_config.get_active_config()``.

Invariants enforced
-------------------
* Unknown keys and values of the wrong type raise ``InvalidConfigError``;
  there are no silent defaults for keys that are present.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the merged
  settings for configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Top-level YAML that is not a mapping  -> ``InvalidConfigError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from policy_config.schema import LOG_LEVELS, SETTING_TYPES, EngineSettings
from policy_kernel.exceptions import InvalidConfigError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        InvalidConfigError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise InvalidConfigError(str(path), "top-level document must be a mapping")
    return data


def merge_settings(*layers: dict[str, Any]) -> dict[str, Any]:
    """Merge settings dicts; later layers replace earlier keys."""
    merged: dict[str, Any] = {}
    for layer in layers:
        merged.update(layer)
    return merged


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_settings(data: dict[str, Any], source: str = "<settings>") -> EngineSettings:
    """
    Parse an ``EngineSettings`` from a merged settings dict.

    Raises:
        InvalidConfigError: unknown keys, wrong types, or an unknown
            log level.
    """
    unknown = sorted(set(data) - set(SETTING_TYPES))
    if unknown:
        raise InvalidConfigError(source, f"unknown keys: {', '.join(unknown)}")

    for key, expected in SETTING_TYPES.items():
        if key in data and not isinstance(data[key], expected):
            raise InvalidConfigError(
                source,
                f"{key} must be {expected.__name__}, got {type(data[key]).__name__}",
            )

    log_level = data.get("log_level", EngineSettings.log_level).upper()
    if log_level not in LOG_LEVELS:
        raise InvalidConfigError(source, f"unknown log_level {data['log_level']!r}")

    return EngineSettings(
        database_url=data.get("database_url", EngineSettings.database_url),
        echo_sql=data.get("echo_sql", EngineSettings.echo_sql),
        log_level=log_level,
        record_traces=data.get("record_traces", EngineSettings.record_traces),
        deduplicate_traces=data.get("deduplicate_traces", EngineSettings.deduplicate_traces),
        checksum=compute_checksum(data),
    )
