"""
policy_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain runtime settings through
    ``get_active_config()``.  No other component may read configuration
    files or environment variables directly.

Architecture position:
    Configuration -- YAML-driven settings.  Sits above ``policy_kernel``
    and below ``policy_services``.  The kernel and engines MUST NEVER
    import from ``policy_config``; settings are passed in as arguments.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Layering: ``defaults.yaml`` first, then the file named by
      ``POLICY_ENGINE_CONFIG`` (or the ``config_path`` argument).
    - Deterministic checksum of the merged settings.

Failure modes:
    - ``FileNotFoundError`` -- override file does not exist.
    - ``InvalidConfigError`` -- unknown keys or wrong value types.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``POLICY_CONFIG_TRACE`` log entry with the sources and checksum.
"""

from __future__ import annotations

import os
from pathlib import Path

from policy_config.loader import load_yaml_file, merge_settings, parse_settings
from policy_config.schema import EngineSettings
from policy_kernel.logging_config import get_logger

_logger = get_logger("config")

CONFIG_ENV_VAR = "POLICY_ENGINE_CONFIG"

# Default settings shipped with the package
_DEFAULTS_FILE = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | str | None = None) -> EngineSettings:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Override settings file.  When None, the file named by
            the ``POLICY_ENGINE_CONFIG`` environment variable is used, if
            set.

    Returns:
        Frozen EngineSettings.

    Raises:
        FileNotFoundError: If the override file does not exist.
        InvalidConfigError: If the merged settings fail validation.
    """
    sources = [_DEFAULTS_FILE]
    override = config_path if config_path is not None else os.environ.get(CONFIG_ENV_VAR)
    if override:
        sources.append(Path(override))

    merged = merge_settings(*(load_yaml_file(p) for p in sources))
    settings = parse_settings(merged, source=str(sources[-1]))

    _logger.info(
        "POLICY_CONFIG_TRACE",
        extra={
            "trace_type": "POLICY_CONFIG_TRACE",
            "sources": [str(p) for p in sources],
            "checksum": settings.checksum,
            "record_traces": settings.record_traces,
            "deduplicate_traces": settings.deduplicate_traces,
        },
    )
    return settings


__all__ = [
    "CONFIG_ENV_VAR",
    "EngineSettings",
    "get_active_config",
]
