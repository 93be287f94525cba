"""
Engine settings schema.

Defines the frozen runtime settings artifact.  YAML files are parsed into
this type by the loader; nothing else reads configuration files.
"""

from __future__ import annotations

from dataclasses import dataclass

LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class EngineSettings:
    """Runtime settings for the decision engine's surrounding services."""

    database_url: str = "sqlite:///:memory:"
    echo_sql: bool = False
    log_level: str = "INFO"
    record_traces: bool = True
    deduplicate_traces: bool = True
    # SHA-256 of the merged source settings; set by the loader
    checksum: str = ""


# Expected type of every user-settable key
SETTING_TYPES: dict[str, type] = {
    "database_url": str,
    "echo_sql": bool,
    "log_level": str,
    "record_traces": bool,
    "deduplicate_traces": bool,
}
