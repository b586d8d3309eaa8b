"""
fleet_config -- single public entrypoint for import configuration.

Responsibility:
    ``load_import_config()`` returns the parsed, validated alias table and
    session defaults. Without a path it loads the bundled
    ``defaults/column_aliases.yaml``.

Architecture position:
    Configuration. Sits above ``fleet_kernel`` and below
    ``fleet_ingestion``; the kernel never imports from here.

Failure modes:
    - ``FileNotFoundError`` -- the requested file does not exist.
    - ``ConfigValidationError`` -- structural validation failures.
"""

from __future__ import annotations

from pathlib import Path

from fleet_config.loader import load_yaml_file, parse_import_config
from fleet_config.schema import (
    ColumnAliasTable,
    DateOrder,
    EarningProviderDef,
    ImportConfigDef,
    ImportDefaults,
    PlaceholderDef,
)
from fleet_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "column_aliases.yaml"


def load_import_config(path: Path | str | None = None) -> ImportConfigDef:
    """Load and validate an import configuration file (bundled default when ``path`` is None)."""
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = parse_import_config(load_yaml_file(config_path), source=str(config_path))
    _logger.info(
        "import_config_loaded",
        extra={
            "config_source": config.source,
            "config_version": config.version,
            "checksum": config.checksum,
            "providers": list(config.aliases.provider_names),
        },
    )
    return config


__all__ = [
    "ColumnAliasTable",
    "DEFAULT_CONFIG_PATH",
    "DateOrder",
    "EarningProviderDef",
    "ImportConfigDef",
    "ImportDefaults",
    "PlaceholderDef",
    "load_import_config",
]
