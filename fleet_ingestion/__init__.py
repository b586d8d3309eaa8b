"""
fleet_ingestion -- Bulk import of historical daily earning records.

Detects the column layout of an uploaded delimited file, validates and
normalizes every row, provisions referenced drivers and vehicles, and
persists importable entries. Every defect is attributed to a row and a
severity in the returned ImportSummary.

Architecture:
    fleet_ingestion/ is a top-level package above fleet_kernel and
    fleet_config. Nothing in the kernel imports from ingestion.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fleet_config import load_import_config
from fleet_ingestion.domain.types import SessionConfig


def load_session_config(path: Path | str | None = None, **overrides: Any) -> SessionConfig:
    """Load the import configuration (bundled default when ``path`` is None) as a SessionConfig."""
    return SessionConfig.from_config(load_import_config(path), **overrides)


__all__ = ["SessionConfig", "load_session_config"]
