"""
Typed exception hierarchy for the fleet kernel and the import pipeline.

Every error has a typed class (catch by type, not message), a static ``code``
class attribute (machine-readable), and carries its context as attributes so
it survives logging and serialization.

    FleetKernelError (base)
    |
    +-- IngestionError
    |   +-- MappingError                 MISSING_REQUIRED_COLUMN
    |   +-- SourceReadError              SOURCE_READ_FAILED
    |   +-- EntityCreationError          ENTITY_CREATION_FAILED
    |   +-- InvalidStateTransitionError  INVALID_STATE_TRANSITION
    |   +-- ImportAlreadyRunError        IMPORT_ALREADY_RUN
    |
    +-- ConfigError
        +-- ConfigValidationError        CONFIG_VALIDATION_FAILED

Row-scoped defects (unparseable dates, placeholders, failed saves) are NOT
exceptions. They are accumulated as ``ImportIssue`` values and reported in the
import summary. Only ``MappingError`` aborts an import.
"""

from __future__ import annotations

from typing import Sequence


class FleetKernelError(Exception):
    """
    Base exception for all fleet kernel errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "FLEET_KERNEL_ERROR"


# Ingestion


class IngestionError(FleetKernelError):
    """Base exception for import pipeline errors."""

    code: str = "INGESTION_ERROR"


class MappingError(IngestionError):
    """A required canonical field could not be matched to any header column."""

    code: str = "MISSING_REQUIRED_COLUMN"

    def __init__(self, field: str, available_headers: Sequence[str] = ()):
        self.field = field
        self.available_headers = tuple(available_headers)
        available = ", ".join(self.available_headers) or "(none)"
        super().__init__(
            f"missing required field: {field} (available headers: {available})"
        )


class SourceReadError(IngestionError):
    """The source bytes could not be decoded or split into rows."""

    code: str = "SOURCE_READ_FAILED"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Could not read import source: {reason}")


class EntityCreationError(IngestionError):
    """A referenced driver or vehicle could not be created."""

    code: str = "ENTITY_CREATION_FAILED"

    def __init__(self, kind: str, name: str, reason: str):
        self.kind = kind
        self.name = name
        self.reason = reason
        super().__init__(f"Could not create {kind} {name!r}: {reason}")


class InvalidStateTransitionError(IngestionError):
    """The orchestrator was asked to move between two unconnected states."""

    code: str = "INVALID_STATE_TRANSITION"

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Illegal import state transition: {from_state} -> {to_state}")


class ImportAlreadyRunError(IngestionError):
    """An orchestrator instance is single-use and has already been run."""

    code: str = "IMPORT_ALREADY_RUN"

    def __init__(self, import_id: str, state: str):
        self.import_id = import_id
        self.state = state
        super().__init__(f"Import {import_id} already ran (state={state}); create a new orchestrator")


# Configuration


class ConfigError(FleetKernelError):
    """Base exception for import configuration errors."""

    code: str = "CONFIG_ERROR"


class ConfigValidationError(ConfigError):
    """The import configuration file is structurally invalid."""

    code: str = "CONFIG_VALIDATION_FAILED"

    def __init__(self, source: str, problems: Sequence[str]):
        self.source = source
        self.problems = tuple(problems)
        super().__init__(f"Invalid import configuration {source}: {'; '.join(self.problems)}")
