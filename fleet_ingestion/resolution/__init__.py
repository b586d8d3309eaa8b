"""Driver and vehicle resolution for imported rows."""

from fleet_ingestion.resolution.entity_resolver import (
    EntityResolutionPlan,
    EntityResolver,
    ResolvedRecord,
    collect_stubs,
)

__all__ = ["EntityResolutionPlan", "EntityResolver", "ResolvedRecord", "collect_stubs"]
