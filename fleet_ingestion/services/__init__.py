"""Import services: persistence gateway and the orchestrator."""

from fleet_ingestion.services.import_orchestrator import ImportOrchestrator
from fleet_ingestion.services.persistence_gateway import (
    PersistenceGateway,
    SqlAlchemyPersistenceGateway,
)

__all__ = ["ImportOrchestrator", "PersistenceGateway", "SqlAlchemyPersistenceGateway"]
