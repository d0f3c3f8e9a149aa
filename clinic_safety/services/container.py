"""
Process-wide service wiring.

Everything that owns state (the master key, the audit ledger cache) is built
once here and handed out through :func:`get_services`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from clinic_safety.models.database import SessionLocal
from clinic_safety.safety.engine import ContraindicationEngine, default_engine
from clinic_safety.services.audit import AuditLog
from clinic_safety.services.encryption import EncryptionService, build_key_manager
from clinic_safety.services.object_store import SecureObjectStore
from clinic_safety.services.storage import KeyValueStore, SqlKeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class ClinicServices:
    encryption: EncryptionService
    objects: SecureObjectStore
    audit: AuditLog
    engine: ContraindicationEngine


def build_services(
    store: KeyValueStore,
    encryption: EncryptionService,
    engine: ContraindicationEngine = default_engine,
) -> ClinicServices:
    objects = SecureObjectStore(store, encryption)
    audit = AuditLog(
        objects,
        on_persist_failure=lambda exc: logger.critical("ALERT: audit trail not persisted (%s)", type(exc).__name__),
    )
    return ClinicServices(encryption=encryption, objects=objects, audit=audit, engine=engine)


@lru_cache(maxsize=1)
def get_services() -> ClinicServices:
    """FastAPI dependency returning the shared services."""
    encryption = EncryptionService(build_key_manager())
    services = build_services(SqlKeyValueStore(SessionLocal), encryption)
    status = encryption.status()
    logger.info("Encryption: %s (degraded=%s)", status.algorithm, status.degraded)
    return services
