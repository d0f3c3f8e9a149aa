"""Shared fixtures. Everything runs in memory; no database or key files."""

from datetime import datetime, timedelta, timezone

import pytest

from clinic_safety.services.audit import AuditLog
from clinic_safety.services.encryption import (
    AesGcmProvider,
    DerivedKeyStreamProvider,
    EncryptionService,
    KeyManager,
)
from clinic_safety.services.object_store import SecureObjectStore
from clinic_safety.services.secrets import InMemorySecretStore
from clinic_safety.services.storage import InMemoryKeyValueStore


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def secret_store():
    return InMemorySecretStore()


@pytest.fixture
def key_manager(secret_store):
    return KeyManager(secret_store, alias="test-key")


@pytest.fixture
def encryption(key_manager):
    return EncryptionService(key_manager, provider=AesGcmProvider())


@pytest.fixture
def fallback_encryption(key_manager):
    return EncryptionService(key_manager, provider=DerivedKeyStreamProvider())


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def objects(kv_store, encryption):
    return SecureObjectStore(kv_store, encryption)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def audit(objects, clock):
    return AuditLog(objects, storage_key="audit-test", clock=clock)
