"""
Secret storage backends for the master encryption key.

The key never leaves these backends except as the in-process value held by
:class:`~clinic_safety.services.encryption.KeyManager`. None of them log key
material.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol

from clinic_safety.services.exceptions import SecretStoreUnavailable

logger = logging.getLogger(__name__)


class SecretStore(Protocol):
    def get_secret(self, alias: str) -> str | None: ...

    def set_secret(self, alias: str, value: str) -> None: ...


class InMemorySecretStore:
    """Process-local store. Used in tests and short-lived tooling."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._secrets: dict[str, str] = dict(initial or {})

    def get_secret(self, alias: str) -> str | None:
        return self._secrets.get(alias)

    def set_secret(self, alias: str, value: str) -> None:
        self._secrets[alias] = value


class EnvSecretStore:
    """
    Read-only store backed by environment variables (populated from .env by
    python-dotenv). Keys must be provisioned by the deployment; writes fail so
    the key manager falls back to an ephemeral key and reports degraded mode.
    """

    def get_secret(self, alias: str) -> str | None:
        return os.environ.get(alias) or None

    def set_secret(self, alias: str, value: str) -> None:
        raise SecretStoreUnavailable(
            f"Environment secret store is read-only; provision '{alias}' before startup"
        )


class FileSecretStore:
    """One file per alias, owner read/write only (0600)."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, alias: str) -> Path:
        return self.directory / f"{alias}.key"

    def get_secret(self, alias: str) -> str | None:
        path = self._path(alias)
        try:
            if not path.exists():
                return None
            value = path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise SecretStoreUnavailable(f"Cannot read secret '{alias}'") from exc
        return value or None

    def set_secret(self, alias: str, value: str) -> None:
        path = self._path(alias)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.chmod(path, 0o600)
        except OSError as exc:
            raise SecretStoreUnavailable(f"Cannot write secret '{alias}'") from exc
        logger.info("Secret '%s' written to %s", alias, self.directory)


def build_secret_store(backend: str, path: str | Path) -> SecretStore:
    """Return the secret store named by ``SECRET_STORE_BACKEND``."""
    if backend == "file":
        return FileSecretStore(path)
    if backend == "env":
        return EnvSecretStore()
    if backend == "memory":
        return InMemorySecretStore()
    raise ValueError(f"Unknown secret store backend: {backend}")
