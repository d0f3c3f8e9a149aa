import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./clinic_safety.db")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Master key location. "file" keeps the key in a 0600 key file, "env" reads
    # it from ENCRYPTION_KEY_ALIAS (read-only), "memory" is process-local.
    ENCRYPTION_KEY_ALIAS: str = os.getenv("ENCRYPTION_KEY_ALIAS", "CLINIC_SAFETY_ENCRYPTION_KEY")
    SECRET_STORE_BACKEND: str = os.getenv("SECRET_STORE_BACKEND", "file")
    SECRET_STORE_PATH: str = os.getenv("SECRET_STORE_PATH", "./.secrets")
    PREFER_NATIVE_AEAD: bool = _env_bool("PREFER_NATIVE_AEAD", True)

    AUDIT_LOG_KEY: str = os.getenv("AUDIT_LOG_KEY", "clinic_safety_audit_log_encrypted")
    AUDIT_RETENTION_DAYS: int = int(os.getenv("AUDIT_RETENTION_DAYS", "365"))
    AUDIT_MAX_ENTRIES: int = int(os.getenv("AUDIT_MAX_ENTRIES", "1000"))


settings = Settings()
