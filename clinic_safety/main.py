"""
FastAPI application entrypoint.

Run locally:  uvicorn clinic_safety.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from clinic_safety.api.routes import router
from clinic_safety.config import settings
from clinic_safety.models import records  # noqa: F401  registers kv_records on Base.metadata
from clinic_safety.models.database import Base, engine
from clinic_safety.services.container import get_services
from clinic_safety.services.exceptions import DecryptionError

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s | %(name)s | %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    get_services().audit.initialize()
    yield


app = FastAPI(
    title="Clinic Safety API",
    description=(
        "Contraindication screening for aesthetic, peptide and IV treatments, "
        "with encrypted storage of patient health data and a redacting audit log."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router, prefix="/api/v1")


@app.exception_handler(DecryptionError)
def decryption_failed(request: Request, exc: DecryptionError):
    # Covers IntegrityError. Details stay in the server log only.
    logger.error("Stored data could not be decrypted on %s (%s)", request.url.path, type(exc).__name__)
    return JSONResponse(status_code=503, content={"detail": "data unavailable, please contact support"})
