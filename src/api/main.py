"""
FastAPI Application - Rental Document Verification.

Architecture:
  - Gemini (google-genai) for insurance document verification/extraction
  - Rule-based fraud, validation and confidence scoring
  - Veriff webhooks for identity verification, with tenant blocklist
  - PostgreSQL (prod) / SQLite (dev) via SQLAlchemy
  - S3-compatible (prod) / local filesystem (dev) object storage
"""

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from src.api.routes.scan_document import router as scan_router
from src.api.routes.verify_insurance import router as verify_router
from src.api.routes.veriff_webhook import router as veriff_router
from src.config.settings import get_settings
from src.infrastructure.db.database import get_database_url, init_db

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="Rental Document Verification",
    description="AI insurance document verification, fraud scoring and identity verification webhooks.",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Startup ──
@app.on_event("startup")
async def startup():
    """Create tables."""
    init_db()
    logger.info(f"Document verification service started (model {settings.gemini_model})")


# Register routes
app.include_router(verify_router, prefix="/api", tags=["Insurance"])
app.include_router(scan_router, prefix="/api", tags=["Insurance"])
app.include_router(veriff_router, prefix="/api", tags=["Identity Verification"])


# ── Health ──
@app.get("/health")
async def health():
    current = get_settings()
    db_url = get_database_url()
    db_type = "PostgreSQL" if "postgres" in db_url else "SQLite"
    return {
        "status": "ok",
        "version": VERSION,
        "database": db_type,
        "storage": current.storage_backend,
        "llm_configured": bool(current.model_api_keys),
        "model": current.gemini_model,
        "veriff_configured": bool(current.veriff_api_key and current.veriff_api_secret),
        "webhook_signatures": bool(current.veriff_webhook_secret),
    }


# ── Serve locally stored files ──
if settings.storage_backend == "local":
    files_dir = Path(settings.storage_local_root)
    app.mount("/files", StaticFiles(directory=str(files_dir), check_dir=False), name="files")
