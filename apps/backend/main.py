# apps/backend/main.py

from __future__ import annotations

import sys
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# -----------------------------------------------------------------------------
# Paths + Python path
# -----------------------------------------------------------------------------
BASE_DIR = Path(__file__).resolve().parent  # .../apps/backend
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

# -----------------------------------------------------------------------------
# Load .env (MUST be before importing anything that needs env)
# -----------------------------------------------------------------------------
ENV_PATH = BASE_DIR / ".env"
load_dotenv(ENV_PATH)

from app.core.config import settings  # noqa: E402
from app.core.dedupe import Deduplicator  # noqa: E402
from app.core.logging import configure_logging  # noqa: E402
from app.db import Base, engine  # noqa: E402
from app.models import event as _event_models  # noqa: E402,F401  (register tables)
from app.models import identity as _identity_models  # noqa: E402,F401
from app.routes.events import router as events_router  # noqa: E402
from app.routes.identity import router as identity_router  # noqa: E402

configure_logging(settings.log_level)

# -----------------------------------------------------------------------------
# Create app
# -----------------------------------------------------------------------------
app = FastAPI(title=settings.app_name, version="0.1.0")

# one dedupe window per process, shared by every request
app.state.deduplicator = Deduplicator(window_seconds=settings.dedupe_window_seconds)

# -----------------------------------------------------------------------------
# CORS (the pixel posts from arbitrary customer sites)
# -----------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# -----------------------------------------------------------------------------
# DB init
# -----------------------------------------------------------------------------
@app.on_event("startup")
def _startup_create_tables():
    # no migrations yet: create tables if they don't exist
    Base.metadata.create_all(bind=engine)


# -----------------------------------------------------------------------------
# Routers
# -----------------------------------------------------------------------------
app.include_router(events_router, tags=["events"])
app.include_router(identity_router, tags=["identity"])


# -----------------------------------------------------------------------------
# Basic health check
# -----------------------------------------------------------------------------
@app.get("/health")
def health():
    return {"status": "ok"}


# -----------------------------------------------------------------------------
# Entrypoint
# -----------------------------------------------------------------------------
def run() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)


if __name__ == "__main__":
    run()
