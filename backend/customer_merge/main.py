"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from customer_merge import __version__
from customer_merge.config import get_settings
from customer_merge.db.session import SessionLocal
from customer_merge.routers import dismissals, duplicates, merges

logger = logging.getLogger(__name__)


def _check_database() -> None:
    """Open one connection at process start so misconfiguration shows up early."""

    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database check failed; continuing without startup verification.")


@asynccontextmanager
async def lifespan(_: FastAPI):
    _check_database()
    yield


settings = get_settings()
app = FastAPI(title=settings.app_name, version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(duplicates.router, tags=["duplicates"])
app.include_router(dismissals.router, tags=["dismissals"])
app.include_router(merges.router, tags=["merges"])


@app.get("/health")
def health() -> dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}
