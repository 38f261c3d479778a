"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.errors import NotFoundError, ValidationError
from app.core.logging_config import setup_logging
from app.db.database import engine, Base

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables (dev only; use migrations in production)
    from app import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready")
    yield
    # Shutdown: close connections
    await engine.dispose()


app = FastAPI(
    title="Heartsheet API",
    description="Character progression and domain card slots for tabletop RPG sheets",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": exc.message, "context": exc.context})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message, "context": exc.context})


# --- Routes ---
from app.api.routes import cards, catalog, characters, progression  # noqa: E402

app.include_router(characters.router, prefix="/api/characters", tags=["characters"])
app.include_router(progression.router, prefix="/api/characters", tags=["progression"])
app.include_router(cards.router, prefix="/api/characters", tags=["cards"])
app.include_router(catalog.router, prefix="/api/catalog", tags=["catalog"])


@app.get("/health")
async def health_check():
    return {"status": "ok"}
