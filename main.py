"""
Esports Backtest Data API

Serves merged esports games and player stats to the prediction UI, and
exposes token-protected triggers for the snapshot pipeline.

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8001

Environment Variables:
    PIPELINE_API_TOKEN - Secret token for the internal pipeline routes
    DATABASE_URL - Peewee database URL (pipeline runs, database snapshots)
    SNAPSHOT_BACKEND - "file" or "database"
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.v1 import games, pipelines
from core.correlation_middleware import CorrelationMiddleware
from core.db_middleware import DatabaseMiddleware
from core.logging import setup_logging, get_logger
from core.middleware import setup_middleware
from core.settings import settings
from db.base import close_db, init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings)
    log = get_logger()
    log.info("api_starting", service=settings.service_name)

    init_db()
    log.info("database_initialized", snapshot_backend=settings.snapshot_backend)

    yield

    close_db()
    log.info("api_stopped")


app = FastAPI(
    title="Esports Backtest Data API",
    description="Merged LoL esports games for winner-prediction backtesting",
    version="1.0.0",
    lifespan=lifespan,
)

# Middlewares (the last one added wraps the others)
app.add_middleware(CorrelationMiddleware)
app.add_middleware(DatabaseMiddleware)
setup_middleware(app, origins=settings.cors_origins)

app.include_router(games.router, prefix="/v1")
app.include_router(pipelines.router, prefix="/v1/internal")


@app.get("/")
async def root():
    return {"message": "Esports Backtest Data API"}


@app.get("/ping")
async def ping():
    return {"message": "Pong!"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8001)
