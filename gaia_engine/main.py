import asyncio
import logging

from fastapi import FastAPI

from gaia_engine.api.routes import router
from gaia_engine.bot_runner import run_bot_worker
from gaia_engine.infra.redis_client import create_redis, load_settings

settings = load_settings()

app = FastAPI(title="gaia-engine", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level, logging.DEBUG))
logger = logging.getLogger(__name__)

_background: set[asyncio.Task[None]] = set()


@app.on_event("startup")
async def _startup() -> None:
    if settings.run_bot_worker:
        task = asyncio.create_task(run_bot_worker(r=create_redis()))
        _background.add(task)
        task.add_done_callback(_background.discard)
        logger.info("bot worker started")


@app.on_event("shutdown")
async def _shutdown() -> None:
    for task in list(_background):
        task.cancel()


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "gaia-engine", "version": "0.1.0"}
