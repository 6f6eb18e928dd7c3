from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from archivebot.api import deps, routes_commands, routes_health, routes_servers
from archivebot.logging_config import configure_logging
from archivebot.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    configure_logging()
    logger.info(f"archivebot starting (env={settings.env})")
    yield
    deps.wayback.close()
    deps.history_reader.close()
    logger.info("archivebot stopped")


app = FastAPI(title="Archive Bot API", version="0.1.0", lifespan=lifespan)

app.include_router(routes_commands.router)
app.include_router(routes_servers.router)
app.include_router(routes_health.router)


@app.get("/", include_in_schema=False)
async def root() -> RedirectResponse:  # noqa: D401
    return RedirectResponse(url="/docs")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
