from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from nextferry.config import settings
from nextferry.routers.ferry_api import router as ferry_api_router
from nextferry.routers.live_api import router as live_api_router
from nextferry.services.refresh_scheduler import get_refresher

logging.basicConfig(
    level=getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    refresher = get_refresher()
    refresher.start()
    try:
        yield
    finally:
        refresher.shutdown()


app = FastAPI(title="nextferry", lifespan=lifespan)

app.include_router(ferry_api_router)
app.include_router(live_api_router)
