import logging

import httpx
from fastapi import FastAPI

from portal_reports.api import health, reports
from portal_reports.core.config import settings
from portal_reports.core.log import configure_logging
from portal_reports.services.cache import ResponseCache
from portal_reports.services.fetcher import build_fetcher

app = FastAPI(title=settings.app_name)
app.include_router(health.router)
app.include_router(reports.router)

logger = logging.getLogger(__name__)

# one cache per process, shared by every fetcher the app builds
response_cache = ResponseCache(ttl=settings.cache_ttl_seconds)


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    client = httpx.AsyncClient(timeout=settings.http_timeout)
    app.state.fetcher = build_fetcher(settings, client=client, cache=response_cache)
    logger.info("Report proxy ready for %s", settings.base_url)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    fetcher = getattr(app.state, "fetcher", None)
    if fetcher is not None:
        await fetcher.client.aclose()
        app.state.fetcher = None
