import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from binday.config import settings
from binday.database import async_session, init_db
from binday.logging_setup import configure_logging
from binday.routers import collections, health
from binday.services.cache import PropertyCache
from binday.services.fetcher import CheshireEastSource
from binday.services.lookup import CollectionService
from binday.services.scheduler import start_scheduler, stop_scheduler

configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Bin Collection Day")
    await init_db()
    source = CheshireEastSource(
        base_url=settings.upstream_base_url,
        timeout=settings.upstream_timeout,
        user_agent=settings.user_agent,
    )
    service = CollectionService(PropertyCache(async_session), source)
    app.state.collection_service = service
    start_scheduler(service)
    yield
    stop_scheduler()
    await service.aclose()
    await source.aclose()
    logger.info("Shutting down Bin Collection Day")


app = FastAPI(title="Bin Collection Day", lifespan=lifespan)

# Add Prometheus metrics instrumentation
Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    excluded_handlers=["/health", "/metrics"],
).instrument(app).expose(app, endpoint="/metrics")

app.include_router(health.router)
app.include_router(collections.router)
