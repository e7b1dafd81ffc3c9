from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from regionais_sync.api.regionais import router as regionais_router
from regionais_sync.core.config import settings
from regionais_sync.core.logging import configure_logging
from regionais_sync.pipeline.regional_sync import run_regional_sync
from regionais_sync.pipeline.scheduler import RegionalSyncScheduler

configure_logging(settings.LOG_LEVEL)
LOG = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if settings.REGIONAIS_SYNC_ENABLED:
        scheduler = RegionalSyncScheduler(run_regional_sync, settings.REGIONAIS_SYNC_INTERVAL_SECONDS)
        scheduler.start()
    else:
        LOG.info("Scheduled regional synchronization disabled")
    app.state.regionais_scheduler = scheduler

    yield

    if scheduler is not None:
        scheduler.stop()


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],          # ou liste origens específicas
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    return {"status": "ok", "message": "FastAPI rodando"}


# include routers implemented in regionais_sync/api
app.include_router(regionais_router)
