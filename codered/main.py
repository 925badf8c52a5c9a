"""
Code Red - Mass Transfusion Activation Tracking API
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .clock import Clock, utc_now
from .config import Settings, get_settings
from .routers import events, location, packs
from .services.event_registry import EventRegistry
from .services.location.eta import EtaService
from .services.location.registry import LocationRegistry
from .services.pack_tracker import PackTracker
from .storage import Storage, create_storage

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[Storage] = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """
    Build the app with one shared storage and one instance of each service.

    Pass storage to reuse an existing backend (tests); otherwise it is
    picked from settings.
    """
    settings = settings or get_settings()
    storage = storage or create_storage(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Code Red API starting up ({storage.name} storage)")
        yield
        logger.info("Code Red API shutting down")
        storage.close()

    app = FastAPI(
        title="Code Red API",
        description="Mass transfusion activation tracking",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Tighten in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    pack_tracker = PackTracker(storage, clock)
    location_registry = LocationRegistry(storage, clock)

    app.state.settings = settings
    app.state.storage = storage
    app.state.event_registry = EventRegistry(storage, clock)
    app.state.pack_tracker = pack_tracker
    app.state.location_registry = location_registry
    app.state.eta_service = EtaService(
        location_registry,
        pack_tracker,
        sites=settings.sites,
        default_lab_site=settings.default_lab_site,
        default_clinical_site=settings.default_clinical_site,
        clock=clock,
    )

    app.include_router(events.router, prefix="/api/code-red", tags=["Code Red"])
    app.include_router(packs.router, prefix="/api/packs", tags=["Packs"])
    app.include_router(location.router, prefix="/api/location", tags=["Location"])

    @app.get("/")
    async def root():
        return {"status": "ok", "service": "Code Red API", "version": __version__}

    @app.get("/health")
    async def health():
        return {"status": "healthy", "storage": storage.name}

    return app
