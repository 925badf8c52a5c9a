"""
FastAPI dependencies.

Services are built once in create_app() and parked on app.state; route
handlers receive them through these functions.
"""

from fastapi import Request

from .services.event_registry import EventRegistry
from .services.location.eta import EtaService
from .services.location.registry import LocationRegistry
from .services.pack_tracker import PackTracker


def get_event_registry(request: Request) -> EventRegistry:
    return request.app.state.event_registry


def get_pack_tracker(request: Request) -> PackTracker:
    return request.app.state.pack_tracker


def get_location_registry(request: Request) -> LocationRegistry:
    return request.app.state.location_registry


def get_eta_service(request: Request) -> EtaService:
    return request.app.state.eta_service
