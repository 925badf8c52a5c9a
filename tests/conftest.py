"""Pytest configuration and fixtures for Code Red tests."""

import pytest
from fastapi.testclient import TestClient

from codered.clock import FrozenClock
from codered.config import Settings
from codered.database import create_database_engine
from codered.main import create_app
from codered.services.event_registry import EventRegistry
from codered.services.location.eta import EtaService
from codered.services.location.registry import LocationRegistry
from codered.services.pack_tracker import PackTracker
from codered.storage.memory import MemoryStorage
from codered.storage.sql import SqlStorage


@pytest.fixture
def clock():
    """Frozen at 2025-01-01 12:00 UTC; call clock.advance(minutes=...) to move it"""
    return FrozenClock()


@pytest.fixture(params=["memory", "sql"])
def storage(request):
    """Each storage backend in turn: in-memory and SQLite in-memory"""
    if request.param == "memory":
        yield MemoryStorage()
    else:
        engine = create_database_engine("sqlite:///:memory:")
        backend = SqlStorage(engine)
        yield backend
        backend.close()


@pytest.fixture
def events(storage, clock):
    return EventRegistry(storage, clock)


@pytest.fixture
def packs(storage, clock):
    return PackTracker(storage, clock)


@pytest.fixture
def locations(storage, clock):
    return LocationRegistry(storage, clock)


@pytest.fixture
def eta(locations, packs, clock):
    settings = Settings()
    return EtaService(
        locations,
        packs,
        sites=settings.sites,
        default_lab_site=settings.default_lab_site,
        default_clinical_site=settings.default_clinical_site,
        clock=clock,
    )


@pytest.fixture
def sample_event(events):
    return events.create_event(lab_type="Main Lab", location="Emergency Department", patient_mrn="MRN001")


@pytest.fixture
def sample_pack(packs, sample_event):
    return packs.create_pack(sample_event.id, "Pack A", "6 FFP, 2 Cryo, 1 Platelets", ffp=6, cryo=2, platelets=1)


@pytest.fixture
def client(clock):
    """API client over a fresh in-memory backend"""
    app = create_app(Settings(), storage=MemoryStorage(), clock=clock)
    with TestClient(app) as test_client:
        yield test_client
