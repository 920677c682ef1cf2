from datetime import date

import pytest

from config import TestConfig
from clinic_store.app_factory import create_store
from clinic_store.services.blob_store import MemoryBlobStore

# Fixed "today" so booking-window checks do not depend on when the suite runs.
TODAY = date(2025, 3, 10)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def make_store(today):
    def _make(config=TestConfig, blob_store=None, latency: float = 0.0):
        return create_store(
            config,
            blob_store=blob_store or MemoryBlobStore(latency=latency),
            today=lambda: today,
        )

    return _make


@pytest.fixture
def store(make_store, blob_store):
    return make_store(blob_store=blob_store)


@pytest.fixture
def booking():
    """Valid create() kwargs; tests override single fields."""
    return dict(
        patient_id="p1",
        patient_name="Ana Souza",
        doctor_id="d1",
        doctor_name="Dr. João Silva",
        date="15/03/2025",
        time="10:00",
        specialty="Cardiology",
    )
