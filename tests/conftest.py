from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Iterator, Optional

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from datastore.base import ReadingStore
from datastore.memory import InMemoryReadingStore
from models.records import DeviceClass
from settings import get_settings


def make_document(
    device_class: DeviceClass,
    created_at: datetime,
    device_id: str = "esp32-node-01",
    **sensors: Any,
) -> Dict[str, Any]:
    defaults: Dict[str, Any]
    if device_class is DeviceClass.dht_light:
        defaults = {
            "temp_dht_c": 25.0,
            "humidity_pct": 50.0,
            "light_lux": 400.0,
            "light_state": 1,
            "light_level": "bien iluminado",
        }
    else:
        defaults = {
            "temp_bme_c": 25.0,
            "humidity_bme_pct": 50.0,
            "pressure_hpa": 1012.0,
            "gas_resistance_ohms": 120000.0,
        }
    defaults.update(sensors)
    return {"deviceId": device_id, "sensors": defaults, "createdAt": created_at}


def install_store(monkeypatch, store: ReadingStore) -> None:
    def build_test_store(backend: Optional[str] = None) -> ReadingStore:
        return store

    build_test_store.cache_clear = lambda: None  # type: ignore[attr-defined]
    monkeypatch.setattr("app.main.build_default_store", build_test_store)


@pytest.fixture(autouse=True)
def fresh_settings() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store() -> InMemoryReadingStore:
    return InMemoryReadingStore()


@pytest.fixture
def api_client(store: InMemoryReadingStore, monkeypatch) -> Iterator[TestClient]:
    install_store(monkeypatch, store)
    app = create_app()
    with TestClient(app) as client:
        yield client


@pytest.fixture
def make_doc() -> Callable[..., Dict[str, Any]]:
    return make_document


@pytest.fixture
def client_for(monkeypatch) -> Callable[[ReadingStore], TestClient]:
    """Build a client over an arbitrary store; enter it to run the lifespan."""

    def factory(store: ReadingStore) -> TestClient:
        install_store(monkeypatch, store)
        return TestClient(create_app())

    return factory
