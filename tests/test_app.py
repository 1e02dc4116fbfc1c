import logging
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from datastore.base import StoreError
from datastore.memory import InMemoryReadingStore
from models.records import DeviceClass, ReadingQuery


def _dht_payload(device_id: str = "esp32-dht-light-01", **sensors) -> dict:
    values = {"temp_dht_c": 27.2, "humidity_pct": 47.3, "light_lux": 120.5}
    values.update(sensors)
    return {"deviceId": device_id, "sensors": values}


def _bme_payload(device_id: str = "esp32-bme-01", **sensors) -> dict:
    values = {
        "temp_bme_c": 26.8,
        "humidity_bme_pct": 45.1,
        "pressure_hpa": 1012.3,
        "gas_resistance_ohms": 123456.7,
    }
    values.update(sensors)
    return {"deviceId": device_id, "sensors": values}


def test_root_lists_endpoints(api_client: TestClient) -> None:
    response = api_client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["endpoints"]["dhtLightReadings"] == "/api/dht-light-readings"
    assert body["endpoints"]["bmeReadings"] == "/api/bme-readings"
    assert api_client.get("/health").json() == {"status": "ok"}


def test_create_dht_light_reading_derives_light_fields(api_client: TestClient) -> None:
    response = api_client.post("/api/dht-light-readings", json=_dht_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["id"]
    assert body["deviceId"] == "esp32-dht-light-01"
    assert body["createdAt"]
    assert body["sensors"] == {
        "temp_dht_c": 27.2,
        "humidity_pct": 47.3,
        "light_lux": 120.5,
        "light_state": 0,
        "light_level": "poco iluminado",
    }


def test_client_supplied_light_level_is_ignored(api_client: TestClient) -> None:
    payload = _dht_payload(light_lux=3, light_level="muy iluminado", light_state=1)

    response = api_client.post("/api/dht-light-readings", json=payload)

    assert response.status_code == 201
    sensors = response.json()["sensors"]
    assert sensors["light_level"] == "muy oscuro"
    assert sensors["light_state"] == 0


def test_created_reading_is_retrievable(api_client: TestClient) -> None:
    created = api_client.post("/api/bme-readings", json=_bme_payload()).json()

    listing = api_client.get("/api/bme-readings").json()
    latest = api_client.get("/api/bme-readings/latest").json()

    assert listing["data"] == [created]
    assert listing["meta"] == {"total": 1, "page": 1, "limit": 50, "totalPages": 1}
    assert latest == created


def test_device_id_is_normalized_on_write_and_read(api_client: TestClient) -> None:
    for raw in ("ESP32-A ", "esp32-a", " esp32-a"):
        response = api_client.post("/api/dht-light-readings", json=_dht_payload(device_id=raw))
        assert response.status_code == 201
        assert response.json()["deviceId"] == "esp32-a"

    listing = api_client.get("/api/dht-light-readings", params={"deviceId": " ESP32-A"})
    latest = api_client.get("/api/dht-light-readings/latest", params={"deviceId": "Esp32-A"})

    assert listing.json()["meta"]["total"] == 3
    assert latest.status_code == 200
    assert latest.json()["deviceId"] == "esp32-a"


@pytest.mark.parametrize(
    "payload, field",
    [
        ({"sensors": {"temp_dht_c": 20, "humidity_pct": 40, "light_lux": 10}}, "deviceId"),
        ({"deviceId": "   ", "sensors": {"temp_dht_c": 20, "humidity_pct": 40, "light_lux": 10}}, "deviceId"),
        ({"deviceId": 42, "sensors": {"temp_dht_c": 20, "humidity_pct": 40, "light_lux": 10}}, "deviceId"),
        ({"deviceId": "node"}, "sensors"),
        (_dht_payload(temp_dht_c="27.2"), "sensors.temp_dht_c"),
        (_dht_payload(humidity_pct=101), "sensors.humidity_pct"),
        (_dht_payload(light_lux=-1), "sensors.light_lux"),
        (_dht_payload(temp_dht_c=True), "sensors.temp_dht_c"),
        ({"deviceId": "node", "sensors": {"temp_dht_c": 20, "humidity_pct": 40}}, "sensors.light_lux"),
    ],
)
def test_invalid_dht_payload_is_rejected_without_writing(
    api_client: TestClient, store: InMemoryReadingStore, payload: dict, field: str
) -> None:
    response = api_client.post("/api/dht-light-readings", json=payload)

    assert response.status_code == 400
    assert field in response.json()["detail"]
    assert store.count(DeviceClass.dht_light, ReadingQuery()) == 0


@pytest.mark.parametrize(
    "sensors, field",
    [
        ({"pressure_hpa": 250}, "sensors.pressure_hpa"),
        ({"pressure_hpa": 1200}, "sensors.pressure_hpa"),
        ({"gas_resistance_ohms": -5}, "sensors.gas_resistance_ohms"),
        ({"humidity_bme_pct": -0.1}, "sensors.humidity_bme_pct"),
    ],
)
def test_out_of_range_bme_payload_is_rejected(
    api_client: TestClient, sensors: dict, field: str
) -> None:
    response = api_client.post("/api/bme-readings", json=_bme_payload(**sensors))

    assert response.status_code == 400
    assert field in response.json()["detail"]
    assert api_client.get("/api/bme-readings").json()["meta"]["total"] == 0


def test_nan_is_rejected(api_client: TestClient) -> None:
    body = (
        '{"deviceId": "node", "sensors": '
        '{"temp_dht_c": NaN, "humidity_pct": 40, "light_lux": 10}}'
    )

    response = api_client.post(
        "/api/dht-light-readings",
        content=body,
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 400
    assert "sensors.temp_dht_c" in response.json()["detail"]


def test_pagination_caps_limit_and_counts_pages(
    api_client: TestClient, store: InMemoryReadingStore, make_doc
) -> None:
    base = datetime(2025, 11, 18, 12, 0, tzinfo=timezone.utc)
    for offset in range(205):
        store.insert(DeviceClass.bme, make_doc(DeviceClass.bme, base + timedelta(seconds=offset)))

    first = api_client.get("/api/bme-readings", params={"limit": 500}).json()
    second = api_client.get("/api/bme-readings", params={"limit": 500, "page": 2}).json()

    assert len(first["data"]) == 200
    assert first["meta"] == {"total": 205, "page": 1, "limit": 200, "totalPages": 2}
    assert len(second["data"]) == 5
    created = [item["createdAt"] for item in first["data"]]
    assert created == sorted(created, reverse=True)


def test_bad_pagination_values_fall_back(api_client: TestClient) -> None:
    meta = api_client.get(
        "/api/bme-readings", params={"limit": "abc", "page": "-3"}
    ).json()["meta"]

    assert meta["limit"] == 50
    assert meta["page"] == 1
    assert meta["totalPages"] == 0


def test_list_filters_by_local_calendar_days(
    api_client: TestClient, store: InMemoryReadingStore, make_doc
) -> None:
    # America/Mexico_City is UTC-6.
    stamps = {
        "before": datetime(2025, 11, 18, 5, 0, tzinfo=timezone.utc),
        "first-day": datetime(2025, 11, 18, 18, 0, tzinfo=timezone.utc),
        "last-day-late": datetime(2025, 11, 20, 5, 30, tzinfo=timezone.utc),
        "after": datetime(2025, 11, 20, 14, 0, tzinfo=timezone.utc),
    }
    for device_id, created_at in stamps.items():
        store.insert(
            DeviceClass.dht_light,
            make_doc(DeviceClass.dht_light, created_at, device_id=device_id),
        )

    response = api_client.get(
        "/api/dht-light-readings", params={"from": "2025-11-18", "to": "2025-11-19"}
    )

    assert response.status_code == 200
    assert [item["deviceId"] for item in response.json()["data"]] == [
        "last-day-late",
        "first-day",
    ]


def test_unparsable_dates_are_ignored(
    api_client: TestClient, store: InMemoryReadingStore, make_doc
) -> None:
    store.insert(
        DeviceClass.bme,
        make_doc(DeviceClass.bme, datetime(2025, 1, 1, tzinfo=timezone.utc)),
    )

    response = api_client.get("/api/bme-readings", params={"from": "yesterday", "to": "2025-13-40"})

    assert response.status_code == 200
    assert response.json()["meta"]["total"] == 1


def test_latest_returns_newest_reading(
    api_client: TestClient, store: InMemoryReadingStore, make_doc
) -> None:
    older = datetime(2025, 11, 18, 12, 0, tzinfo=timezone.utc)
    store.insert(DeviceClass.bme, make_doc(DeviceClass.bme, older + timedelta(hours=1), device_id="b"))
    store.insert(DeviceClass.bme, make_doc(DeviceClass.bme, older, device_id="a"))

    assert api_client.get("/api/bme-readings/latest").json()["deviceId"] == "b"
    assert (
        api_client.get("/api/bme-readings/latest", params={"deviceId": "A"}).json()["deviceId"]
        == "a"
    )


def test_latest_not_found(api_client: TestClient) -> None:
    empty = api_client.get("/api/dht-light-readings/latest")
    missing = api_client.get("/api/dht-light-readings/latest", params={"deviceId": "ghost"})

    assert empty.status_code == 404
    assert missing.status_code == 404
    assert "ghost" in missing.json()["detail"]


def test_empty_device_filter_matches_every_device(api_client: TestClient) -> None:
    api_client.post("/api/bme-readings", json=_bme_payload(device_id="node-a"))
    api_client.post("/api/bme-readings", json=_bme_payload(device_id="node-b"))

    listed = api_client.get("/api/bme-readings", params={"deviceId": ""})
    blank = api_client.get("/api/bme-readings", params={"deviceId": "  "})
    latest = api_client.get("/api/bme-readings/latest", params={"deviceId": ""})

    assert listed.status_code == 200
    assert listed.json()["meta"]["total"] == 2
    assert blank.json()["meta"]["total"] == 2
    assert latest.status_code == 200
    assert latest.json()["deviceId"] == "node-b"


def test_blank_device_id_in_body_is_rejected(api_client: TestClient, store) -> None:
    response = api_client.post("/api/bme-readings", json=_bme_payload(device_id="   "))

    assert response.status_code == 400
    assert store.count(DeviceClass.bme, ReadingQuery()) == 0


def test_readings_without_light_state_are_served(api_client: TestClient, store, make_doc) -> None:
    document = make_doc(
        DeviceClass.dht_light,
        datetime(2025, 11, 18, 18, tzinfo=timezone.utc),
        light_lux=120.0,
        light_level="poco iluminado",
    )
    del document["sensors"]["light_state"]
    store.insert(DeviceClass.dht_light, document)

    listed = api_client.get("/api/dht-light-readings")
    latest = api_client.get("/api/dht-light-readings/latest")
    current = api_client.get("/api/stats/current")

    assert listed.status_code == 200
    assert listed.json()["data"][0]["sensors"]["light_state"] is None
    assert listed.json()["data"][0]["sensors"]["light_level"] == "poco iluminado"
    assert latest.status_code == 200
    assert current.status_code == 200
    assert current.json()["sources"]["dhtLatest"]["sensors"]["light_state"] is None
    assert current.json()["derived"]["light"]["value"] == 120.0


def test_store_failure_returns_generic_error(client_for, caplog) -> None:
    class FailingStore(InMemoryReadingStore):
        def insert(self, device_class, document):
            raise StoreError("connection reset by peer")

    store = FailingStore()
    with client_for(store) as client, caplog.at_level(logging.ERROR):
        response = client.post("/api/bme-readings", json=_bme_payload())

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}
    assert any("Store operation failed" in record.getMessage() for record in caplog.records)
    assert store.count(DeviceClass.bme, ReadingQuery()) == 0


def test_unreachable_store_aborts_startup(client_for) -> None:
    class UnreachableStore(InMemoryReadingStore):
        def ping(self) -> None:
            raise StoreError("server selection timeout")

    with pytest.raises(StoreError):
        with client_for(UnreachableStore()):
            pass  # pragma: no cover


def test_ingestion_is_logged(api_client: TestClient, caplog) -> None:
    with caplog.at_level(logging.INFO):
        api_client.post("/api/dht-light-readings", json=_dht_payload(device_id="Node-7"))

    records = [record for record in caplog.records if record.name == "services.readings"]
    assert records
    assert getattr(records[-1], "device_id", None) == "node-7"
    assert getattr(records[-1], "device_class", None) == "dht-light"
