from tests.conftest import as_utc, create_board, create_device

def _sensor(client, type="temperature_sensor"):
    board = create_board(client)
    return create_device(client, board["id"], type)

def test_record_reading_returns_enriched_row(client):
    dev = _sensor(client)
    resp = client.post("/api/sensors/latest", json={
        "device_id": dev["id"], "sensor_type": "temperature", "value": 23.5, "unit": "C",
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["value"] == 23.5
    assert body["unit"] == "C"
    assert body["timestamp"]
    assert body["devices"]["id"] == dev["id"]
    assert body["devices"]["boards"]["board_type"] == "esp32"

def test_reading_timestamp_round_trips(client):
    dev = _sensor(client)
    created = client.post("/api/sensors/latest", json={
        "device_id": dev["id"], "sensor_type": "temperature", "value": 19.0,
    }).json()
    [latest] = client.get("/api/sensors/latest").json()
    assert as_utc(latest["timestamp"]) == as_utc(created["timestamp"])

def test_reading_value_alias_is_normalized(client):
    dev = _sensor(client, "ldr")
    resp = client.post("/api/sensors/latest", json={
        "device_id": dev["id"], "sensor_type": "light", "reading_value": 812,
    })
    assert resp.status_code == 201
    assert resp.json()["value"] == 812
    assert resp.json()["unit"] is None
    assert "reading_value" not in resp.json()

def test_zero_is_a_valid_reading(client):
    dev = _sensor(client, "gas_sensor")
    resp = client.post("/api/sensors/latest", json={"device_id": dev["id"], "sensor_type": "smoke", "value": 0})
    assert resp.status_code == 201

def test_record_reading_missing_fields(client):
    resp = client.post("/api/sensors/latest", json={"device_id": "x"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing required fields: sensor_type, value (or reading_value)"

def test_record_reading_rejects_non_numeric(client):
    dev = _sensor(client)
    resp = client.post("/api/sensors/latest", json={
        "device_id": dev["id"], "sensor_type": "temperature", "value": "warm",
    })
    assert resp.status_code == 400

def test_latest_keeps_newest_reading_per_device(client):
    a = _sensor(client)
    board = create_board(client, name="Second")
    b = create_device(client, board["id"], "rain_sensor")
    for v in (20.0, 21.0, 22.5):
        client.post("/api/sensors/latest", json={"device_id": a["id"], "sensor_type": "temperature", "value": v})
    client.post("/api/sensors/latest", json={"device_id": b["id"], "sensor_type": "rain", "value": 400})

    latest = client.get("/api/sensors/latest").json()
    by_device = {r["device_id"]: r for r in latest}
    assert len(latest) == 2
    assert by_device[a["id"]]["value"] == 22.5
    assert by_device[b["id"]]["value"] == 400
    assert by_device[a["id"]]["devices"]["name"] == "temperature_sensor"

def test_latest_is_empty_without_readings(client):
    assert client.get("/api/sensors/latest").json() == []

def test_batch_skips_invalid_entries(client):
    dev = _sensor(client)
    resp = client.post("/api/sensors/batch", json={"readings": [
        {"device_id": dev["id"], "sensor_type": "temperature", "value": 21.0, "unit": "C"},
        {"device_id": dev["id"], "sensor_type": "humidity", "value": 55},
        {"device_id": dev["id"], "value": 1},
        {"sensor_type": "temperature", "value": 1},
        {"device_id": dev["id"], "sensor_type": "temperature"},
    ]})
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["count"] == 2
    assert {r["sensor_type"] for r in body["readings"]} == {"temperature", "humidity"}
    assert body["readings"][0]["devices"]["id"] == dev["id"]

def test_batch_with_no_valid_entries_inserts_nothing(client):
    dev = _sensor(client)
    resp = client.post("/api/sensors/batch", json={"readings": [
        {"device_id": dev["id"], "sensor_type": "temperature"},
        {"sensor_type": "temperature", "value": 3},
    ]})
    assert resp.status_code == 400
    assert resp.json()["error"] == "No valid readings found"
    assert client.get("/api/sensors/latest").json() == []

def test_batch_requires_array(client):
    for payload in ({}, {"readings": []}, {"readings": "nope"}):
        resp = client.post("/api/sensors/batch", json=payload)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Missing required field: readings (array)"
