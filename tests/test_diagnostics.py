from tests.conftest import BrokenSession, create_board

def test_connection_reports_every_table(client):
    create_board(client)
    body = client.get("/api/test-connection").json()
    assert body["success"] is True
    assert set(body["existingTables"]) == {
        "boards", "devices", "rooms", "systems", "sensor_readings", "command_queue",
    }
    assert body["tableDetails"]["boards"] == {"exists": True, "sampleCount": 1}
    assert body["tableDetails"]["devices"]["sampleCount"] == 0

def test_connection_fails_when_nothing_is_reachable(client, monkeypatch):
    monkeypatch.setattr("homedash.diagnostics.get_session", lambda: BrokenSession("no such host"))
    resp = client.get("/api/test-connection")
    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "No accessible tables found"
    assert body["tableTests"]["boards"] == {"exists": False, "error": "no such host"}

def test_inspect_tables_samples_rows(client):
    for i in range(4):
        create_board(client, name=f"Board {i}")
    tables = client.get("/api/inspect-tables").json()["tables"]
    assert tables["boards"]["count"] == 3
    assert "mac_address" in tables["boards"]["columns"]
    assert tables["rooms"] == {"count": 0, "sampleData": [], "columns": []}

def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}
