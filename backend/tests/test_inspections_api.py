from __future__ import annotations

FRIDGE = {"scope": "unit-1", "category": 3, "item": 0, "severity": "moderate", "defect": 0}
FRIDGE_SEVERE = {**FRIDGE, "severity": "severe"}  # refrigerator has no severe tier
WIRE_NUTS_U2 = {"scope": "unit-2", "category": 5, "item": 0, "severity": "severe", "defect": 4}


def _start(client, total_units: int = 100, **extra) -> dict:
    r = client.post("/api/inspections", json={"property_name": "Oak Terrace", "total_units": total_units, **extra})
    assert r.status_code == 200, r.text
    return r.json()


def test_health_and_catalog(client):
    h = client.get("/api/health")
    assert h.status_code == 200
    assert h.json()["ok"] is True
    assert h.headers.get("X-Request-ID")

    cat = client.get("/api/catalog").json()
    assert cat["version"] == h.json()["catalog_version"]
    assert len(cat["categories"]) == 6

    common = client.get("/api/catalog", params={"scope": "common"}).json()
    assert [c["index"] for c in common["categories"]] == [0, 1, 2]

    assert client.get("/api/catalog", params={"scope": "attic"}).status_code == 400


def test_request_id_is_echoed(client):
    r = client.get("/api/health", headers={"X-Request-ID": "req-123"})
    assert r.headers["X-Request-ID"] == "req-123"


def test_oversized_request_id_is_replaced(client):
    r = client.get("/api/health", headers={"X-Request-ID": "x" * 500})
    rid = r.headers["X-Request-ID"]
    assert rid != "x" * 500
    assert len(rid) == 32
    int(rid, 16)


def test_sample_size_endpoint(client):
    r = client.get("/api/sample-size", params={"total_units": 100})
    assert r.status_code == 200
    assert r.json() == {"total_units": 100, "sample_size": 8}

    bad = client.get("/api/sample-size", params={"total_units": 0})
    assert bad.status_code == 400
    assert bad.json()["error"] == "InvalidPopulationSize"


def test_full_inspection_flow(client):
    insp = _start(client, year_built=1965)
    assert insp["sample_size"] == 8
    assert insp["status"] == "in_progress"
    iid = insp["id"]

    r = client.post(f"/api/inspections/{iid}/occurrences", json=FRIDGE)
    assert r.status_code == 200, r.text
    assert r.json()["count"] == 1

    score = client.get(f"/api/inspections/{iid}/score").json()
    # 0.23 / 8 * 100 = 2.875 interior
    assert score["interior_score"] == 2.88
    assert score["final_score"] == 97.13
    assert score["passed"] is True
    assert score["grade"] == "A"

    n = client.put(f"/api/inspections/{iid}/notes", json={**FRIDGE, "text": "warm inside"})
    assert n.json()["note"] == "warm inside"
    n = client.put(f"/api/inspections/{iid}/notes", json={**FRIDGE, "text": "door gasket torn", "append": True})
    assert n.json()["note"] == "warm inside\ndoor gasket torn"

    client.post(f"/api/inspections/{iid}/occurrences", json=WIRE_NUTS_U2)

    rep = client.get(f"/api/inspections/{iid}/report").json()
    assert [row["item"] for row in rep["rows"]] == ["Refrigerator", "Wires or Conductors"]
    assert rep["rows"][0]["note"] == "warm inside\ndoor gasket torn"
    assert rep["score"]["passed"] is False
    # (0.23 + 2.50) / 8 * 100 = 34.125 interior
    assert rep["score"]["final_score"] == 65.88
    assert rep["score"]["failure_reasons"] == ["interior_deduction_exceeded", "life_threatening_defect"]

    only_moderate = client.get(f"/api/inspections/{iid}/report", params={"severity": "moderate"}).json()
    assert [row["item"] for row in only_moderate["rows"]] == ["Refrigerator"]
    assert only_moderate["score"] == rep["score"]

    done = client.post(f"/api/inspections/{iid}/complete")
    assert done.status_code == 200
    assert done.json()["critical_findings"][0]["location"] == "Unit 2"

    again = client.get(f"/api/inspections/{iid}")
    assert again.json()["status"] == "completed"
    assert len(again.json()["observations"]) == 2


def test_decrement_round_trip_over_http(client):
    iid = _start(client)["id"]
    client.post(f"/api/inspections/{iid}/occurrences", json=FRIDGE)
    r = client.post(f"/api/inspections/{iid}/occurrences", json={**FRIDGE, "delta": -1})
    assert r.json()["count"] == 0

    r = client.post(f"/api/inspections/{iid}/occurrences", json={**FRIDGE, "delta": -1})
    assert r.json()["count"] == 0
    assert client.get(f"/api/inspections/{iid}").json()["observations"] == []
    assert client.get(f"/api/inspections/{iid}/score").json()["final_score"] == 100.0


def test_recording_after_completion_conflicts(client):
    iid = _start(client)["id"]
    client.post(f"/api/inspections/{iid}/complete")

    r = client.post(f"/api/inspections/{iid}/occurrences", json=FRIDGE)
    assert r.status_code == 409
    assert r.json()["error"] == "inspection_locked"

    r = client.put(f"/api/inspections/{iid}/notes", json={**FRIDGE, "text": "late"})
    assert r.status_code == 409


def test_dangling_key_conflicts(client):
    iid = _start(client)["id"]
    r = client.post(f"/api/inspections/{iid}/occurrences", json=FRIDGE_SEVERE)
    assert r.status_code == 409
    assert r.json()["error"] == "dangling_defect_reference"

    r = client.post(f"/api/inspections/{iid}/occurrences", json={**FRIDGE, "category": 40})
    assert r.status_code == 409


def test_unit_outside_sample_is_rejected(client):
    iid = _start(client)["id"]
    r = client.post(f"/api/inspections/{iid}/occurrences", json={**FRIDGE, "scope": "unit-9"})
    assert r.status_code == 400
    assert r.json()["error"] == "ScopeOutOfRange"


def test_invalid_payloads(client):
    assert client.post("/api/inspections", json={"total_units": 0}).status_code == 400
    iid = _start(client)["id"]
    r = client.post(f"/api/inspections/{iid}/occurrences", json={**FRIDGE, "category": -1})
    assert r.status_code == 422


def test_missing_inspection_is_404(client):
    assert client.get("/api/inspections/424242").status_code == 404
    assert client.get("/api/inspections/424242/score").status_code == 404
    assert client.post("/api/inspections/424242/occurrences", json=FRIDGE).status_code == 404
