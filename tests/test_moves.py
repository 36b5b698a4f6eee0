from fastapi.testclient import TestClient

from moveops.deps import get_execution_service
from moveops.main import app


def _token(client):
    client.post("/auth/register", json={"username": "dispatcher", "password": "p3"})
    r = client.post("/auth/login", data={"username": "dispatcher", "password": "p3"})
    return r.json()["access_token"]


def _h(token: str):
    return {"Authorization": f"Bearer {token}"}


def _seed(client, h, *, crew=2, stock=50):
    deal = client.post(
        "/deals",
        json={"title": "Umzug Berlin", "origin_address": "Teststr. 1", "destination_address": "Neustr. 2",
              "move_date": "2026-05-04"},
        headers=h,
    ).json()
    team = [
        client.post("/employees", json={"first_name": f"Crew{i}", "last_name": "Member"}, headers=h).json()["id"]
        for i in range(crew)
    ]
    material = client.post("/materials", json={"name": "Box", "current_stock": stock}, headers=h).json()
    return deal["id"], team, material["id"]


def test_move_scenario(client):
    h = _h(_token(client))
    deal_id, team, material_id = _seed(client, h)

    r = client.post(f"/moves/{deal_id}/start", json={"team": team}, headers=h)
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "in_progress"
    execution_id = body["id"]

    records = client.get(f"/moves/{execution_id}/time-records", headers=h).json()
    assert len(records) == 2
    assert {rec["employee_id"] for rec in records} == set(team)
    assert all(rec["employee_name"].endswith(" Member") for rec in records)

    r = client.post(f"/moves/{execution_id}/toggle-pause", json={"action": "pause"}, headers=h)
    assert r.json() == {"status": "paused"}
    records = client.get(f"/moves/{execution_id}/time-records", headers=h).json()
    assert all(rec["break_start"] is not None and rec["end_time"] is None for rec in records)

    r = client.post(f"/moves/{execution_id}/toggle-pause", json={"action": "resume"}, headers=h)
    assert r.json() == {"status": "in_progress"}

    active_ids = [row["id"] for row in client.get("/moves/active", headers=h).json()]
    assert execution_id in active_ids

    r = client.post(
        f"/moves/{execution_id}/complete",
        json={"materialUsage": [{"materialId": material_id, "quantity": 2}], "notes": "done"},
        headers=h,
    )
    assert r.status_code == 200
    assert r.json() == {"success": True}

    execution = client.get(f"/moves/{execution_id}", headers=h).json()
    assert execution["status"] == "completed"
    assert execution["end_time"] is not None
    assert execution["notes"] == "done"

    usage = client.get(f"/moves/{execution_id}/materials", headers=h).json()
    assert [(u["material_id"], u["quantity"]) for u in usage] == [(material_id, 2)]
    assert client.get(f"/materials/{material_id}", headers=h).json()["current_stock"] == 48

    active_ids = [row["id"] for row in client.get("/moves/active", headers=h).json()]
    assert execution_id not in active_ids


def test_start_with_empty_team_is_400(client):
    h = _h(_token(client))
    deal_id, _, _ = _seed(client, h, crew=0)

    r = client.post(f"/moves/{deal_id}/start", json={"team": []}, headers=h)

    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_ERROR"
    assert "team" in r.json()["error"]


def test_start_unknown_deal_is_404(client):
    h = _h(_token(client))
    r = client.post("/moves/987654/start", json={"team": [1]}, headers=h)
    assert r.status_code == 404
    assert r.json() == {"error": "deal 987654 not found", "code": "NOT_FOUND"}


def test_illegal_toggle_is_409(client):
    h = _h(_token(client))
    deal_id, team, _ = _seed(client, h, crew=1)
    execution_id = client.post(f"/moves/{deal_id}/start", json={"team": team}, headers=h).json()["id"]

    r = client.post(f"/moves/{execution_id}/toggle-pause", json={"action": "resume"}, headers=h)

    assert r.status_code == 409
    assert r.json()["code"] == "ILLEGAL_TRANSITION"


def test_bad_toggle_action_is_422(client):
    h = _h(_token(client))
    r = client.post("/moves/1/toggle-pause", json={"action": "nap"}, headers=h)
    assert r.status_code == 422
    assert r.json()["code"] == "VALIDATION_ERROR"


def test_complete_with_unknown_material_rolls_back(client):
    h = _h(_token(client))
    deal_id, team, material_id = _seed(client, h, crew=1, stock=5)
    execution_id = client.post(f"/moves/{deal_id}/start", json={"team": team}, headers=h).json()["id"]

    r = client.post(
        f"/moves/{execution_id}/complete",
        json={"materialUsage": [{"materialId": material_id, "quantity": 3}, {"materialId": 424242, "quantity": 1}]},
        headers=h,
    )

    assert r.status_code == 404
    assert client.get(f"/materials/{material_id}", headers=h).json()["current_stock"] == 5
    assert client.get(f"/moves/{execution_id}", headers=h).json()["status"] == "in_progress"
    assert client.get(f"/moves/{execution_id}/materials", headers=h).json() == []


def test_team_endpoints(client):
    h = _h(_token(client))
    deal_id, team, _ = _seed(client, h, crew=3)
    execution_id = client.post(f"/moves/{deal_id}/start", json={"team": team[:2]}, headers=h).json()["id"]

    current = client.get(f"/moves/{execution_id}/team", headers=h).json()
    assert [m["id"] for m in current] == team[:2]

    r = client.put(f"/moves/{execution_id}/team", json={"team": [team[2]]}, headers=h)
    assert r.status_code == 200
    assert [m["id"] for m in r.json()] == [team[2]]


def test_unknown_execution_is_404(client):
    h = _h(_token(client))
    assert client.get("/moves/555555", headers=h).status_code == 404
    assert client.get("/moves/555555/time-records", headers=h).status_code == 404
    r = client.post("/moves/555555/complete", json={"materialUsage": []}, headers=h)
    assert r.status_code == 404


def test_unexpected_error_is_json_500(client):
    h = _h(_token(client))

    class BrokenService:
        def get_active(self):
            raise RuntimeError("disk on fire")

    app.dependency_overrides[get_execution_service] = lambda: BrokenService()
    try:
        r = TestClient(app, raise_server_exceptions=False).get("/moves/active", headers=h)
    finally:
        app.dependency_overrides.pop(get_execution_service, None)

    assert r.status_code == 500
    assert r.json() == {"error": "disk on fire", "code": "INTERNAL_ERROR"}
