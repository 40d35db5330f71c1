def _goal(client, **overrides):
    payload = {"name": "Emergency fund", "target": 1000, "deadline": "2025-12-31"}
    payload.update(overrides)
    r = client.post("/api/goals", json=payload)
    assert r.status_code == 201, r.text
    return r.json()


def test_goal_crud(client):
    goal = _goal(client)
    assert goal["saved"] == 0
    assert goal["status"] == "ACTIVE"

    r = client.get("/api/goals")
    assert [g["id"] for g in r.json()] == [goal["id"]]

    r = client.put(f"/api/goals/{goal['id']}", json={"name": "Rainy day", "status": "paused"})
    assert r.status_code == 200, r.text
    assert r.json()["name"] == "Rainy day"
    assert r.json()["status"] == "PAUSED"

    assert client.delete(f"/api/goals/{goal['id']}").status_code == 204
    assert client.get("/api/goals").json() == []


def test_contributions_complete_goal(client):
    goal = _goal(client, target=500)
    r = client.post(f"/api/goals/{goal['id']}/add", json={"amount": 200})
    assert r.status_code == 200
    assert r.json()["saved"] == 200
    assert r.json()["status"] == "ACTIVE"

    r = client.post(f"/api/goals/{goal['id']}/add", json={"amount": 300})
    assert r.json()["saved"] == 500
    assert r.json()["status"] == "COMPLETED"


def test_goal_validation_and_not_found(client):
    assert client.post("/api/goals", json={"name": "x", "target": -5}).status_code == 422
    assert client.post("/api/goals/999/add", json={"amount": 10}).status_code == 404
    assert client.put("/api/goals/999", json={"name": "y"}).status_code == 404
    assert client.delete("/api/goals/999").status_code == 404
    goal = _goal(client)
    assert client.post(f"/api/goals/{goal['id']}/add", json={"amount": 0}).status_code == 422
