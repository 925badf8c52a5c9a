"""HTTP tests for the Code Red API routers."""

import pytest


def _activate(client, location="Emergency Department", **extra):
    payload = {"lab_type": "Main Lab", "location": location, "patient_mrn": "MRN001", **extra}
    response = client.post("/api/code-red", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


def _add_pack(client, event_id, name="Pack A"):
    response = client.post("/api/packs", json={
        "code_red_event_id": event_id,
        "name": name,
        "composition": "6 FFP, 2 Cryo",
        "ffp": 6,
        "cryo": 2,
    })
    assert response.status_code == 200, response.text
    return response.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy", "storage": "memory"}


class TestCodeRedEndpoints:
    def test_activate_and_fetch(self, client):
        event = _activate(client)
        assert event["original_location"] == "Emergency Department"
        assert event["is_active"] is True

        assert client.get(f"/api/code-red/{event['id']}").json()["id"] == event["id"]
        assert client.get("/api/code-red/active").json()["id"] == event["id"]
        assert len(client.get("/api/code-red/all-active").json()) == 1

    def test_activate_missing_field(self, client):
        response = client.post("/api/code-red", json={"lab_type": "Main Lab", "location": "", "patient_mrn": "M"})
        assert response.status_code == 400
        assert "Location is required" in response.json()["detail"]

    def test_no_active_event(self, client):
        response = client.get("/api/code-red/active")
        assert response.status_code == 200
        assert response.json() is None

    def test_deactivated_event_is_404_but_audited(self, client):
        event = _activate(client)
        assert client.post(f"/api/code-red/{event['id']}/deactivate").status_code == 200

        assert client.get(f"/api/code-red/{event['id']}").status_code == 404
        audit = client.get("/api/code-red/audit/all").json()
        assert audit[0]["id"] == event["id"]
        assert audit[0]["deactivation_time"] is not None

    def test_assign_and_list_for_user(self, client):
        event = _activate(client)
        response = client.post(f"/api/code-red/{event['id']}/assign", json={"user_id": "r1", "user_type": "runner"})
        assert response.json()["assigned_runner_id"] == "r1"

        mine = client.get("/api/code-red/user/r1/runner").json()
        assert [e["id"] for e in mine] == [event["id"]]

    def test_assign_missing_event_returns_null(self, client):
        response = client.post("/api/code-red/999/assign", json={"user_id": "r1", "user_type": "runner"})
        assert response.status_code == 200
        assert response.json() is None

    def test_assign_bad_role(self, client):
        event = _activate(client)
        response = client.post(f"/api/code-red/{event['id']}/assign", json={"user_id": "x", "user_type": "lab"})
        assert response.status_code == 400
        assert client.get("/api/code-red/user/x/lab").status_code == 400

    def test_move_patient(self, client):
        event = _activate(client)
        response = client.patch("/api/code-red/location", json={"code_red_id": event["id"], "new_location": "ICU"})
        body = response.json()
        assert body["location"] == "ICU"
        assert body["location_history"][0]["from_location"] == "Emergency Department"

        missing = client.patch("/api/code-red/location", json={"code_red_id": 999, "new_location": "ICU"})
        assert missing.status_code == 404

    def test_change_lab(self, client):
        event = _activate(client)
        client.patch(f"/api/code-red/{event['id']}/lab", json={"lab_type": "Satellite Lab"})
        assert client.get(f"/api/code-red/{event['id']}").json()["lab_type"] == "Satellite Lab"

    def test_delete_removes_packs(self, client):
        event = _activate(client)
        pack = _add_pack(client, event["id"])

        assert client.delete(f"/api/code-red/{event['id']}").status_code == 200
        assert client.get(f"/api/packs/{pack['id']}").status_code == 404
        assert client.get("/api/code-red/audit/all").json() == []


class TestPackEndpoints:
    def test_create_under_missing_event(self, client):
        response = client.post("/api/packs", json={"code_red_event_id": 5, "name": "Pack A", "composition": "1 FFP"})
        assert response.status_code == 404

    def test_stage_changes(self, client):
        event = _activate(client)
        pack = _add_pack(client, event["id"])
        assert pack["current_stage"] == 1
        assert pack["order_received_time"] is not None

        moved = client.patch("/api/packs/stage", json={"pack_id": pack["id"], "stage": 4}).json()
        assert moved["current_stage"] == 4
        assert moved["order_collected_time"] is not None

        back = client.patch("/api/packs/stage", json={"pack_id": pack["id"], "stage": 2}).json()
        assert back["current_stage"] == 2
        assert back["order_collected_time"] == moved["order_collected_time"]

    @pytest.mark.parametrize("stage", [0, 7])
    def test_stage_out_of_range(self, client, stage):
        event = _activate(client)
        pack = _add_pack(client, event["id"])
        response = client.patch("/api/packs/stage", json={"pack_id": pack["id"], "stage": stage})
        assert response.status_code == 400
        assert client.get(f"/api/packs/{pack['id']}").json()["current_stage"] == 1

    def test_stage_missing_pack(self, client):
        assert client.patch("/api/packs/stage", json={"pack_id": 999, "stage": 2}).status_code == 404

    def test_estimate(self, client):
        event = _activate(client)
        pack = _add_pack(client, event["id"])

        set_ = client.patch("/api/packs/estimate", json={"pack_id": pack["id"], "estimated_minutes": 20}).json()
        assert set_["estimated_ready_time"] is not None

        cleared = client.patch("/api/packs/estimate", json={"pack_id": pack["id"], "estimated_minutes": None}).json()
        assert cleared["estimated_ready_time"] is None

        too_long = client.patch("/api/packs/estimate", json={"pack_id": pack["id"], "estimated_minutes": 121})
        assert too_long.status_code == 400

    def test_arrival(self, client):
        event = _activate(client)
        pack = _add_pack(client, event["id"])
        client.post("/api/location/update", json={
            "user_id": "runner1", "user_type": "runner", "latitude": "51.5074", "longitude": "-0.1278",
        })
        client.patch("/api/packs/stage", json={"pack_id": pack["id"], "stage": 3})

        arrival = client.post(f"/api/packs/{pack['id']}/arrival", json={"runner_id": "runner1"}).json()
        assert arrival["destination"] == "lab"
        assert arrival["estimated_minutes"] == 0

        bad_site = client.post(f"/api/packs/{pack['id']}/arrival", json={"runner_id": "runner1", "lab_site": "Roof"})
        assert bad_site.status_code == 400

    def test_delete_pack(self, client):
        event = _activate(client)
        pack = _add_pack(client, event["id"])
        assert client.delete(f"/api/packs/{pack['id']}").status_code == 200
        assert client.delete(f"/api/packs/{pack['id']}").status_code == 404


class TestLocationEndpoints:
    def test_update_and_get(self, client):
        response = client.post("/api/location/update", json={
            "user_id": "runner1", "user_type": "runner", "latitude": "0", "longitude": "0", "accuracy": 8,
        })
        assert response.status_code == 200
        assert client.get("/api/location/runner1").json()["accuracy"] == 8
        assert client.get("/api/location/nobody").json() is None
        assert [l["user_id"] for l in client.get("/api/location/active").json()] == ["runner1"]

    def test_update_accepts_fractional_accuracy(self, client):
        response = client.post("/api/location/update", json={
            "user_id": "runner1", "user_type": "runner", "latitude": "51.5074", "longitude": "-0.1278",
            "accuracy": 12.5,
        })
        assert response.status_code == 200, response.text
        assert client.get("/api/location/runner1").json()["accuracy"] == 12.5

    def test_update_rejects_bad_type(self, client):
        response = client.post("/api/location/update", json={
            "user_id": "x", "user_type": "porter", "latitude": "0", "longitude": "0",
        })
        assert response.status_code == 400

    def test_estimate(self, client):
        client.post("/api/location/update", json={
            "user_id": "runner1", "user_type": "runner", "latitude": "0", "longitude": "0",
        })
        response = client.get("/api/location/estimate/runner1", params={"lat": "0", "lng": "0.0899322"})
        assert response.json() == {"estimated_minutes": 120}

        unknown = client.get("/api/location/estimate/ghost", params={"lat": "0", "lng": "0"})
        assert unknown.json() == {"estimated_minutes": None}

        assert client.get("/api/location/estimate/runner1").status_code == 422

    def test_estimate_invalid_target_is_null(self, client):
        client.post("/api/location/update", json={
            "user_id": "runner1", "user_type": "runner", "latitude": "0", "longitude": "0",
        })
        response = client.get("/api/location/estimate/runner1", params={"lat": "abc", "lng": "0"})
        assert response.status_code == 200
        assert response.json() == {"estimated_minutes": None}

    def test_sites(self, client):
        body = client.get("/api/location/sites").json()
        assert body["default_lab_site"] == "Main Lab"
        assert "ICU" in [s["name"] for s in body["sites"]]
