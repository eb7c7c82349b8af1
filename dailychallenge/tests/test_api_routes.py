"""
HTTP surface: identity header, status codes and the error envelope.
"""
import logging
from datetime import date, timedelta


def headers(user_id: str) -> dict:
    return {"X-User-Id": user_id}


METRICS = [
    {"id": "water", "name": "Drink water", "type": "boolean", "points": 2},
    {
        "id": "steps",
        "name": "Steps",
        "type": "number",
        "points": 10,
        "scoring_mode": "scaled",
        "threshold": 10000,
    },
]


def create(client, user_id="creator", **overrides):
    body = {
        "name": "Spring reset",
        "starts_at": date.today().isoformat(),
        "duration_days": 30,
        "metrics": METRICS,
    }
    body.update(overrides)
    response = client.post("/v1/challenges", json=body, headers=headers(user_id))
    assert response.status_code == 201, response.text
    return response.json()["data"]


def my_participant_id(client, challenge_id, user_id="creator"):
    response = client.get(f"/v1/challenges/{challenge_id}/progress", headers=headers(user_id))
    assert response.status_code == 200, response.text
    return response.json()["data"]["participant_id"]


class TestIdentity:
    def test_missing_user_header_is_401(self, client):
        response = client.get("/v1/challenges/anything")
        assert response.status_code == 401
        body = response.json()
        assert body["detail"] == "Missing X-User-Id header"
        assert body["error"]["code"] == "http_error"
        assert response.headers["x-request-id"] == body["error"]["request_id"]

    def test_request_id_is_echoed(self, client):
        response = client.get("/healthz", headers={"x-request-id": "rid-123"})
        assert response.status_code == 200
        assert response.headers["x-request-id"] == "rid-123"
        assert response.json() == {"status": "ok", "db": True}

    def test_access_log_carries_acting_user(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="dailychallenge"):
            response = client.get("/healthz", headers={"X-User-Id": "runner", "x-request-id": "rid-456"})
        assert response.status_code == 200

        records = [r for r in caplog.records if r.getMessage() == "request.complete"]
        assert len(records) == 1
        record = records[0]
        assert record.request_id == "rid-456"
        assert record.user_id == "runner"
        assert record.event_type == "http.request"
        assert record.method == "GET"
        assert record.path == "/healthz"
        assert record.status == "200"

    def test_access_log_without_user(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="dailychallenge"):
            client.get("/healthz")
        records = [r for r in caplog.records if r.getMessage() == "request.complete"]
        assert records[0].user_id is None


class TestChallengeRoutes:
    def test_create_and_fetch(self, client):
        challenge = create(client, is_public=False)
        assert challenge["invite_code"]
        assert challenge["ends_at"] == (date.today() + timedelta(days=29)).isoformat()

        as_owner = client.get(f"/v1/challenges/{challenge['id']}", headers=headers("creator"))
        assert as_owner.json()["data"]["invite_code"] == challenge["invite_code"]

        as_other = client.get(f"/v1/challenges/{challenge['id']}", headers=headers("other"))
        assert "invite_code" not in as_other.json()["data"]

    def test_invalid_metric_rejected_at_edge(self, client):
        bad = [{"id": "water", "name": "Water", "type": "boolean", "points": -1}]
        response = client.post(
            "/v1/challenges",
            json={"name": "Bad", "starts_at": date.today().isoformat(), "duration_days": 5, "metrics": bad},
            headers=headers("creator"),
        )
        assert response.status_code == 422

    def test_past_start_is_validation_error(self, client):
        response = client.post(
            "/v1/challenges",
            json={
                "name": "Too late",
                "starts_at": (date.today() - timedelta(days=3)).isoformat(),
                "duration_days": 5,
                "metrics": METRICS,
            },
            headers=headers("creator"),
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "validation_error"

    def test_unknown_challenge_is_404(self, client):
        response = client.get("/v1/challenges/missing", headers=headers("creator"))
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "not_found"

    def test_join_by_invite_and_conflict(self, client):
        challenge = create(client, is_public=False)
        joined = client.post("/v1/challenges/join", json={"invite_code": challenge["invite_code"]}, headers=headers("member"))
        assert joined.status_code == 201
        assert joined.json()["data"]["challenge_id"] == challenge["id"]

        again = client.post("/v1/challenges/join", json={"invite_code": challenge["invite_code"]}, headers=headers("member"))
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "conflict"

    def test_private_by_id_is_forbidden(self, client):
        challenge = create(client, is_public=False)
        response = client.post("/v1/challenges/join", json={"challenge_id": challenge["id"]}, headers=headers("member"))
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "unauthorized"

    def test_leave_and_remove(self, client):
        challenge = create(client)
        cid = challenge["id"]
        client.post("/v1/challenges/join", json={"challenge_id": cid}, headers=headers("member"))
        joined = client.post("/v1/challenges/join", json={"challenge_id": cid}, headers=headers("other"))
        other_pid = joined.json()["data"]["id"]

        assert client.post(f"/v1/challenges/{cid}/leave", headers=headers("creator")).status_code == 400
        assert client.post(f"/v1/challenges/{cid}/leave", headers=headers("member")).status_code == 204

        forbidden = client.delete(f"/v1/challenges/{cid}/participants/{other_pid}", headers=headers("member"))
        assert forbidden.status_code == 403
        removed = client.delete(f"/v1/challenges/{cid}/participants/{other_pid}", headers=headers("creator"))
        assert removed.status_code == 204

        board = client.get(f"/v1/challenges/{cid}/leaderboard", headers=headers("creator")).json()
        assert board["count"] == 1


class TestEntryRoutes:
    def test_submit_and_list(self, client):
        challenge = create(client)
        pid = my_participant_id(client, challenge["id"])

        response = client.post(
            "/v1/entries",
            json={"participant_id": pid, "metric_data": {"water": True, "steps": 5000}, "is_completed": True},
            headers=headers("creator"),
        )
        assert response.status_code == 200, response.text
        data = response.json()["data"]
        assert data["score"]["base_points"] == 7
        assert data["score"]["breakdown"] == {"water": 2, "steps": 5}
        assert data["participant"]["current_streak"] == 1
        assert data["entry"]["entry_date"] == date.today().isoformat()

        listed = client.get(f"/v1/challenges/{challenge['id']}/entries", headers=headers("creator")).json()
        assert listed["count"] == 1
        assert listed["data"][0]["points_earned"] == 7

    def test_out_of_range_number_is_accepted(self, client):
        challenge = create(client)
        pid = my_participant_id(client, challenge["id"])
        response = client.post(
            "/v1/entries",
            json={"participant_id": pid, "metric_data": {"water": True, "steps": 10 ** 400}, "is_completed": True},
            headers=headers("creator"),
        )
        assert response.status_code == 200, response.text
        assert response.json()["data"]["score"]["breakdown"] == {"water": 2, "steps": 10}

    def test_submit_for_someone_else_is_403(self, client):
        challenge = create(client)
        pid = my_participant_id(client, challenge["id"])
        response = client.post(
            "/v1/entries",
            json={"participant_id": pid, "metric_data": {"water": True}, "is_completed": True},
            headers=headers("intruder"),
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "unauthorized"

    def test_future_entry_is_400(self, client):
        challenge = create(client)
        pid = my_participant_id(client, challenge["id"])
        response = client.post(
            "/v1/entries",
            json={
                "participant_id": pid,
                "metric_data": {"water": True},
                "entry_date": (date.today() + timedelta(days=1)).isoformat(),
            },
            headers=headers("creator"),
        )
        assert response.status_code == 400

    def test_locked_entry_is_423(self, client):
        challenge = create(client, lock_entries_after_day=True)
        pid = my_participant_id(client, challenge["id"])
        body = {"participant_id": pid, "metric_data": {"water": True}, "is_completed": True}
        assert client.post("/v1/entries", json=body, headers=headers("creator")).status_code == 200

        response = client.post("/v1/entries", json=body, headers=headers("creator"))
        assert response.status_code == 423
        assert response.json()["error"]["code"] == "locked"

    def test_list_requires_participation(self, client):
        challenge = create(client)
        response = client.get(f"/v1/challenges/{challenge['id']}/entries", headers=headers("stranger"))
        assert response.status_code == 404


class TestScoringRoutes:
    def test_preview(self, client):
        response = client.post(
            "/v1/scoring/preview",
            json={
                "metrics": METRICS,
                "metric_data": {"water": True, "steps": 12000},
                "bonus": {"enable_streak_bonus": True, "enable_perfect_day_bonus": True},
                "current_streak": 2,
            },
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["base_points"] == 12
        assert data["streak_bonus"] == 10
        assert data["perfect_day_bonus"] == 10
        assert data["total_points"] == 32
        assert data["all_required_complete"] is True

    def test_update_scoring_then_recalculate(self, client):
        challenge = create(client)
        cid = challenge["id"]
        pid = my_participant_id(client, cid)
        client.post(
            "/v1/entries",
            json={"participant_id": pid, "metric_data": {"water": True, "steps": 10000}, "is_completed": True},
            headers=headers("creator"),
        )

        patched = client.patch(
            f"/v1/challenges/{cid}/scoring",
            json={"metrics": [{"id": "water", "name": "Drink water", "type": "boolean", "points": 5}]},
            headers=headers("creator"),
        )
        assert patched.status_code == 200
        assert [m["id"] for m in patched.json()["data"]["metrics"]] == ["water"]

        denied = client.post(f"/v1/challenges/{cid}/recalculate", headers=headers("member"))
        assert denied.status_code == 403

        response = client.post(f"/v1/challenges/{cid}/recalculate", headers=headers("creator"))
        assert response.status_code == 200
        assert response.json()["data"] == {"recalculated": 1}

        progress = client.get(f"/v1/challenges/{cid}/progress", headers=headers("creator")).json()["data"]
        assert progress["total_points"] == 5
        assert progress["completed_days"] == 1
        assert progress["elapsed_days"] == 1

    def test_recalculate_missing_challenge_is_404(self, client):
        response = client.post("/v1/challenges/missing/recalculate", headers=headers("creator"))
        assert response.status_code == 404
