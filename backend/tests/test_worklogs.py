"""
Daily work log tests.

Verifies:
- One log per user per date (create 201, replace 200)
- Owner-only edit/delete
- Visibility of other users' logs
"""

import pytest

from opsdesk.models import DailyLog
from opsdesk.time_utils import today


@pytest.fixture
def writer(make_user, login):
    user = make_user("wendy", ["log_write"])
    return user, login(user)


class TestUpsert:

    def test_create_then_replace(self, client, db_session, writer):
        body = {"logDate": "2026-10-15", "content": "Visited three shops"}
        first = client.post("/api/logs", json=body, headers=writer[1])
        assert first.status_code == 201
        assert first.json["data"]["workHours"] == 8.0

        second = client.post(
            "/api/logs",
            json={"logDate": "2026-10-15", "content": "Visited four shops", "workHours": 6.5},
            headers=writer[1],
        )
        assert second.status_code == 200
        assert second.json["data"]["id"] == first.json["data"]["id"]
        assert second.json["data"]["content"] == "Visited four shops"
        assert db_session.query(DailyLog).count() == 1

    @pytest.mark.parametrize(
        "body",
        [
            {"content": "no date"},
            {"logDate": "2026-13-40", "content": "bad date"},
            {"logDate": "2026-10-15"},
            {"logDate": "2026-10-15", "content": "   "},
            {"logDate": "2026-10-15", "content": "x", "workHours": 30},
        ],
    )
    def test_invalid(self, client, db_session, writer, body):
        assert client.post("/api/logs", json=body, headers=writer[1]).status_code == 400

    def test_today(self, client, db_session, writer):
        assert client.get("/api/logs/today", headers=writer[1]).json["data"] is None
        client.post("/api/logs", json={"logDate": today().isoformat(), "content": "today"}, headers=writer[1])
        assert client.get("/api/logs/today", headers=writer[1]).json["data"]["content"] == "today"


class TestOwnership:

    def _log(self, client, headers):
        resp = client.post("/api/logs", json={"logDate": "2026-10-01", "content": "mine"}, headers=headers)
        return resp.json["data"]["id"]

    def test_owner_updates_and_deletes(self, client, db_session, writer):
        log_id = self._log(client, writer[1])
        resp = client.put(f"/api/logs/{log_id}", json={"content": "edited"}, headers=writer[1])
        assert resp.json["data"]["content"] == "edited"
        assert client.delete(f"/api/logs/{log_id}", headers=writer[1]).status_code == 200
        assert db_session.query(DailyLog).count() == 0

    def test_other_user_cannot_touch(self, client, db_session, writer, make_user, login):
        log_id = self._log(client, writer[1])
        other = login(make_user("otto", ["log_write"]))

        assert client.get(f"/api/logs/{log_id}", headers=other).status_code == 404
        assert client.put(f"/api/logs/{log_id}", json={"content": "x"}, headers=other).status_code == 404
        assert client.delete(f"/api/logs/{log_id}", headers=other).status_code == 404

    def test_view_all(self, client, db_session, writer, make_user, login):
        log_id = self._log(client, writer[1])
        otto = make_user("otto", ["log_write"])
        client.post("/api/logs", json={"logDate": "2026-10-01", "content": "otto"}, headers=login(otto))

        boss = login(make_user("boss", ["log_view_all"]))
        assert client.get(f"/api/logs/{log_id}", headers=boss).status_code == 200
        assert client.get("/api/logs", headers=boss).json["data"]["pagination"]["total"] == 2
        filtered = client.get(f"/api/logs?userId={otto.id}", headers=boss).json["data"]
        assert [r["content"] for r in filtered["list"]] == ["otto"]

        own = client.get("/api/logs", headers=writer[1]).json["data"]
        assert own["pagination"]["total"] == 1

        users = client.get("/api/logs/users/list", headers=boss).json["data"]
        assert {u["username"] for u in users} == {"wendy", "otto", "boss"}

    def test_date_range(self, client, db_session, writer):
        for day in ("2026-09-30", "2026-10-01", "2026-10-02"):
            client.post("/api/logs", json={"logDate": day, "content": day}, headers=writer[1])
        data = client.get("/api/logs?startDate=2026-10-01&endDate=2026-10-01", headers=writer[1]).json["data"]
        assert [r["logDate"] for r in data["list"]] == ["2026-10-01"]
