"""Tests for the task API routes (list/add/done/delete)."""

from datetime import datetime

import pytest


def _add(client, title="buy milk"):
    return client.post("/api/add", data={"title": title})


class TestListTasks:
    def test_empty_list_is_array(self, client):
        r = client.get("/api/tasks")

        assert r.status_code == 200
        assert r.json() == []

    def test_cache_disabled_headers(self, client):
        r = client.get("/api/tasks")

        assert r.headers["cache-control"] == "no-cache, no-store, must-revalidate"
        assert r.headers["pragma"] == "no-cache"
        assert r.headers["expires"] == "0"
        assert r.headers["content-type"].startswith("application/json")

    def test_ordered_by_id(self, client):
        for title in ("c", "a", "b"):
            _add(client, title)

        ids = [t["id"] for t in client.get("/api/tasks").json()]

        assert ids == sorted(ids)
        assert len(ids) == 3

    def test_store_error_is_500(self, client, db_path):
        db_path.unlink()

        r = client.get("/api/tasks")

        assert r.status_code == 500
        body = r.json()
        assert body["ok"] is False
        assert body["error_code"] == "PERSISTENCE_ERROR"
        assert body["message"]


class TestAddTask:
    def test_created(self, client):
        r = _add(client)

        assert r.status_code == 201
        body = r.json()
        assert body["id"] == 1
        assert body["title"] == "buy milk"
        assert body["done"] is False
        datetime.fromisoformat(body["created_at"].replace("Z", "+00:00"))

    def test_empty_title_is_400_and_creates_nothing(self, client, metrics):
        r = _add(client, "")

        assert r.status_code == 400
        assert r.json()["error_code"] == "VALIDATION_ERROR"
        assert r.json()["message"] == "Title is required"
        assert client.get("/api/tasks").json() == []
        assert metrics.tasks_created == 0

    def test_missing_title_is_400(self, client):
        r = client.post("/api/add", data={})

        assert r.status_code == 400

    def test_get_not_allowed(self, client):
        r = client.get("/api/add")

        assert r.status_code == 405
        assert r.json()["error_code"] == "METHOD_NOT_ALLOWED"
        assert "POST" in r.headers["allow"]


@pytest.mark.parametrize("route", ["/api/done", "/api/delete"])
class TestIdRoutes:
    @pytest.mark.parametrize("raw", ["", "abc", "1.5", " 1", "1e3", "99999999999999999999"])
    def test_invalid_id_is_400(self, client, route, raw, metrics):
        r = client.post(route, data={"id": raw})

        assert r.status_code == 400
        assert r.json()["message"] == "Invalid task ID"
        assert metrics.tasks_completed == 0
        assert metrics.tasks_deleted == 0

    def test_missing_id_is_400(self, client, route):
        assert client.post(route, data={}).status_code == 400

    def test_get_not_allowed(self, client, route):
        assert client.get(route).status_code == 405

    def test_unknown_id_is_200_with_empty_body(self, client, route):
        r = client.post(route, data={"id": "9999"})

        assert r.status_code == 200
        assert r.content == b""

    def test_store_error_is_500(self, client, route, db_path):
        db_path.unlink()

        r = client.post(route, data={"id": "1"})

        assert r.status_code == 500
        assert r.json()["error_code"] == "PERSISTENCE_ERROR"


def test_buy_milk_scenario(client, metrics):
    r = _add(client, "buy milk")
    assert r.status_code == 201
    task = r.json()
    assert (task["id"], task["title"], task["done"]) == (1, "buy milk", False)
    assert "created_at" in task

    listed = client.get("/api/tasks").json()
    assert [t["id"] for t in listed] == [1]

    assert client.post("/api/done", data={"id": "1"}).status_code == 200
    (done,) = client.get("/api/tasks").json()
    assert done["done"] is True
    assert done["created_at"] == task["created_at"]

    assert client.post("/api/delete", data={"id": "1"}).status_code == 200
    assert client.get("/api/tasks").json() == []

    assert (metrics.tasks_created, metrics.tasks_completed, metrics.tasks_deleted) == (1, 1, 1)
    assert metrics.gauges.total == 0


def test_complete_unknown_id_still_counts(client, metrics):
    assert client.post("/api/done", data={"id": "9999"}).status_code == 200

    assert metrics.tasks_completed == 1


def test_signed_ids_are_accepted(client):
    _add(client, "a")

    assert client.post("/api/done", data={"id": "+1"}).status_code == 200
    assert client.post("/api/delete", data={"id": "-5"}).status_code == 200
    assert client.get("/api/tasks").json()[0]["done"] is True


def test_request_metrics_recorded(client, metrics):
    client.get("/api/tasks")
    _add(client, "")

    text = metrics.to_prometheus_format()

    assert 'todolist_http_requests_total{method="GET",endpoint="/api/tasks",status="200"} 1' in text
    assert 'todolist_http_requests_total{method="POST",endpoint="/api/add",status="400"} 1' in text


def test_metrics_not_served_on_api_listener(client):
    assert client.get("/metrics").status_code == 404


def test_unknown_paths_share_one_metrics_series(client, metrics):
    for i in range(200):
        assert client.get(f"/scan/{i}").status_code == 404
    client.get("/api/tasks")

    text = metrics.to_prometheus_format()
    request_series = [
        line for line in text.splitlines() if line.startswith("todolist_http_requests_total{")
    ]
    histogram_series = [
        line for line in text.splitlines() if line.startswith("todolist_http_request_duration_seconds_count{")
    ]

    assert len(request_series) == 2
    assert len(histogram_series) == 2
    assert 'todolist_http_requests_total{method="GET",endpoint="unmatched",status="404"} 200' in text
    assert "/scan/" not in text


def test_fields_fall_back_to_query_string(client):
    r = client.post("/api/add", params={"title": "from query"})

    assert r.status_code == 201
    assert r.json()["title"] == "from query"

    assert client.post("/api/done", params={"id": str(r.json()["id"])}).status_code == 200
    assert client.get("/api/tasks").json()[0]["done"] is True

    assert client.post("/api/delete", params={"id": "abc"}).status_code == 400
    assert client.post("/api/delete", params={"id": str(r.json()["id"])}).status_code == 200
    assert client.get("/api/tasks").json() == []


def test_form_body_wins_over_query_string(client):
    r = client.post("/api/add", params={"title": "query"}, data={"title": "body"})

    assert r.status_code == 201
    assert r.json()["title"] == "body"
