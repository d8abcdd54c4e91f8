ALLOWED = "http://localhost:3000"


def test_preflight_from_allowed_origin(client):
    r = client.options(
        "/api/add",
        headers={
            "Origin": ALLOWED,
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )

    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == ALLOWED
    assert r.headers["access-control-allow-credentials"] == "true"
    assert "POST" in r.headers["access-control-allow-methods"]


def test_preflight_from_unknown_origin_rejected(client):
    r = client.options(
        "/api/add",
        headers={
            "Origin": "http://evil.example",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert r.status_code == 400
    assert "access-control-allow-origin" not in r.headers


def test_simple_request_gets_origin_echoed(client):
    r = client.get("/api/tasks", headers={"Origin": "http://127.0.0.1:3000"})

    assert r.headers["access-control-allow-origin"] == "http://127.0.0.1:3000"


def test_requests_without_origin_pass(client):
    r = client.get("/api/tasks")

    assert r.status_code == 200
    assert "access-control-allow-origin" not in r.headers
