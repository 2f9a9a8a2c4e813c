from __future__ import annotations

from fastapi.testclient import TestClient


def test_request_id_header_present(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("NOTES_DIR", str(tmp_path))
    from main import create_app

    client = TestClient(create_app())
    r = client.get("/health")
    assert r.status_code == 200
    assert r.headers.get("x-request-id")

    r2 = client.get("/health", headers={"X-Request-ID": "abc"})
    assert r2.headers.get("x-request-id") == "abc"


def test_bearer_auth_blocks_when_enabled(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("NOTES_DIR", str(tmp_path))
    monkeypatch.setenv("API_AUTH_MODE", "bearer")
    monkeypatch.setenv("API_AUTH_TOKEN", "secret")

    from main import create_app

    client = TestClient(create_app())

    # Health is exempt so containers can be checked.
    r0 = client.get("/health")
    assert r0.status_code == 200

    r1 = client.get("/tree")
    assert r1.status_code == 401

    r2 = client.get("/tree", headers={"Authorization": "Bearer secret"})
    assert r2.status_code == 200


def test_unhandled_errors_become_500_with_request_id(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("NOTES_DIR", str(tmp_path))
    from main import create_app
    from mdtree_api.tree import ContentTree

    def explode(self):
        raise RuntimeError("boom")

    monkeypatch.setattr(ContentTree, "list_tree", explode)
    client = TestClient(create_app(), raise_server_exceptions=False)
    r = client.get("/tree")
    assert r.status_code == 500
    assert r.json()["detail"] == "internal_error"
    assert r.json()["request_id"] == r.headers["x-request-id"]


def test_module_level_app_is_servable(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("NOTES_DIR", str(tmp_path))
    import main

    r = TestClient(main.app).get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}
