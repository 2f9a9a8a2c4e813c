from __future__ import annotations

import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def client(tmp_path, monkeypatch) -> TestClient:
    monkeypatch.setenv("NOTES_DIR", str(tmp_path))
    monkeypatch.delenv("API_AUTH_MODE", raising=False)
    from main import create_app

    return TestClient(create_app())


def test_note_crud_over_http(client, tmp_path) -> None:
    r = client.post("/notes", json={"path": "ideas/first", "content": "---\ntitle: First\n---\nhello\n"})
    assert r.status_code == 200
    body = r.json()
    assert body["path"] == "ideas/first.md"
    assert body["title"] == "First"
    assert body["frontmatter"] == {"title": "First"}

    r2 = client.get("/notes/ideas/first.md")
    assert r2.status_code == 200
    assert r2.json()["content"].endswith("hello\n")
    loaded_hash = r2.json()["content_hash"]

    r3 = client.put("/notes/ideas/first.md", json={"content": "changed", "expected_hash": loaded_hash})
    assert r3.status_code == 200
    assert (tmp_path / "ideas/first.md").read_text(encoding="utf-8") == "changed"

    stale = client.put("/notes/ideas/first.md", json={"content": "stale", "expected_hash": loaded_hash})
    assert stale.status_code == 409
    assert stale.json()["detail"]["errors"][0]["kind"] == "conflict"

    r4 = client.post("/notes/rename", json={"path": "ideas/first.md", "new_path": "archive/first.md"})
    assert r4.status_code == 200
    assert r4.json()["path"] == "archive/first.md"

    r5 = client.delete("/notes/archive/first.md")
    assert r5.status_code == 200
    assert client.get("/notes/archive/first.md").status_code == 404


def test_note_errors_are_structured(client) -> None:
    r = client.post("/notes", json={"path": "../escape.md", "content": "x"})
    assert r.status_code == 400
    err = r.json()["detail"]["errors"][0]
    assert err == {
        "scope": "field",
        "kind": "invalid_path",
        "message": "cannot contain directory traversal",
        "field": "path",
    }

    client.post("/notes", json={"path": "a.md", "content": "A"})
    client.post("/notes", json={"path": "b.md", "content": "B"})
    dup = client.post("/notes/rename", json={"path": "a.md", "new_path": "b.md"})
    assert dup.status_code == 409
    assert dup.json()["detail"]["errors"][0] == {
        "scope": "base",
        "kind": "already_exists",
        "message": "Note already exists",
        "field": None,
    }


def test_tree_and_folders_over_http(client, tmp_path) -> None:
    assert client.post("/folders", json={"path": "projects/2026"}).status_code == 200
    client.post("/notes", json={"path": "projects/plan.md", "content": ""})

    tree = client.get("/tree").json()["items"]
    assert tree == [
        {
            "path": "projects",
            "name": "projects",
            "type": "folder",
            "children": [
                {"path": "projects/2026", "name": "2026", "type": "folder", "children": []},
                {"path": "projects/plan.md", "name": "plan.md", "type": "note", "children": None},
            ],
        }
    ]

    children = client.get("/folders/children", params={"path": "projects"}).json()["items"]
    assert [c["name"] for c in children] == ["2026", "plan.md"]
    assert client.get("/folders/children", params={"path": "missing"}).json()["items"] == []

    full = client.delete("/folders", params={"path": "projects"})
    assert full.status_code == 409
    assert full.json()["detail"]["errors"][0]["kind"] == "directory_not_empty"
    assert (tmp_path / "projects/plan.md").exists()

    renamed = client.post("/folders/rename", json={"path": "projects/2026", "new_path": "projects/next"})
    assert renamed.status_code == 200
    assert renamed.json() == {"path": "projects/next", "name": "next", "parent_path": "projects"}

    assert client.delete("/folders", params={"path": "projects/next"}).status_code == 200
    assert client.delete("/folders", params={"path": "projects/next"}).status_code == 404


def test_search_over_http(client) -> None:
    client.post("/notes", json={"path": "a.md", "content": "alpha\nbeta\ngamma\n"})

    files = client.get("/search/files", params={"q": "A.MD"}).json()["items"]
    assert files == [{"path": "a.md", "name": "a.md", "type": "note"}]

    content = client.get("/search/content", params={"q": "bet", "context": 1}).json()["items"]
    assert content == [
        {
            "path": "a.md",
            "line_number": 2,
            "line": "beta",
            "context_before": ["alpha"],
            "context_after": ["gamma"],
        }
    ]

    bad = client.get("/search/content", params={"q": "(", "regex": "true"})
    assert bad.status_code == 400
    assert bad.json()["detail"]["errors"][0]["kind"] == "invalid_query"


def test_blog_post_over_http(client, tmp_path) -> None:
    r = client.post("/hugo/posts", json={"title": "My Blog Post", "parent": "content/posts"})
    assert r.status_code == 200
    body = r.json()
    assert body["path"].startswith("content/posts/")
    assert body["path"].endswith("/my-blog-post/index.md")
    assert body["frontmatter"]["slug"] == "my-blog-post"
    assert body["frontmatter"]["draft"] is True
    assert (tmp_path / body["path"]).exists()

    again = client.post("/hugo/posts", json={"title": "My Blog Post", "parent": "content/posts"})
    assert again.status_code == 409

    blank = client.post("/hugo/posts", json={"title": "???"})
    assert blank.status_code == 400
    assert blank.json()["detail"]["errors"][0]["field"] == "title"


def test_symlink_outside_root_does_not_break_listing(client, tmp_path) -> None:
    outside = tmp_path.parent / f"{tmp_path.name}-outside"
    outside.mkdir()
    (outside / "x.md").write_text("x marks the spot", encoding="utf-8")
    (tmp_path / "linked").symlink_to(outside, target_is_directory=True)
    client.post("/notes", json={"path": "local.md", "content": "x here"})

    tree = client.get("/tree")
    assert tree.status_code == 200
    assert [n["path"] for n in tree.json()["items"]] == ["linked", "local.md"]

    found = client.get("/search/content", params={"q": "x"})
    assert found.status_code == 200
    assert [m["path"] for m in found.json()["items"]] == ["local.md"]

    assert client.get("/folders/children", params={"path": "linked"}).json()["items"] == []


def test_note_with_non_string_frontmatter_keys_is_readable(client, tmp_path) -> None:
    (tmp_path / "y.md").write_text("---\ntitle: Year\n2024: done\n---\nbody\n", encoding="utf-8")

    r = client.get("/notes/y.md")
    assert r.status_code == 200
    assert r.json()["frontmatter"] == {"title": "Year", "2024": "done"}
    assert r.json()["title"] == "Year"
