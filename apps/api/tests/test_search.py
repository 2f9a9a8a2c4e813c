from __future__ import annotations

import pytest

from mdtree_api.domain.exceptions import InvalidQueryError
from mdtree_api.workspace import Workspace


@pytest.fixture()
def ws(tmp_path) -> Workspace:
    ws = Workspace(tmp_path, search_max_results=50, search_context_lines=1)
    ws.store.write("projects/roadmap.md", "# Roadmap\nQ1: ship search\nQ2: polish\nQ3: rest\n")
    ws.store.write("projects/Road trip.md", "pack snacks\n")
    ws.store.write("journal/2026-01-01.md", "New year.\nSearch for meaning.\n")
    ws.store.write("image.png", "not a note")
    return ws


def test_search_files_literal_is_case_insensitive(ws) -> None:
    matches = ws.search.search_files("road")
    assert sorted(m.path for m in matches) == ["projects/Road trip.md", "projects/roadmap.md"]
    assert {m.type for m in matches} == {"note"}


def test_search_files_includes_folders(ws) -> None:
    matches = ws.search.search_files("journal")
    assert [(m.path, m.type) for m in matches] == [("journal", "folder")]


def test_search_files_regex(ws) -> None:
    matches = ws.search.search_files(r"^\d{4}-\d{2}-\d{2}\.md$", regex=True)
    assert [m.path for m in matches] == ["journal/2026-01-01.md"]


def test_search_files_literal_does_not_interpret_regex(ws) -> None:
    assert ws.search.search_files(".*") == []


def test_search_content_reports_lines_and_context(ws) -> None:
    matches = ws.search.search_content("ship")
    assert len(matches) == 1
    m = matches[0]
    assert m.path == "projects/roadmap.md"
    assert m.line_number == 2
    assert m.line == "Q1: ship search"
    assert m.context_before == ["# Roadmap"]
    assert m.context_after == ["Q2: polish"]


def test_search_content_regex_across_files(ws) -> None:
    matches = ws.search.search_content(r"^search\b", regex=True)
    assert [(m.path, m.line_number) for m in matches] == [("journal/2026-01-01.md", 2)]


def test_search_content_skips_non_notes(ws) -> None:
    assert ws.search.search_content("not a note") == []


def test_invalid_regex_is_a_query_error(ws) -> None:
    with pytest.raises(InvalidQueryError) as exc:
        ws.search.search_content("([unclosed", regex=True)
    assert exc.value.kind == "invalid_query"
    with pytest.raises(InvalidQueryError):
        ws.search.search_files("*oops", regex=True)


def test_blank_query_returns_nothing(ws) -> None:
    assert ws.search.search_files("   ") == []
    assert ws.search.search_content("") == []


def test_result_count_is_capped(tmp_path) -> None:
    ws = Workspace(tmp_path, search_max_results=3)
    ws.store.write("many.md", "hit\n" * 10)
    assert len(ws.search.search_content("hit")) == 3
    assert len(ws.search.search_content("hit", limit=2)) == 2
    assert len(ws.search.search_content("hit", limit=100)) == 3


def test_unreadable_files_are_skipped(tmp_path) -> None:
    ws = Workspace(tmp_path, max_file_bytes=10)
    ws.store.write("small.md", "needle")
    (tmp_path / "big.md").write_text("needle " * 10, encoding="utf-8")
    (tmp_path / "binary.md").write_bytes(b"\xffneedle")
    assert [m.path for m in ws.search.search_content("needle")] == ["small.md"]


def test_line_numbers_count_only_newlines(tmp_path) -> None:
    ws = Workspace(tmp_path, search_context_lines=1)
    ws.store.write("odd.md", "one\x0cstill one\r\ntwo same line\nthree needle\n")
    matches = ws.search.search_content("needle")
    assert [(m.line_number, m.line) for m in matches] == [(3, "three needle")]
    assert matches[0].context_before == ["two same line"]
    assert matches[0].context_after == []
