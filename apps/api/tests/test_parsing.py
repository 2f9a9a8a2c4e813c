from mdtree_api.parsing import extract_title, parse_frontmatter


def test_frontmatter_parses_at_byte_zero() -> None:
    md = "---\ntitle: Hello\ntags: [One, Two]\n---\n\nBody\n"
    fm = parse_frontmatter(md)
    assert fm.error is None
    assert fm.frontmatter["title"] == "Hello"
    assert fm.body == "\nBody\n"


def test_frontmatter_ignored_when_not_first_line() -> None:
    md = "\n---\ntitle: Hello\n---\nBody\n"
    fm = parse_frontmatter(md)
    assert fm.frontmatter == {}
    assert fm.body == md
    assert fm.error is None


def test_frontmatter_yaml_error_falls_back_to_no_frontmatter() -> None:
    md = "---\ntitle: [oops\n---\nBody\n"
    fm = parse_frontmatter(md)
    assert fm.frontmatter == {}
    assert fm.error == "frontmatter_yaml_error"


def test_frontmatter_must_be_a_mapping() -> None:
    fm = parse_frontmatter("---\n- a\n- b\n---\nBody\n")
    assert fm.error == "frontmatter_not_mapping"


def test_unclosed_frontmatter_is_plain_text() -> None:
    md = "---\ntitle: Hello\nBody\n"
    fm = parse_frontmatter(md)
    assert fm.frontmatter == {}
    assert fm.body == md


def test_hugo_frontmatter_with_empty_tag_item_parses() -> None:
    md = '---\ntitle: "T"\nslug: "t"\ndraft: true\ntags:\n-\n---\n\n'
    fm = parse_frontmatter(md)
    assert fm.error is None
    assert fm.frontmatter["tags"] == [None]
    assert fm.frontmatter["draft"] is True


def test_extract_title_falls_back_to_stem() -> None:
    assert extract_title({"title": "  Named  "}, "a/b.md") == "Named"
    assert extract_title({"title": 3}, "a/b.md") == "b"
    assert extract_title({}, "a/b.md") == "b"


def test_non_string_frontmatter_keys_become_strings() -> None:
    fm = parse_frontmatter("---\ntitle: Year\n2024: done\ntrue: x\n---\nbody\n")
    assert fm.error is None
    assert fm.frontmatter == {"title": "Year", "2024": "done", "True": "x"}
