from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

import yaml


@dataclass(frozen=True)
class FrontmatterParse:
    frontmatter: dict
    body: str
    error: str | None


def _no_frontmatter(markdown: str) -> FrontmatterParse:
    return FrontmatterParse(frontmatter={}, body=markdown, error=None)


def parse_frontmatter(markdown: str) -> FrontmatterParse:
    lines = markdown.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != "---":
        return _no_frontmatter(markdown)

    for idx in range(1, len(lines)):
        if lines[idx].rstrip("\r\n").rstrip() != "---":
            continue
        yaml_block = "".join(lines[1:idx])
        body = "".join(lines[idx + 1 :])
        try:
            parsed = yaml.safe_load(yaml_block) or {}
        except yaml.YAMLError:
            return FrontmatterParse(frontmatter={}, body=markdown, error="frontmatter_yaml_error")
        if not isinstance(parsed, dict):
            return FrontmatterParse(frontmatter={}, body=markdown, error="frontmatter_not_mapping")
        # YAML also yields int, bool and null keys.
        frontmatter = {str(k): v for k, v in parsed.items()}
        return FrontmatterParse(frontmatter=frontmatter, body=body, error=None)

    # Opening fence without a closing one is ordinary text.
    return _no_frontmatter(markdown)


def extract_title(frontmatter: dict, path: str) -> str:
    title = frontmatter.get("title")
    if isinstance(title, str) and title.strip():
        return title.strip()
    return PurePosixPath(path).stem
