from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from datetime import datetime

# Letters that NFKD does not split into base letter + combining mark.
_FOLD_MAP = str.maketrans(
    {
        "æ": "ae",
        "ß": "ss",
        "þ": "th",
        "ð": "d",
        "đ": "d",
        "ø": "o",
        "ł": "l",
        "œ": "oe",
        "ı": "i",
    }
)

_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")
_FENCE_RE = re.compile(r"^---[ \t]*\r?$", re.MULTILINE)
_SLUG_LINE_RE = re.compile(r"""^slug:[ \t]*(?:"[^"\n]*"|'[^'\n]*'|[^\s"'#][^\s]*)?""", re.MULTILINE)


def slugify(text: str) -> str:
    folded = text.lower().translate(_FOLD_MAP)
    decomposed = unicodedata.normalize("NFKD", folded)
    ascii_text = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_SLUG_RE.sub("-", ascii_text).strip("-")


@dataclass(frozen=True)
class BlogPost:
    path: str
    content: str


def generate_blog_post(title: str, parent: str | None = None, *, now: datetime | None = None) -> BlogPost:
    """Build the `YYYY/MM/DD/<slug>/index.md` path and frontmatter for a new post."""
    moment = now or datetime.now()
    if moment.tzinfo is None:
        moment = moment.astimezone()
    slug = slugify(title)

    relative_path = f"{moment:%Y/%m/%d}/{slug}/index.md"
    parent = (parent or "").strip().strip("/")
    full_path = f"{parent}/{relative_path}" if parent else relative_path

    escaped_title = title.replace('"', '\\"')
    content = (
        "---\n"
        f'title: "{escaped_title}"\n'
        f'slug: "{slug}"\n'
        f"date: {moment.isoformat(timespec='seconds')}\n"
        "draft: true\n"
        "tags:\n"
        "-\n"
        "---\n"
        "\n"
    )
    return BlogPost(path=full_path, content=content)


def _frontmatter_span(content: str) -> tuple[int, int] | None:
    opening = _FENCE_RE.match(content)
    if opening is None:
        return None
    closing = _FENCE_RE.search(content, opening.end())
    if closing is None:
        return None
    return opening.end(), closing.start()


def update_frontmatter_slug(content: str, new_slug: str) -> str | None:
    """Rewrite the `slug:` field of the leading frontmatter block.

    Returns None when there is no frontmatter, no slug field, or the slug
    already reads `slug: "<new_slug>"`.
    """
    span = _frontmatter_span(content)
    if span is None:
        return None
    start, end = span
    frontmatter = content[start:end]
    if not _SLUG_LINE_RE.search(frontmatter):
        return None

    updated = _SLUG_LINE_RE.sub(lambda _m: f'slug: "{new_slug}"', frontmatter)
    if updated == frontmatter:
        return None
    return content[:start] + updated + content[end:]
