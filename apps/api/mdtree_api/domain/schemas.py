from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class ErrorOut(BaseModel):
    scope: Literal["field", "base"]
    kind: str
    message: str
    field: Optional[str] = None


class TreeNodeOut(BaseModel):
    path: str
    name: str
    type: Literal["folder", "note"]
    children: Optional[list[TreeNodeOut]] = None


TreeNodeOut.model_rebuild()


class TreeOut(BaseModel):
    items: list[TreeNodeOut] = Field(default_factory=list)


class NoteOut(BaseModel):
    path: str
    name: str
    title: str
    content: str
    frontmatter: dict[str, Any] = Field(default_factory=dict)
    frontmatter_error: Optional[str] = None
    size: int
    updated_at: str
    content_hash: str


class NoteCreateIn(BaseModel):
    path: str
    content: str = ""


class NoteWriteIn(BaseModel):
    content: str
    expected_hash: Optional[str] = None


class RenameIn(BaseModel):
    path: str
    new_path: str


class FolderIn(BaseModel):
    path: str


class FolderOut(BaseModel):
    path: str
    name: str
    parent_path: Optional[str] = None


class FileMatchOut(BaseModel):
    path: str
    name: str
    type: Literal["folder", "note"]


class ContentMatchOut(BaseModel):
    path: str
    line_number: int
    line: str
    context_before: list[str] = Field(default_factory=list)
    context_after: list[str] = Field(default_factory=list)


class BlogPostIn(BaseModel):
    title: str
    parent: Optional[str] = None
