import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from mdtree_api.dependencies import get_workspace
from mdtree_api.domain.entities import Folder, Note
from mdtree_api.domain.exceptions import ContentError, InvalidQueryError, NotFoundError
from mdtree_api.domain.results import OperationResult
from mdtree_api.domain.schemas import (
    BlogPostIn,
    ContentMatchOut,
    ErrorOut,
    FileMatchOut,
    FolderIn,
    FolderOut,
    NoteCreateIn,
    NoteOut,
    NoteWriteIn,
    RenameIn,
    TreeNodeOut,
    TreeOut,
)
from mdtree_api.workspace import Workspace

router = APIRouter()
logger = logging.getLogger("mdtree.api")

_STATUS_BY_KIND = {
    "invalid_path": 400,
    "invalid_query": 400,
    "invalid_title": 400,
    "permission_denied": 403,
    "not_found": 404,
    "already_exists": 409,
    "directory_not_empty": 409,
    "parent_not_found": 409,
    "conflict": 409,
    "file_too_large": 413,
    "io_error": 500,
}


def _rid(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def _raise_for(result: OperationResult) -> None:
    if result.ok:
        return
    # Field errors are the caller's to fix, so they win over filesystem errors.
    first = (result.on("field") or result.on("base"))[0]
    raise HTTPException(
        status_code=_STATUS_BY_KIND.get(first.kind, 500),
        detail={"errors": [ErrorOut(**e.__dict__).model_dump() for e in result.errors]},
    )


def _raise_for_error(exc: ContentError) -> None:
    scope = "field" if exc.kind == "invalid_path" else "base"
    error = ErrorOut(scope=scope, kind=exc.kind, message=exc.message, field="path" if scope == "field" else None)
    raise HTTPException(status_code=_STATUS_BY_KIND.get(exc.kind, 500), detail={"errors": [error.model_dump()]}) from exc


def _note_out(note: Note) -> NoteOut:
    parsed = note.parsed
    stat = note.stat()
    return NoteOut(
        path=note.path,
        name=note.name,
        title=note.title,
        content=note.content,
        frontmatter=parsed.frontmatter,
        frontmatter_error=parsed.error,
        size=stat.size,
        updated_at=stat.updated_at,
        content_hash=note.content_hash,
    )


def _folder_out(folder: Folder) -> FolderOut:
    return FolderOut(path=folder.path, name=folder.name, parent_path=folder.parent_path)


@router.get("/health")
def health():
    return {"ok": True}


@router.get("/tree", response_model=TreeOut)
def tree(workspace: Workspace = Depends(get_workspace)):
    return TreeOut(items=[TreeNodeOut(**n.to_dict()) for n in workspace.tree.list_tree()])


@router.post("/notes", response_model=NoteOut)
def create_note(payload: NoteCreateIn, request: Request, workspace: Workspace = Depends(get_workspace)):
    note = workspace.note(payload.path)
    _raise_for(note.create(payload.content))
    logger.info("note_create", extra={"rid": _rid(request), "path": note.path})
    return _note_out(note)


@router.post("/notes/rename", response_model=NoteOut)
def rename_note(payload: RenameIn, request: Request, workspace: Workspace = Depends(get_workspace)):
    note = workspace.note(payload.path)
    old_path = note.path
    _raise_for(note.rename(payload.new_path))
    logger.info("note_rename", extra={"rid": _rid(request), "path": old_path, "dest": note.path})
    return _note_out(note)


@router.get("/notes/{path:path}", response_model=NoteOut)
def get_note(path: str, workspace: Workspace = Depends(get_workspace)):
    note = workspace.note(path)
    result = note.load()
    _raise_for(result)
    try:
        return _note_out(note)
    except ContentError as e:
        _raise_for_error(e)


@router.put("/notes/{path:path}", response_model=NoteOut)
def write_note(path: str, payload: NoteWriteIn, request: Request, workspace: Workspace = Depends(get_workspace)):
    note = workspace.note(path)
    _raise_for(note.write(payload.content, expected_hash=payload.expected_hash))
    logger.info("note_write", extra={"rid": _rid(request), "path": note.path})
    return _note_out(note)


@router.delete("/notes/{path:path}")
def delete_note(path: str, request: Request, workspace: Workspace = Depends(get_workspace)):
    note = workspace.note(path)
    _raise_for(note.destroy())
    logger.info("note_delete", extra={"rid": _rid(request), "path": note.path})
    return {"ok": True}


@router.post("/folders", response_model=FolderOut)
def create_folder(payload: FolderIn, request: Request, workspace: Workspace = Depends(get_workspace)):
    folder = workspace.folder(payload.path)
    _raise_for(folder.create())
    logger.info("folder_create", extra={"rid": _rid(request), "path": folder.path})
    return _folder_out(folder)


@router.delete("/folders")
def delete_folder(path: str, request: Request, workspace: Workspace = Depends(get_workspace)):
    folder = workspace.folder(path)
    _raise_for(folder.destroy())
    logger.info("folder_delete", extra={"rid": _rid(request), "path": folder.path})
    return {"ok": True}


@router.post("/folders/rename", response_model=FolderOut)
def rename_folder(payload: RenameIn, request: Request, workspace: Workspace = Depends(get_workspace)):
    folder = workspace.folder(payload.path)
    old_path = folder.path
    _raise_for(folder.rename(payload.new_path))
    logger.info("folder_rename", extra={"rid": _rid(request), "path": old_path, "dest": folder.path})
    return _folder_out(folder)


@router.get("/folders/children", response_model=TreeOut)
def folder_children(path: str, workspace: Workspace = Depends(get_workspace)):
    try:
        folder = workspace.find_folder(path)
    except NotFoundError:
        return TreeOut(items=[])
    return TreeOut(items=[TreeNodeOut(**n.to_dict()) for n in folder.children()])


@router.get("/search/files")
def search_files(
    q: str,
    regex: bool = False,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    workspace: Workspace = Depends(get_workspace),
):
    try:
        matches = workspace.search.search_files(q, regex=regex, limit=limit)
    except InvalidQueryError as e:
        _raise_for_error(e)
    return {"items": [FileMatchOut(**m.__dict__).model_dump() for m in matches]}


@router.get("/search/content")
def search_content(
    q: str,
    regex: bool = False,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    context: Optional[int] = Query(None, ge=0, le=20),
    workspace: Workspace = Depends(get_workspace),
):
    try:
        matches = workspace.search.search_content(q, regex=regex, limit=limit, context_lines=context)
    except InvalidQueryError as e:
        _raise_for_error(e)
    return {"items": [ContentMatchOut(**m.__dict__).model_dump() for m in matches]}


@router.post("/hugo/posts", response_model=NoteOut)
def create_blog_post(payload: BlogPostIn, request: Request, workspace: Workspace = Depends(get_workspace)):
    note, result = workspace.create_blog_post(payload.title, payload.parent)
    _raise_for(result)
    logger.info("blog_post_create", extra={"rid": _rid(request), "path": note.path})
    return _note_out(note)
