from __future__ import annotations


class ContentError(Exception):
    kind = "io_error"

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


class InvalidPathError(ContentError, ValueError):
    kind = "invalid_path"

    _MESSAGES = {
        "presence": "can't be blank",
        "traversal": "cannot contain directory traversal",
        "absolute": "must be relative to the notes directory",
        "nul": "contains an invalid character",
        "outside_root": "is outside the notes directory",
        "move_into_self": "cannot be moved inside itself",
    }

    def __init__(self, reason: str, *, path: str | None = None) -> None:
        super().__init__(self._MESSAGES.get(reason, reason), path=path)
        self.reason = reason


class NotFoundError(ContentError):
    kind = "not_found"


class AlreadyExistsError(ContentError):
    kind = "already_exists"


class DirectoryNotEmptyError(ContentError):
    kind = "directory_not_empty"


class PermissionDeniedError(ContentError):
    kind = "permission_denied"


class ParentNotFoundError(ContentError):
    kind = "parent_not_found"


class StorageIOError(ContentError):
    kind = "io_error"


class FileTooLargeError(StorageIOError):
    kind = "file_too_large"


class ConflictError(ContentError):
    kind = "conflict"


class InvalidQueryError(ContentError, ValueError):
    kind = "invalid_query"
