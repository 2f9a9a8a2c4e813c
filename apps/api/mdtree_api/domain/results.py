from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Scope = Literal["field", "base"]


@dataclass(frozen=True)
class OperationError:
    scope: Scope
    kind: str
    message: str
    field: str | None = None


@dataclass
class OperationResult:
    errors: list[OperationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        return self.ok

    def add_field(self, field_name: str, kind: str, message: str) -> None:
        self.errors.append(OperationError(scope="field", kind=kind, message=message, field=field_name))

    def add_base(self, kind: str, message: str) -> None:
        self.errors.append(OperationError(scope="base", kind=kind, message=message))

    def on(self, scope: Scope) -> list[OperationError]:
        return [e for e in self.errors if e.scope == scope]

    @property
    def kinds(self) -> list[str]:
        return [e.kind for e in self.errors]
