# model/action.py
from enum import Enum
from typing import Any
from pydantic import BaseModel


class ActionKind(str, Enum):
    added = "added"
    updated = "updated"
    deleted = "deleted"
    skipped = "skipped"
    query = "query"
    none = "none"


Record = dict[str, Any]


class ActionResult(BaseModel):
    success: bool
    action: ActionKind | None = None
    message: str | None = None
    data: Record | list[Record] | None = None
    error: str | None = None

    @classmethod
    def ok(
        cls,
        action: ActionKind,
        message: str,
        data: Record | list[Record] | None = None,
    ) -> "ActionResult":
        return cls(success=True, action=action, message=message, data=data)

    @classmethod
    def fail(cls, error: str) -> "ActionResult":
        return cls(success=False, error=error)
