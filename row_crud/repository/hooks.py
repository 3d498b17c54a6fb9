"""Repository lifecycle hooks.

Every hook receives the record and the executor the action runs on (the
Engine, or the open transaction when one was passed), so a hook can read or
write inside the same unit of work. ``allow_*`` hooks return either a bool
or an ``(allowed, message)`` tuple; a false verdict vetoes the action with
a PolicyRejectionError. A missing hook means allow / no-op.

Example:
    >>> hooks = RepositoryHooks(
    ...     allow_delete=lambda record, executor: (not record.locked, "record is locked"),
    ...     after_save=lambda action, record, executor: audit.append((action, record.Id)),
    ... )
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from row_crud.core.enums import RepositoryAction

Verdict = bool | tuple[bool, str | None]

AllowHook = Callable[[Any, Any], Any]
ActionAllowHook = Callable[[RepositoryAction, Any, Any], Any]
RecordHook = Callable[[Any, Any], Any]
ActionHook = Callable[[RepositoryAction, Any, Any], Any]


@dataclass(frozen=True)
class RepositoryHooks:
    """Optional callbacks run around repository actions.

    In AsyncRepository any hook may also be a coroutine function.
    """

    allow_get: AllowHook | None = None
    after_get: RecordHook | None = None
    allow_save: ActionAllowHook | None = None
    before_save: ActionHook | None = None
    after_save: ActionHook | None = None
    allow_delete: AllowHook | None = None
    before_delete: RecordHook | None = None
    after_delete: RecordHook | None = None


def read_verdict(result: Any) -> tuple[bool, str | None]:
    """Normalize an ``allow_*`` hook result to ``(allowed, message)``."""
    if isinstance(result, tuple):
        allowed, message = result
        return bool(allowed), message
    return bool(result), None
