"""Status and priority transitions for feedback threads.

The workflow is permissive: any status can be set from any other status,
because case handling is non-linear (a resolved thread may be reopened).
The only requirement is that the target value is a known tag.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Type

from django.db import models

from campusweb.core import errors

from .models import FeedbackAudit, ThreadPriority, ThreadStatus


@dataclass(frozen=True)
class Transition:
    """Outcome of applying a value to a thread attribute."""

    field: str
    previous: str
    new: str

    @property
    def changed(self) -> bool:
        return self.previous != self.new


@dataclass(frozen=True)
class _Axis:
    field: str
    choices: Type[models.TextChoices]
    audit_action: str
    label: str


STATUS = _Axis("status", ThreadStatus, FeedbackAudit.Action.STATUS_CHANGED, "status")
PRIORITY = _Axis("priority", ThreadPriority, FeedbackAudit.Action.PRIORITY_CHANGED, "priority")


def coerce(axis: _Axis, value: Optional[str]) -> str:
    """Return ``value`` as a valid tag for ``axis`` or raise ValidationError."""

    if isinstance(value, str) and value in axis.choices.values:
        return value
    allowed = ", ".join(axis.choices.values)
    raise errors.ValidationError(
        f"Invalid {axis.label}. Must be one of: {allowed}",
        errors={axis.field: [f"Must be one of: {allowed}"]},
    )


def apply(thread, axis: _Axis, value: Optional[str]) -> Transition:
    """Set ``axis`` on ``thread`` in memory and describe what changed.

    Saving the thread and recording the audit entry is left to the caller,
    which holds the row lock for the enclosing transaction.
    """

    target = coerce(axis, value)
    previous = getattr(thread, axis.field)
    setattr(thread, axis.field, target)
    return Transition(field=axis.field, previous=previous, new=target)


def status_after_reply(current: str, sender_role: str) -> str:
    """A participant answering a request for input puts the thread back in review."""

    if current == ThreadStatus.WAITING_FOR_USER and sender_role != "admin":
        return ThreadStatus.IN_REVIEW
    return current
