"""Writers for the per-thread audit trail."""

from __future__ import annotations

from typing import Any, Dict, Optional

from django.utils import timezone

from campusweb.accounts.models import get_role

from .models import FeedbackAudit


class ThreadAuditLog:
    """Append entries to a thread's audit trail.

    Callers invoke these inside the same ``transaction.atomic`` block as the
    mutation they describe, so an entry is never visible without its change
    and vice versa. Entries are never updated or deleted.
    """

    @classmethod
    def record(
        cls,
        *,
        thread,
        action: str,
        user,
        role: Optional[str] = None,
        previous_value: Optional[str] = None,
        new_value: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        timestamp=None,
    ) -> FeedbackAudit:
        """Persist a :class:`~campusweb.feedback.models.FeedbackAudit` row.

        Parameters
        ----------
        thread:
            The thread the action was performed on.
        action:
            One of :class:`FeedbackAudit.Action`.
        user:
            The user performing the action.
        role:
            Role label to store; resolved from ``user`` when omitted.
        previous_value, new_value:
            Only set for value-change actions.
        metadata:
            Optional JSON-serialisable context.
        """

        if user is None or thread is None:
            raise ValueError("user and thread are required to record an audit entry")

        return FeedbackAudit.objects.create(
            thread=thread,
            action=action,
            performed_by=user,
            performed_by_role=role or get_role(user),
            previous_value=previous_value,
            new_value=new_value,
            metadata=metadata or {},
            created_at=timestamp or timezone.now(),
        )

    @classmethod
    def record_transition(cls, *, thread, transition, action: str, user, metadata=None) -> FeedbackAudit:
        return cls.record(
            thread=thread,
            action=action,
            user=user,
            previous_value=transition.previous,
            new_value=transition.new,
            metadata=metadata,
        )

    @classmethod
    def record_soft_delete(cls, *, thread, user) -> FeedbackAudit:
        return cls.record(
            thread=thread,
            action=FeedbackAudit.Action.SOFT_DELETED,
            user=user,
            previous_value="active",
            new_value="deleted",
        )

    @classmethod
    def record_restore(cls, *, thread, user) -> FeedbackAudit:
        return cls.record(
            thread=thread,
            action=FeedbackAudit.Action.RESTORED,
            user=user,
            previous_value="deleted",
            new_value="active",
        )

    @classmethod
    def record_migration(cls, *, thread, user, legacy_id) -> FeedbackAudit:
        return cls.record(
            thread=thread,
            action=FeedbackAudit.Action.MIGRATED,
            user=user,
            metadata={"originalV1Id": legacy_id},
        )
