"""Feedback thread operations used by the API views and management commands."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from campusweb.accounts.models import CampusRole, display_name, get_role
from campusweb.core import errors
from campusweb.core.consumers import user_group_name

from . import state
from .audit import ThreadAuditLog
from .forms import ReplyForm, ThreadCreateForm, ThreadFilterForm, bind
from .migration import MigrationSummary, migrate_legacy_feedback
from .models import FeedbackMessage, FeedbackThread, ThreadStatus

logger = logging.getLogger(__name__)

User = get_user_model()


@dataclass
class ThreadPage:
    threads: List[FeedbackThread]
    total: int
    pages: int
    current_page: int
    stats: Dict[str, int] = field(default_factory=dict)


@dataclass
class ThreadDetail:
    thread: FeedbackThread
    messages: List[Any]
    audit_entries: List[Any]


@dataclass(frozen=True)
class ReplyResult:
    thread: FeedbackThread
    message: FeedbackMessage
    status_transition: Optional[state.Transition]


# -- access ----------------------------------------------------------------


def _scope_for(user) -> Q:
    """Threads ``user`` may see, ignoring soft-delete."""

    role = get_role(user)
    if role == CampusRole.ADMIN:
        return Q()
    if role == CampusRole.FACULTY:
        return Q(created_by=user) | Q(target_user=user)
    return Q(created_by=user)


def _require_admin(user) -> None:
    if get_role(user) != CampusRole.ADMIN:
        raise errors.PermissionDenied("Only administrators can perform this action.")


def _thread_queryset():
    return FeedbackThread.objects.select_related(
        "created_by__profile",
        "target_user__profile",
    )


def _lock_thread(user, thread_id) -> FeedbackThread:
    """Lock a thread row visible to ``user`` for the current transaction."""

    thread = (
        FeedbackThread.objects.select_for_update()
        .filter(_scope_for(user), pk=thread_id)
        .first()
    )
    if thread is None:
        raise errors.NotFound()
    return thread


def _notify_participants(thread: FeedbackThread, actor, title: str, body: str) -> None:
    if not getattr(settings, "FEEDBACK_NOTIFY_PARTICIPANTS", True):
        return
    recipients = thread.participant_ids() - {actor.pk}
    if not recipients:
        return

    def send():
        channel_layer = get_channel_layer()
        if channel_layer is None:
            return
        for user_id in recipients:
            try:
                async_to_sync(channel_layer.group_send)(
                    user_group_name(user_id),
                    {
                        "type": "notify",
                        "data": {"title": title, "body": body, "threadId": thread.pk},
                    },
                )
            except Exception:
                logger.exception("Could not notify user %s about thread %s", user_id, thread.pk)

    transaction.on_commit(send)


# -- reads -----------------------------------------------------------------


def status_counts(user) -> Dict[str, int]:
    """Per-status totals over the non-deleted threads ``user`` can see."""

    counts = {status: 0 for status in ThreadStatus.values}
    rows = (
        FeedbackThread.objects.filter(_scope_for(user), is_deleted=False)
        .values("status")
        .annotate(total=Count("id"))
    )
    for row in rows:
        counts[row["status"]] = row["total"]
    return counts


def list_threads(user, params: Optional[Mapping[str, Any]] = None) -> ThreadPage:
    filters = bind(ThreadFilterForm, dict(params or {}))

    queryset = _thread_queryset().filter(_scope_for(user))
    if not (filters.get("include_deleted") and get_role(user) == CampusRole.ADMIN):
        queryset = queryset.filter(is_deleted=False)

    for name in ("status", "priority", "type", "created_by_role"):
        if filters.get(name):
            queryset = queryset.filter(**{name: filters[name]})
    if filters.get("search"):
        queryset = queryset.filter(title__icontains=filters["search"].strip())

    page_size = getattr(settings, "FEEDBACK_PAGE_SIZE", 20)
    max_page_size = getattr(settings, "FEEDBACK_MAX_PAGE_SIZE", 100)
    limit = min(filters.get("limit") or page_size, max_page_size)
    page = filters.get("page") or 1

    total = queryset.count()
    offset = (page - 1) * limit
    threads = list(queryset.order_by("-last_message_at", "-id")[offset:offset + limit])

    return ThreadPage(
        threads=threads,
        total=total,
        pages=math.ceil(total / limit),
        current_page=page,
        stats=status_counts(user),
    )


def get_thread(user, thread_id) -> ThreadDetail:
    """Return a thread with its messages and audit trail.

    Soft-deleted threads are only returned to administrators. Unknown ids and
    threads outside the caller's scope raise the same NotFound.
    """

    queryset = _thread_queryset().filter(_scope_for(user))
    if get_role(user) != CampusRole.ADMIN:
        queryset = queryset.filter(is_deleted=False)
    thread = queryset.filter(pk=thread_id).first()
    if thread is None:
        raise errors.NotFound()

    messages = list(
        thread.messages.select_related("sender__profile").order_by("created_at", "id")
    )
    audit_entries = list(
        thread.audit_entries.select_related("performed_by__profile").order_by("created_at", "id")
    )
    return ThreadDetail(thread=thread, messages=messages, audit_entries=audit_entries)


def list_faculty() -> List[Dict[str, Any]]:
    """Active faculty members that students can address."""

    faculty = (
        User.objects.filter(is_active=True, profile__role=CampusRole.FACULTY)
        .select_related("profile")
        .order_by("profile__full_name", "username")
    )
    return [
        {
            "id": member.pk,
            "name": display_name(member),
            "username": member.get_username(),
            "department": member.profile.department or "N/A",
            "designation": member.profile.designation,
        }
        for member in faculty
    ]


# -- writes ----------------------------------------------------------------


def create_thread(user, payload: Mapping[str, Any]) -> FeedbackThread:
    """Open a thread together with its initial message."""

    role = get_role(user)
    data = bind(ThreadCreateForm, dict(payload), requester_role=role)

    now = timezone.now()
    with transaction.atomic():
        thread = FeedbackThread.objects.create(
            title=data["title"],
            type=data["type"],
            priority=data["priority"],
            status=ThreadStatus.OPEN,
            created_by=user,
            created_by_role=role,
            target_role=data["target_role"],
            target_user=data["target_user"],
            message_count=1,
            last_message_at=now,
            created_at=now,
        )
        FeedbackMessage.objects.create(
            thread=thread,
            sender=user,
            sender_role=role,
            message=data["message"],
            is_initial_message=True,
            created_at=now,
        )

    logger.info("User %s opened feedback thread %s (%s)", user.pk, thread.pk, thread.target_role)
    return thread


def reply(user, thread_id, payload: Mapping[str, Any]) -> ReplyResult:
    """Append a message and bump the thread counters in one transaction."""

    data = bind(ReplyForm, dict(payload))
    role = get_role(user)

    with transaction.atomic():
        thread = _lock_thread(user, thread_id)
        if thread.is_deleted:
            if role != CampusRole.ADMIN:
                raise errors.NotFound()
            raise errors.Conflict("This thread has been deleted.")

        allow_closed = getattr(settings, "FEEDBACK_ALLOW_REPLY_ON_CLOSED", True)
        if not allow_closed and thread.status in (ThreadStatus.RESOLVED, ThreadStatus.CLOSED):
            raise errors.Conflict("Cannot reply to a resolved or closed thread.")

        message = FeedbackMessage.objects.create(
            thread=thread,
            sender=user,
            sender_role=role,
            message=data["message"],
            created_at=timezone.now(),
        )

        thread.message_count += 1
        thread.last_message_at = message.created_at
        update_fields = ["message_count", "last_message_at", "updated_at"]

        transition = None
        next_status = state.status_after_reply(thread.status, role)
        if next_status != thread.status:
            transition = state.apply(thread, state.STATUS, next_status)
            update_fields.append("status")

        thread.save(update_fields=update_fields)

        if transition is not None:
            ThreadAuditLog.record_transition(
                thread=thread,
                transition=transition,
                action=state.STATUS.audit_action,
                user=user,
                metadata={"trigger": "reply", "messageId": message.pk},
            )

    _notify_participants(
        thread,
        user,
        title="New reply",
        body=f"{display_name(user)} replied to \"{thread.title}\".",
    )
    return ReplyResult(thread=thread, message=message, status_transition=transition)


def _change(user, thread_id, axis, value):
    _require_admin(user)
    target = state.coerce(axis, value)

    with transaction.atomic():
        thread = _lock_thread(user, thread_id)
        transition = state.apply(thread, axis, target)
        if not transition.changed:
            return thread, transition
        thread.save(update_fields=[axis.field, "updated_at"])
        ThreadAuditLog.record_transition(
            thread=thread,
            transition=transition,
            action=axis.audit_action,
            user=user,
        )

    logger.info(
        "User %s changed %s of thread %s: %s -> %s",
        user.pk,
        axis.field,
        thread.pk,
        transition.previous,
        transition.new,
    )
    return thread, transition


def update_status(user, thread_id, status):
    thread, transition = _change(user, thread_id, state.STATUS, status)
    if transition.changed:
        _notify_participants(
            thread,
            user,
            title="Feedback status updated",
            body=f"\"{thread.title}\" is now {thread.get_status_display()}.",
        )
    return thread, transition


def update_priority(user, thread_id, priority):
    return _change(user, thread_id, state.PRIORITY, priority)


def soft_delete(user, thread_id) -> FeedbackThread:
    """Hide a thread from default listings; a second call is a conflict."""

    _require_admin(user)
    with transaction.atomic():
        thread = _lock_thread(user, thread_id)
        if thread.is_deleted:
            raise errors.Conflict("Thread is already deleted.")
        thread.is_deleted = True
        thread.deleted_at = timezone.now()
        thread.deleted_by = user
        thread.save(update_fields=["is_deleted", "deleted_at", "deleted_by", "updated_at"])
        ThreadAuditLog.record_soft_delete(thread=thread, user=user)

    logger.info("User %s soft-deleted feedback thread %s", user.pk, thread.pk)
    return thread


def restore(user, thread_id) -> FeedbackThread:
    """Undo a soft delete."""

    _require_admin(user)
    with transaction.atomic():
        thread = _lock_thread(user, thread_id)
        if not thread.is_deleted:
            raise errors.Conflict("Thread is not deleted.")
        thread.is_deleted = False
        thread.deleted_at = None
        thread.deleted_by = None
        thread.save(update_fields=["is_deleted", "deleted_at", "deleted_by", "updated_at"])
        ThreadAuditLog.record_restore(thread=thread, user=user)

    logger.info("User %s restored feedback thread %s", user.pk, thread.pk)
    return thread


def run_legacy_migration(user) -> MigrationSummary:
    _require_admin(user)
    return migrate_legacy_feedback(user)
