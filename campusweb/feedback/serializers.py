"""Convert feedback models into the JSON shapes of the REST surface."""

from __future__ import annotations

from typing import Any, Dict, Optional

from campusweb.accounts.models import display_name


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def user_ref(user) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {
        "id": user.pk,
        "username": user.get_username(),
        "name": display_name(user),
    }


def thread_summary(thread) -> Dict[str, Any]:
    return {
        "id": thread.pk,
        "title": thread.title,
        "type": thread.type,
        "priority": thread.priority,
        "status": thread.status,
        "createdBy": user_ref(thread.created_by),
        "createdByRole": thread.created_by_role,
        "targetRole": thread.target_role,
        "targetUserId": thread.target_user_id,
        "targetUser": user_ref(thread.target_user),
        "messageCount": thread.message_count,
        "lastMessageAt": _iso(thread.last_message_at),
        "migratedFromV1": thread.migrated_from_v1,
        "deleted": thread.is_deleted,
        "deletedAt": _iso(thread.deleted_at),
        "isActive": thread.is_active,
        "createdAt": _iso(thread.created_at),
        "updatedAt": _iso(thread.updated_at),
    }


def message(msg) -> Dict[str, Any]:
    return {
        "id": msg.pk,
        "threadId": msg.thread_id,
        "senderId": msg.sender_id,
        "sender": user_ref(msg.sender),
        "senderRole": msg.sender_role,
        "message": msg.message,
        "isInitialMessage": msg.is_initial_message,
        "createdAt": _iso(msg.created_at),
    }


def audit_entry(entry) -> Dict[str, Any]:
    data = {
        "id": entry.pk,
        "threadId": entry.thread_id,
        "action": entry.action,
        "performedBy": user_ref(entry.performed_by),
        "performedByRole": entry.performed_by_role,
        "metadata": entry.metadata or {},
        "createdAt": _iso(entry.created_at),
    }
    if entry.previous_value is not None or entry.new_value is not None:
        data["previousValue"] = entry.previous_value
        data["newValue"] = entry.new_value
    return data


def thread_detail(detail) -> Dict[str, Any]:
    return {
        "thread": thread_summary(detail.thread),
        "messages": [message(msg) for msg in detail.messages],
        "auditLog": [audit_entry(entry) for entry in detail.audit_entries],
    }


def migration_summary(summary) -> Dict[str, Any]:
    return {
        "migrated": summary.migrated,
        "skipped": summary.skipped,
        "failed": summary.failed,
        "total": summary.total,
        "outcomes": [
            {
                "legacyId": outcome.legacy_id,
                "outcome": outcome.outcome,
                "threadId": outcome.thread_id,
                "error": outcome.error,
            }
            for outcome in summary.outcomes
        ],
    }
