"""Convert legacy flat feedback records into threads.

Each legacy record is handled in its own short transaction. The record is
claimed with a compare-and-set on its ``migrated`` flag before anything is
written, so two concurrent runs never convert the same record twice and a
run never holds locks on unrelated threads. A failure rolls back that
record's transaction, including the claim, and the batch moves on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.db import DatabaseError, transaction
from django.utils import timezone

from .audit import ThreadAuditLog
from .models import (
    MESSAGE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    FeedbackMessage,
    FeedbackThread,
    LegacyFeedback,
    TargetRole,
    ThreadPriority,
    ThreadStatus,
    ThreadType,
)

logger = logging.getLogger(__name__)

STATUS_MAP = {
    LegacyFeedback.Status.NEW: ThreadStatus.OPEN,
    LegacyFeedback.Status.VIEWED: ThreadStatus.IN_REVIEW,
    LegacyFeedback.Status.RESOLVED: ThreadStatus.RESOLVED,
}

MIGRATED = "migrated"
SKIPPED = "skipped"
FAILED = "failed"


class LegacyRecordError(Exception):
    """A legacy record cannot be represented as a thread."""


@dataclass(frozen=True)
class RecordOutcome:
    legacy_id: int
    outcome: str
    thread_id: Optional[int] = None
    error: Optional[str] = None


@dataclass
class MigrationSummary:
    outcomes: List[RecordOutcome] = field(default_factory=list)

    def _count(self, outcome: str) -> int:
        return sum(1 for item in self.outcomes if item.outcome == outcome)

    @property
    def migrated(self) -> int:
        return self._count(MIGRATED)

    @property
    def skipped(self) -> int:
        return self._count(SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(FAILED)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def message(self) -> str:
        return (
            f"Migration complete. {self.migrated} threads migrated, "
            f"{self.skipped} skipped (already migrated), {self.failed} failed"
        )


def _check_record(record: LegacyFeedback) -> None:
    if record.sender_id is None:
        raise LegacyRecordError("legacy record has no sender")
    if not (record.subject or "").strip():
        raise LegacyRecordError("legacy record has an empty subject")
    if len(record.subject.strip()) > TITLE_MAX_LENGTH:
        raise LegacyRecordError("legacy subject exceeds the title limit")
    body = (record.message or "").strip()
    if not body or len(body) > MESSAGE_MAX_LENGTH:
        raise LegacyRecordError("legacy message body is empty or too long")
    if record.receiver_role == TargetRole.FACULTY and record.receiver_id is None:
        raise LegacyRecordError("legacy record targets faculty without a receiver")
    if record.status not in STATUS_MAP:
        raise LegacyRecordError(f"unknown legacy status {record.status!r}")


def _claim(record_id: int) -> bool:
    claimed = LegacyFeedback.objects.filter(pk=record_id, migrated=False).update(
        migrated=True,
        migrated_at=timezone.now(),
    )
    return claimed == 1


def migrate_record(record: LegacyFeedback, performed_by) -> RecordOutcome:
    """Migrate one legacy record inside its own transaction."""

    try:
        with transaction.atomic():
            if not _claim(record.pk):
                return RecordOutcome(legacy_id=record.pk, outcome=SKIPPED)

            _check_record(record)

            target_user_id = record.receiver_id if record.receiver_role == TargetRole.FACULTY else None
            thread = FeedbackThread.objects.create(
                title=record.subject.strip(),
                type=ThreadType.GENERAL,
                priority=ThreadPriority.MEDIUM,
                status=STATUS_MAP[record.status],
                created_by_id=record.sender_id,
                created_by_role=record.sender_role,
                target_role=record.receiver_role,
                target_user_id=target_user_id,
                message_count=1,
                last_message_at=record.created_at,
                migrated_from_v1=True,
                original_v1_id=record.pk,
                created_at=record.created_at,
            )
            FeedbackMessage.objects.create(
                thread=thread,
                sender_id=record.sender_id,
                sender_role=record.sender_role,
                message=record.message.strip(),
                is_initial_message=True,
                created_at=record.created_at,
            )
            ThreadAuditLog.record_migration(
                thread=thread,
                user=performed_by,
                legacy_id=record.pk,
            )
    except (LegacyRecordError, DatabaseError) as exc:
        logger.warning("Legacy feedback %s could not be migrated: %s", record.pk, exc)
        return RecordOutcome(legacy_id=record.pk, outcome=FAILED, error=str(exc))

    return RecordOutcome(legacy_id=record.pk, outcome=MIGRATED, thread_id=thread.pk)


def migrate_legacy_feedback(performed_by) -> MigrationSummary:
    """Convert every legacy record that has not been migrated yet."""

    summary = MigrationSummary()
    # Materialised up front: the loop writes to the table being read.
    records = list(LegacyFeedback.objects.order_by("created_at", "id"))
    for record in records:
        if record.migrated:
            summary.outcomes.append(RecordOutcome(legacy_id=record.pk, outcome=SKIPPED))
            continue
        summary.outcomes.append(migrate_record(record, performed_by))

    logger.info(
        "Legacy feedback migration by %s: %s migrated, %s skipped, %s failed",
        performed_by.pk,
        summary.migrated,
        summary.skipped,
        summary.failed,
    )
    return summary
