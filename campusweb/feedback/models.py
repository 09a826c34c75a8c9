"""Models for feedback threads, their messages and the audit trail."""

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone


TITLE_MAX_LENGTH = 200
MESSAGE_MAX_LENGTH = 2000


class ThreadType(models.TextChoices):
    GENERAL = "general", "General"
    ACADEMIC = "academic", "Academic"
    TECHNICAL = "technical", "Technical"
    COMPLAINT = "complaint", "Complaint"
    SUGGESTION = "suggestion", "Suggestion"


class ThreadPriority(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"


class ThreadStatus(models.TextChoices):
    """Workflow: open, in_review, waiting_for_user, resolved, closed."""

    OPEN = "open", "Open"
    IN_REVIEW = "in_review", "In Review"
    WAITING_FOR_USER = "waiting_for_user", "Waiting for User"
    RESOLVED = "resolved", "Resolved"
    CLOSED = "closed", "Closed"


class SenderRole(models.TextChoices):
    STUDENT = "student", "Student"
    FACULTY = "faculty", "Faculty"
    ADMIN = "admin", "Admin"


class TargetRole(models.TextChoices):
    ADMIN = "admin", "Administration"
    FACULTY = "faculty", "Faculty member"


class FeedbackThread(models.Model):
    """A feedback conversation between an initiator and a target."""

    title = models.CharField(max_length=TITLE_MAX_LENGTH)
    type = models.CharField(
        max_length=16,
        choices=ThreadType.choices,
        default=ThreadType.GENERAL,
    )
    priority = models.CharField(
        max_length=8,
        choices=ThreadPriority.choices,
        default=ThreadPriority.MEDIUM,
    )
    status = models.CharField(
        max_length=20,
        choices=ThreadStatus.choices,
        default=ThreadStatus.OPEN,
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="feedback_threads",
        on_delete=models.PROTECT,
    )
    created_by_role = models.CharField(max_length=16, choices=SenderRole.choices)
    target_role = models.CharField(max_length=16, choices=TargetRole.choices)
    target_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        related_name="targeted_feedback_threads",
        on_delete=models.PROTECT,
        help_text="Faculty member addressed by the thread; empty when sent to the administration.",
    )

    message_count = models.PositiveIntegerField(default=0)
    last_message_at = models.DateTimeField(default=timezone.now)

    migrated_from_v1 = models.BooleanField(default=False)
    original_v1_id = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        unique=True,
        help_text="Primary key of the legacy feedback record this thread was migrated from.",
    )

    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)
    deleted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        related_name="deleted_feedback_threads",
        on_delete=models.SET_NULL,
    )

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-last_message_at"]
        indexes = [
            models.Index(fields=["created_by", "is_deleted"], name="fb_thread_creator_idx"),
            models.Index(fields=["target_user", "is_deleted"], name="fb_thread_target_idx"),
            models.Index(fields=["status", "priority", "is_deleted"], name="fb_thread_triage_idx"),
            models.Index(fields=["last_message_at"], name="fb_thread_last_msg_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(target_role=TargetRole.FACULTY, target_user__isnull=False)
                    | Q(target_role=TargetRole.ADMIN, target_user__isnull=True)
                ),
                name="fb_thread_target_consistent",
            ),
        ]

    def __str__(self) -> str:
        return f"Thread #{self.pk}: {self.title}"

    @property
    def is_active(self) -> bool:
        """Whether the thread is still being worked on."""
        return (
            self.status not in (ThreadStatus.RESOLVED, ThreadStatus.CLOSED)
            and not self.is_deleted
        )

    def participant_ids(self):
        ids = {self.created_by_id}
        if self.target_user_id:
            ids.add(self.target_user_id)
        return ids


class FeedbackMessage(models.Model):
    """Immutable message inside a thread."""

    thread = models.ForeignKey(
        FeedbackThread,
        related_name="messages",
        on_delete=models.CASCADE,
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="feedback_messages",
        on_delete=models.PROTECT,
    )
    sender_role = models.CharField(max_length=16, choices=SenderRole.choices)
    message = models.TextField(max_length=MESSAGE_MAX_LENGTH)
    is_initial_message = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["thread", "created_at"], name="fb_msg_thread_created_idx"),
            models.Index(fields=["sender"], name="fb_msg_sender_idx"),
        ]

    def __str__(self) -> str:
        return f"Msg on thread {self.thread_id} by {self.sender_id}"


class FeedbackAudit(models.Model):
    """Append-only record of a state-changing action on a thread."""

    class Action(models.TextChoices):
        STATUS_CHANGED = "status_changed", "Status changed"
        PRIORITY_CHANGED = "priority_changed", "Priority changed"
        SOFT_DELETED = "soft_deleted", "Soft deleted"
        RESTORED = "restored", "Restored"
        MIGRATED = "migrated", "Migrated from V1"

    thread = models.ForeignKey(
        FeedbackThread,
        related_name="audit_entries",
        on_delete=models.CASCADE,
    )
    action = models.CharField(max_length=32, choices=Action.choices)
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        related_name="feedback_audit_entries",
        on_delete=models.PROTECT,
    )
    performed_by_role = models.CharField(max_length=16, choices=SenderRole.choices)
    previous_value = models.CharField(max_length=32, null=True, blank=True)
    new_value = models.CharField(max_length=32, null=True, blank=True)
    metadata = models.JSONField(
        blank=True,
        default=dict,
        help_text="Structured context for the action.",
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["thread", "created_at"], name="fb_audit_thread_idx"),
            models.Index(fields=["action"], name="fb_audit_action_idx"),
        ]
        verbose_name = "Feedback audit entry"
        verbose_name_plural = "Feedback audit entries"

    def __str__(self) -> str:
        return f"{self.get_action_display()} on thread #{self.thread_id}"


class LegacyFeedback(models.Model):
    """Flat single-message feedback records from the first feedback module."""

    class Status(models.TextChoices):
        NEW = "new", "New"
        VIEWED = "viewed", "Viewed"
        RESOLVED = "resolved", "Resolved"

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        related_name="legacy_feedback_sent",
        on_delete=models.SET_NULL,
    )
    sender_role = models.CharField(
        max_length=16,
        choices=[(SenderRole.STUDENT, "Student"), (SenderRole.FACULTY, "Faculty")],
    )
    receiver_role = models.CharField(max_length=16, choices=TargetRole.choices)
    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        related_name="legacy_feedback_received",
        on_delete=models.SET_NULL,
    )
    subject = models.CharField(max_length=TITLE_MAX_LENGTH)
    message = models.TextField(max_length=MESSAGE_MAX_LENGTH)
    rating = models.PositiveSmallIntegerField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.NEW)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    migrated = models.BooleanField(default=False, db_index=True)
    migrated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["created_at", "id"]
        verbose_name = "Legacy feedback"
        verbose_name_plural = "Legacy feedback"

    def __str__(self) -> str:
        return f"Legacy feedback #{self.pk}: {self.subject}"
