# Generated manually because the execution environment cannot run makemigrations.
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


SENDER_ROLES = [("student", "Student"), ("faculty", "Faculty"), ("admin", "Admin")]
TARGET_ROLES = [("admin", "Administration"), ("faculty", "Faculty member")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="FeedbackThread",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=200)),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("general", "General"),
                            ("academic", "Academic"),
                            ("technical", "Technical"),
                            ("complaint", "Complaint"),
                            ("suggestion", "Suggestion"),
                        ],
                        default="general",
                        max_length=16,
                    ),
                ),
                (
                    "priority",
                    models.CharField(
                        choices=[("low", "Low"), ("medium", "Medium"), ("high", "High")],
                        default="medium",
                        max_length=8,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("open", "Open"),
                            ("in_review", "In Review"),
                            ("waiting_for_user", "Waiting for User"),
                            ("resolved", "Resolved"),
                            ("closed", "Closed"),
                        ],
                        default="open",
                        max_length=20,
                    ),
                ),
                ("created_by_role", models.CharField(choices=SENDER_ROLES, max_length=16)),
                ("target_role", models.CharField(choices=TARGET_ROLES, max_length=16)),
                ("message_count", models.PositiveIntegerField(default=0)),
                ("last_message_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("migrated_from_v1", models.BooleanField(default=False)),
                (
                    "original_v1_id",
                    models.PositiveBigIntegerField(
                        blank=True,
                        help_text="Primary key of the legacy feedback record this thread was migrated from.",
                        null=True,
                        unique=True,
                    ),
                ),
                ("is_deleted", models.BooleanField(default=False)),
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="feedback_threads",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "deleted_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="deleted_feedback_threads",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "target_user",
                    models.ForeignKey(
                        blank=True,
                        help_text="Faculty member addressed by the thread; empty when sent to the administration.",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="targeted_feedback_threads",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-last_message_at"],
                "indexes": [
                    models.Index(fields=["created_by", "is_deleted"], name="fb_thread_creator_idx"),
                    models.Index(fields=["target_user", "is_deleted"], name="fb_thread_target_idx"),
                    models.Index(fields=["status", "priority", "is_deleted"], name="fb_thread_triage_idx"),
                    models.Index(fields=["last_message_at"], name="fb_thread_last_msg_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(target_role="faculty", target_user__isnull=False)
                            | models.Q(target_role="admin", target_user__isnull=True)
                        ),
                        name="fb_thread_target_consistent",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="FeedbackMessage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("sender_role", models.CharField(choices=SENDER_ROLES, max_length=16)),
                ("message", models.TextField(max_length=2000)),
                ("is_initial_message", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "sender",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="feedback_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "thread",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="feedback.feedbackthread",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["thread", "created_at"], name="fb_msg_thread_created_idx"),
                    models.Index(fields=["sender"], name="fb_msg_sender_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="FeedbackAudit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("status_changed", "Status changed"),
                            ("priority_changed", "Priority changed"),
                            ("soft_deleted", "Soft deleted"),
                            ("restored", "Restored"),
                            ("migrated", "Migrated from V1"),
                        ],
                        max_length=32,
                    ),
                ),
                ("performed_by_role", models.CharField(choices=SENDER_ROLES, max_length=16)),
                ("previous_value", models.CharField(blank=True, max_length=32, null=True)),
                ("new_value", models.CharField(blank=True, max_length=32, null=True)),
                (
                    "metadata",
                    models.JSONField(blank=True, default=dict, help_text="Structured context for the action."),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "performed_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="feedback_audit_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "thread",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="audit_entries",
                        to="feedback.feedbackthread",
                    ),
                ),
            ],
            options={
                "verbose_name": "Feedback audit entry",
                "verbose_name_plural": "Feedback audit entries",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["thread", "created_at"], name="fb_audit_thread_idx"),
                    models.Index(fields=["action"], name="fb_audit_action_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="LegacyFeedback",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "sender_role",
                    models.CharField(choices=[("student", "Student"), ("faculty", "Faculty")], max_length=16),
                ),
                ("receiver_role", models.CharField(choices=TARGET_ROLES, max_length=16)),
                ("subject", models.CharField(max_length=200)),
                ("message", models.TextField(max_length=2000)),
                ("rating", models.PositiveSmallIntegerField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("new", "New"), ("viewed", "Viewed"), ("resolved", "Resolved")],
                        default="new",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("migrated", models.BooleanField(db_index=True, default=False)),
                ("migrated_at", models.DateTimeField(blank=True, null=True)),
                (
                    "receiver",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="legacy_feedback_received",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="legacy_feedback_sent",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Legacy feedback",
                "verbose_name_plural": "Legacy feedback",
                "ordering": ["created_at", "id"],
            },
        ),
    ]
