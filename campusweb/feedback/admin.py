from django.contrib import admin

from .models import FeedbackAudit, FeedbackMessage, FeedbackThread, LegacyFeedback


class FeedbackMessageInline(admin.TabularInline):
    model = FeedbackMessage
    extra = 0
    can_delete = False
    readonly_fields = ("sender", "sender_role", "message", "is_initial_message", "created_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(FeedbackThread)
class FeedbackThreadAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "title",
        "status",
        "priority",
        "type",
        "created_by_role",
        "target_role",
        "message_count",
        "last_message_at",
        "is_deleted",
    )
    list_filter = ("status", "priority", "type", "created_by_role", "is_deleted", "migrated_from_v1")
    search_fields = ("title", "created_by__username", "target_user__username")
    inlines = [FeedbackMessageInline]
    ordering = ("-last_message_at",)

    # State changes go through the feedback API so each one is audited.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(FeedbackAudit)
class FeedbackAuditAdmin(admin.ModelAdmin):
    """Expose the immutable audit trail to administrators."""

    list_display = ("created_at", "thread", "action", "performed_by", "previous_value", "new_value")
    list_filter = ("action", "performed_by_role", "created_at")
    search_fields = ("thread__title", "performed_by__username")
    readonly_fields = (
        "thread",
        "action",
        "performed_by",
        "performed_by_role",
        "previous_value",
        "new_value",
        "metadata",
        "created_at",
    )
    ordering = ("-created_at",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(LegacyFeedback)
class LegacyFeedbackAdmin(admin.ModelAdmin):
    list_display = ("id", "subject", "sender", "receiver_role", "status", "created_at", "migrated")
    list_filter = ("migrated", "status", "receiver_role")
    search_fields = ("subject", "sender__username")
    readonly_fields = ("migrated", "migrated_at")
