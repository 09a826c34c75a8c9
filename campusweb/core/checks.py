"""Django system checks for the feedback service configuration."""

from __future__ import annotations

from django.conf import settings
from django.core import checks
from django.db.utils import OperationalError, ProgrammingError


@checks.register()
def feedback_pagination_configured(app_configs, **kwargs):
    """Reject page size settings that would make listings unusable."""

    messages: list[checks.CheckMessage] = []

    page_size = getattr(settings, "FEEDBACK_PAGE_SIZE", 20)
    max_page_size = getattr(settings, "FEEDBACK_MAX_PAGE_SIZE", 100)

    if not isinstance(page_size, int) or page_size < 1:
        messages.append(
            checks.Error(
                "FEEDBACK_PAGE_SIZE must be a positive integer.",
                hint="Set FEEDBACK_PAGE_SIZE to a value such as 20.",
                id="campusweb.E001",
            )
        )
    elif isinstance(max_page_size, int) and page_size > max_page_size:
        messages.append(
            checks.Warning(
                "FEEDBACK_PAGE_SIZE is larger than FEEDBACK_MAX_PAGE_SIZE.",
                hint="Listings will be capped at FEEDBACK_MAX_PAGE_SIZE items per page.",
                id="campusweb.W001",
            )
        )

    return messages


@checks.register(checks.Tags.database)
def legacy_feedback_pending(app_configs, **kwargs):  # pragma: no cover - needs a migrated database
    """Remind operators that legacy feedback still needs converting."""

    try:
        from campusweb.feedback.models import LegacyFeedback

        pending = LegacyFeedback.objects.filter(migrated=False).count()
    except (OperationalError, ProgrammingError):
        # Tables not created yet.
        return []

    if not pending:
        return []

    return [
        checks.Warning(
            f"{pending} legacy feedback record(s) have not been migrated to threads.",
            hint="Run `manage.py migrate_legacy_feedback` or POST /api/feedback/migrate-v1.",
            id="campusweb.W002",
        )
    ]
