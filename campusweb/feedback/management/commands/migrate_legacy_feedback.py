"""Management command that converts legacy flat feedback into threads."""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from campusweb.accounts.models import is_admin
from campusweb.feedback.migration import FAILED, migrate_legacy_feedback


class Command(BaseCommand):
    help = "Migrate legacy single-message feedback records into feedback threads."

    def add_arguments(self, parser):
        parser.add_argument(
            "--performed-by",
            required=True,
            help="Username of the administrator recorded in the audit trail.",
        )

    def handle(self, *args, **options):
        username = options["performed_by"]
        try:
            admin = get_user_model().objects.get(username=username)
        except get_user_model().DoesNotExist:
            raise CommandError(f"User '{username}' does not exist.")
        if not is_admin(admin):
            raise CommandError(f"User '{username}' is not an administrator.")

        summary = migrate_legacy_feedback(admin)

        for outcome in summary.outcomes:
            if outcome.outcome == FAILED:
                self.stdout.write(
                    self.style.WARNING(
                        f"Legacy feedback #{outcome.legacy_id} failed: {outcome.error}"
                    )
                )

        self.stdout.write(self.style.SUCCESS(summary.message))
