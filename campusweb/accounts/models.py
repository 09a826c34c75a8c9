"""Profile models and signal handlers for campus users."""
from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models.signals import post_save
from django.dispatch import receiver


class CampusRole(models.TextChoices):
    STUDENT = "student", "Student"
    FACULTY = "faculty", "Faculty"
    ADMIN = "admin", "Administrator"


class Profile(models.Model):
    """Additional profile data that augments the built-in user model."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        related_name="profile",
        on_delete=models.CASCADE,
    )
    role = models.CharField(
        max_length=16,
        choices=CampusRole.choices,
        default=CampusRole.STUDENT,
        help_text="Campus role used for feedback routing and permissions.",
    )
    full_name = models.CharField(max_length=255, blank=True)
    department = models.CharField(max_length=120, blank=True)
    designation = models.CharField(max_length=120, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["role"], name="profile_role_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover - representational helper
        return f"Profile<{self.user_id}:{self.role}>"

    @property
    def display_name(self) -> str:
        return self.full_name or self.user.get_full_name() or self.user.get_username()


def get_role(user) -> str:
    """Resolve the campus role for ``user``; superusers are always admins."""
    if user is None or not getattr(user, "is_authenticated", False):
        return ""
    if user.is_superuser:
        return CampusRole.ADMIN
    profile = getattr(user, "profile", None)
    if profile is None:
        return CampusRole.STUDENT
    return profile.role


def is_admin(user) -> bool:
    return get_role(user) == CampusRole.ADMIN


def display_name(user) -> str:
    if user is None:
        return ""
    profile = getattr(user, "profile", None)
    if profile is not None:
        return profile.display_name
    return user.get_full_name() or user.get_username()


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def ensure_profile(sender, instance, created, **kwargs):
    """Guarantee every user has an attached profile row."""
    if created:
        Profile.objects.get_or_create(
            user=instance,
            defaults={
                "role": CampusRole.ADMIN if instance.is_superuser else CampusRole.STUDENT,
            },
        )
