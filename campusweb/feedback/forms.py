"""Input validation for the feedback API.

Payload keys use the camelCase names of the REST surface; the forms use
snake_case field names and :func:`bind` translates between the two, so
field errors come back keyed by the name the caller sent.
"""

from django import forms
from django.contrib.auth import get_user_model

from campusweb.accounts.models import CampusRole
from campusweb.core import errors

from .models import (
    MESSAGE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    SenderRole,
    TargetRole,
    ThreadPriority,
    ThreadStatus,
    ThreadType,
)

PAYLOAD_ALIASES = {
    "targetRole": "target_role",
    "targetUserId": "target_user_id",
    "createdByRole": "created_by_role",
    "includeDeleted": "include_deleted",
}
FIELD_ALIASES = {value: key for key, value in PAYLOAD_ALIASES.items()}


def _with_blank(choices):
    return [("", "---------")] + list(choices)


def bind(form_class, payload, **kwargs):
    """Instantiate ``form_class`` from an API payload and validate it.

    Returns ``cleaned_data`` or raises :class:`campusweb.core.errors.ValidationError`.
    """

    data = {PAYLOAD_ALIASES.get(key, key): value for key, value in payload.items()}
    form = form_class(data=data, **kwargs)
    if not form.is_valid():
        field_errors = {
            FIELD_ALIASES.get(field, field): [str(message) for message in messages]
            for field, messages in form.errors.items()
        }
        non_field = field_errors.pop("__all__", None)
        if non_field:
            field_errors.setdefault("non_field_errors", non_field)
        raise errors.ValidationError(errors=field_errors)
    return form.cleaned_data


class ThreadCreateForm(forms.Form):
    title = forms.CharField(
        max_length=TITLE_MAX_LENGTH,
        error_messages={
            "required": "Title is required",
            "max_length": f"Title cannot exceed {TITLE_MAX_LENGTH} characters",
        },
    )
    target_role = forms.ChoiceField(
        choices=TargetRole.choices,
        error_messages={
            "required": "Target role is required",
            "invalid_choice": "Invalid target role. Must be admin or faculty",
        },
    )
    target_user_id = forms.IntegerField(required=False, min_value=1)
    type = forms.ChoiceField(choices=_with_blank(ThreadType.choices), required=False)
    priority = forms.ChoiceField(choices=_with_blank(ThreadPriority.choices), required=False)
    message = forms.CharField(
        max_length=MESSAGE_MAX_LENGTH,
        error_messages={
            "required": "Message is required",
            "max_length": f"Message cannot exceed {MESSAGE_MAX_LENGTH} characters",
        },
    )

    def __init__(self, *args, **kwargs):
        self.requester_role = kwargs.pop("requester_role", None)
        super().__init__(*args, **kwargs)

    def clean_type(self):
        return self.cleaned_data.get("type") or ThreadType.GENERAL

    def clean_priority(self):
        return self.cleaned_data.get("priority") or ThreadPriority.MEDIUM

    def clean(self):
        cleaned = super().clean()
        target_role = cleaned.get("target_role")
        target_user_id = cleaned.get("target_user_id")

        if target_role is None:
            return cleaned

        if self.requester_role == CampusRole.FACULTY and target_role != TargetRole.ADMIN:
            self.add_error("target_role", "Faculty can only send feedback to admin")
            return cleaned

        if target_role == TargetRole.ADMIN:
            if target_user_id is not None:
                self.add_error(
                    "target_user_id",
                    "A target user must not be given when addressing the administration",
                )
            cleaned["target_user"] = None
            return cleaned

        if target_user_id is None:
            self.add_error("target_user_id", "Please select a faculty member")
            return cleaned

        target_user = (
            get_user_model()
            .objects.filter(
                pk=target_user_id,
                is_active=True,
                profile__role=CampusRole.FACULTY,
            )
            .first()
        )
        if target_user is None:
            self.add_error("target_user_id", "Selected faculty member does not exist")
            return cleaned
        cleaned["target_user"] = target_user
        return cleaned


class ReplyForm(forms.Form):
    message = forms.CharField(
        max_length=MESSAGE_MAX_LENGTH,
        error_messages={
            "required": "Message is required",
            "max_length": f"Message cannot exceed {MESSAGE_MAX_LENGTH} characters",
        },
    )


class ThreadFilterForm(forms.Form):
    status = forms.ChoiceField(choices=_with_blank(ThreadStatus.choices), required=False)
    priority = forms.ChoiceField(choices=_with_blank(ThreadPriority.choices), required=False)
    type = forms.ChoiceField(choices=_with_blank(ThreadType.choices), required=False)
    created_by_role = forms.ChoiceField(choices=_with_blank(SenderRole.choices), required=False)
    search = forms.CharField(max_length=TITLE_MAX_LENGTH, required=False)
    page = forms.IntegerField(min_value=1, required=False)
    limit = forms.IntegerField(min_value=1, required=False)
    include_deleted = forms.BooleanField(required=False)
