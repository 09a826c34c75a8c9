from django.contrib.auth import get_user_model

from campusweb.accounts.models import CampusRole
from campusweb.feedback import services


def make_user(username, role=CampusRole.STUDENT, **profile_fields):
    User = get_user_model()
    user = User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="SecurePass123",
    )
    user.profile.role = role
    for name, value in profile_fields.items():
        setattr(user.profile, name, value)
    user.profile.save()
    return user


def open_thread(user, title="Wi-Fi outage in Block C", message="No connection since morning.", **extra):
    payload = {"title": title, "message": message, "targetRole": "admin"}
    payload.update(extra)
    return services.create_thread(user, payload)
