"""Websocket routes: per-user feedback notifications."""

from django.urls import re_path

from campusweb.core import consumers as core_consumers

websocket_urlpatterns = [
    re_path(r"^ws/notifications/$", core_consumers.NotificationConsumer.as_asgi()),
]
