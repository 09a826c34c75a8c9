"""
ASGI config for campusweb project.

Plain HTTP goes to Django; websocket connections on ``ws/notifications/``
are authenticated from the session and joined to the user's ``user_<pk>``
group, which receives feedback reply and status-change events.
"""

import os

from channels.auth import AuthMiddlewareStack
from channels.routing import ProtocolTypeRouter, URLRouter

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'campusweb.settings')

django_asgi_app = get_asgi_application()

import campusweb.routing  # noqa: E402  pylint: disable=wrong-import-position

application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        "websocket": AuthMiddlewareStack(
            URLRouter(campusweb.routing.websocket_urlpatterns)
        ),
    }
)
