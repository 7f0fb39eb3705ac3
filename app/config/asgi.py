"""
ASGI config for the chat backend.

ASGI (Asynchronous Server Gateway Interface) is the successor to WSGI,
designed to handle async Python web applications. This file exposes the
ASGI callable as a module-level variable named `application`.

This configuration supports:
- HTTP requests via Django (REST read API, admin, health check)
- WebSocket connections via Django Channels (live chat)
- Lifespan events, used to clear the presence registry on shutdown

The presence registry is created here, once per server process, and
handed to every chat consumer.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/asgi/
"""

import os

from django.core.asgi import get_asgi_application

# Set the default Django settings module for the ASGI application
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Initialize Django ASGI application early to ensure settings are loaded
# before importing any models or other Django components
django_asgi_app = get_asgi_application()

# Import Channels components after Django is initialized
from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402

from chat.middleware import SessionCookieAuthMiddleware  # noqa: E402
from chat.presence import PresenceLifespan, PresenceRegistry  # noqa: E402
from chat.routing import build_websocket_urlpatterns  # noqa: E402

# Live connections of this process
presence = PresenceRegistry()

# ASGI application that routes HTTP, WebSocket and lifespan protocols
application = ProtocolTypeRouter(
    {
        # HTTP requests are handled by Django's ASGI application
        "http": django_asgi_app,
        # WebSocket connections are routed through:
        # 1. AllowedHostsOriginValidator - ensures origin matches ALLOWED_HOSTS
        # 2. SessionCookieAuthMiddleware - authenticates user via session cookie
        # 3. URLRouter - routes to the chat consumer
        "websocket": AllowedHostsOriginValidator(
            SessionCookieAuthMiddleware(URLRouter(build_websocket_urlpatterns(presence)))
        ),
        # Server startup/shutdown
        "lifespan": PresenceLifespan(presence),
    }
)
