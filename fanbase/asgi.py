# fanbase/asgi.py
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "fanbase.settings")

# Django must be set up before consumers import models or settings
django_asgi_app = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402

from core.authentication import FirebaseAuthMiddleware  # noqa: E402
from messaging.routing import websocket_urlpatterns as messaging_ws  # noqa: E402
from notifications.routing import websocket_urlpatterns as notifications_ws  # noqa: E402

application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        "websocket": AllowedHostsOriginValidator(
            FirebaseAuthMiddleware(URLRouter(messaging_ws + notifications_ws))
        ),
    }
)
