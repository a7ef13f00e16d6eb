"""ASGI entry point for the Phuket Yachts API."""

import os
from django.core.asgi import get_asgi_application  # type: ignore

# Deployments choose their settings module through DJANGO_SETTINGS_MODULE.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.prod')

application = get_asgi_application()
