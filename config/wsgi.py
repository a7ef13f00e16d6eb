"""WSGI entry point for the Phuket Yachts API.

Gunicorn and similar servers import ``application`` from here.
"""

import os
from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.prod')

application = get_wsgi_application()
