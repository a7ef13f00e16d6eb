"""Local development settings. Never deploy with these."""

from .base import *  # noqa: F401,F403

DEBUG = True
ALLOWED_HOSTS = ['*']

# Outgoing mail is printed to the runserver console
EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

PAYMENT_WEBHOOK_SECRET = 'dev-webhook-secret'
