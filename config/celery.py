import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("phuket_yachts")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Cancel unpaid bookings past their hold window - every 15 minutes
    "expire-pending-bookings": {
        "task": "bookings.expire_pending_bookings",
        "schedule": crontab(minute="*/15"),
        "options": {"expires": 600},
    },
    # Complete paid bookings whose date has passed - daily after midnight
    "complete-past-bookings": {
        "task": "bookings.complete_past_bookings",
        "schedule": crontab(minute=10, hour=0),
    },
    # Expire gift cards past their expiry date - daily
    "expire-gift-cards": {
        "task": "promotions.expire_gift_cards",
        "schedule": crontab(minute=20, hour=0),
    },
}

app.conf.timezone = "Asia/Bangkok"
