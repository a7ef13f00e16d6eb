"""Celery tasks for promotions."""

from __future__ import annotations

import logging

from celery import shared_task

from .services import GiftCardService

logger = logging.getLogger(__name__)


@shared_task(name="promotions.expire_gift_cards")
def expire_gift_cards() -> dict:
    expired = GiftCardService().expire_old_cards()
    return {"expired": expired}
