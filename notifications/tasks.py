# notifications/tasks.py
import logging
from datetime import timedelta
from typing import Dict, List, Optional

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from core.exceptions import StoreError
from core.store import Query, collection_path, get_store

from .services import FANS_COLLECTION, notifications_collection, notify

logger = logging.getLogger(__name__)


@shared_task(
    name="notifications.broadcast",
    ignore_result=False,
    priority=10,
)
def broadcast(recipient_ids: List[str], content: str, link: str) -> Dict[str, int]:
    """
    Send the same notification to several fans.

    Each recipient is written independently; one failing recipient does not
    stop the others.

    Args:
        recipient_ids: fan uids to notify
        content: notification text
        link: in-app link the notification opens

    Returns:
        Counts of delivered and failed recipients
    """
    delivered = failed = 0
    for recipient_id in dict.fromkeys(recipient_ids):
        if notify(recipient_id, content, link):
            delivered += 1
        else:
            failed += 1
    logger.info("Broadcast delivered to %d fan(s), %d failed", delivered, failed)
    return {"delivered": delivered, "failed": failed}


@shared_task(
    name="notifications.cleanup_read",
    ignore_result=True,
    priority=5,
)
def cleanup_read_notifications(
    days: Optional[int] = None, recipient_ids: Optional[List[str]] = None
) -> int:
    """
    Delete read notifications older than the retention window.

    Args:
        days: retention in days, NOTIFICATION_RETENTION_DAYS by default
        recipient_ids: fans to clean up; every fan profile when omitted

    Returns:
        Number of deleted notifications
    """
    if days is None:
        days = getattr(settings, "NOTIFICATION_RETENTION_DAYS", 30)
    store = get_store()
    cutoff = timezone.now() - timedelta(days=days)
    if recipient_ids is None:
        recipient_ids = [s.id for s in store.query(Query(collection_path(FANS_COLLECTION)))]

    deleted = 0
    for recipient_id in recipient_ids:
        query = (
            Query(notifications_collection(recipient_id))
            .where("read", "==", True)
            .where("timestamp", "<", cutoff)
        )
        try:
            for snapshot in store.query(query):
                store.delete(snapshot.path)
                deleted += 1
        except StoreError:
            logger.exception("Cleanup failed for notifications of %s", recipient_id)
    logger.info("Cleaned up %s old notifications", deleted)
    return deleted
