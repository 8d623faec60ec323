"""
Celery tasks for book_moderation.

Used when BOOK_MODERATION_CONFIG['USE_ASYNC_NOTIFICATIONS'] is True.
Workers are started the usual way: celery -A your_project worker -l info
"""
import logging

from celery import shared_task
from django.contrib.auth import get_user_model

from .conf import moderation_settings

logger = logging.getLogger(moderation_settings.LOGGER_NAME)


@shared_task(name='book_moderation.deliver_notification', bind=True, max_retries=3)
def deliver_notification_task(self, user_id, notification_type, message, link=''):
    """
    Async task to store (and optionally email) one notification.

    Args:
        user_id: Recipient primary key
        notification_type: NotificationType value
        message: Notification text
        link: Optional link
    """
    User = get_user_model()
    try:
        user = User.objects.get(pk=user_id)
    except User.DoesNotExist:
        logger.error(f"[Celery] User {user_id} not found for notification")
        return False

    from .notifications import notification_service

    try:
        delivered = notification_service.deliver(user, notification_type, message, link)
    except Exception as exc:
        logger.error(f"[Celery] Failed to deliver notification to user {user_id}: {exc}")
        raise self.retry(exc=exc, countdown=60 * (2 ** self.request.retries))

    if delivered:
        logger.info(f"[Celery] Delivered {notification_type} notification to user {user_id}")
    return delivered
