"""
In-app notification system for book_moderation.

Every notification is stored as a ``Notification`` row and can also be
emailed. Delivery is best-effort: failures are logged and never interrupt
the moderation action that triggered them.

Delivery is synchronous by default. To deliver through Celery:
1. Configure Celery in your Django project
2. Set BOOK_MODERATION_CONFIG['USE_ASYNC_NOTIFICATIONS'] = True
3. Start Celery workers

Async deliveries are queued when the current transaction commits.
"""
import logging

import bleach
from django.core.mail import send_mail
from django.db import DatabaseError, transaction

from .conf import moderation_settings
from .models import Notification, NotificationType
from .utils import get_moderators

logger = logging.getLogger(moderation_settings.LOGGER_NAME)


def clean_message(message):
    """Strip any markup from user-supplied text embedded in a message."""
    return bleach.clean(str(message), tags=[], strip=True).strip()


class ModerationNotificationService:
    """Service for delivering moderation notifications (sync or async)."""

    @property
    def enabled(self):
        return moderation_settings.SEND_NOTIFICATIONS

    @property
    def use_async(self):
        return moderation_settings.USE_ASYNC_NOTIFICATIONS

    def notify(self, user, notification_type, message, link=''):
        """
        Notify ``user``.

        Returns:
            bool: True if the notification was delivered or queued
        """
        if not self.enabled or user is None:
            return False

        notification_type = NotificationType(notification_type)

        if self.use_async:
            return self._dispatch_async(user, notification_type, message, link)

        return self.deliver(user, notification_type, message, link)

    def _dispatch_async(self, user, notification_type, message, link):
        from . import tasks

        def enqueue():
            try:
                tasks.deliver_notification_task.delay(
                    user.pk, notification_type.value, str(message), link
                )
            except Exception as e:
                logger.error(f"Failed to queue notification for user {user.pk}: {e}")

        transaction.on_commit(enqueue)
        logger.debug(f"Queued {notification_type.value} notification for user {user.pk}")
        return True

    def deliver(self, user, notification_type, message, link=''):
        """
        Store the notification and optionally email it.

        Returns:
            bool: True if the notification row was written
        """
        notification_type = NotificationType(notification_type)
        message = clean_message(message)

        try:
            with transaction.atomic():
                Notification.objects.create(
                    user=user,
                    notification_type=notification_type,
                    message=message,
                    link=link or '',
                )
        except DatabaseError as e:
            logger.error(
                f"Failed to store {notification_type.value} notification "
                f"for user {user.pk}: {e}"
            )
            return False

        if moderation_settings.SEND_EMAIL_NOTIFICATIONS:
            self._send_email(user, notification_type, message, link)

        logger.debug(f"Sent {notification_type.value} notification to user {user.pk}")
        return True

    def _send_email(self, user, notification_type, message, link):
        if not user.email:
            logger.debug(f"User {user.pk} has no email, skipping email notification")
            return False

        body = f"{message}\n\n{link}" if link else message
        try:
            send_mail(
                subject=str(notification_type.label),
                message=body,
                from_email=moderation_settings.DEFAULT_FROM_EMAIL,
                recipient_list=[user.email],
                fail_silently=False,
            )
            return True
        except Exception as e:
            logger.error(f"Failed to email notification to user {user.pk}: {e}")
            return False

    def notify_moderators(self, notification_type, message, link='', exclude=None):
        """
        Notify every moderator.

        Returns:
            int: number of moderators notified
        """
        if not self.enabled:
            return 0

        try:
            moderators = list(get_moderators())
        except DatabaseError as e:
            logger.error(f"Failed to load moderators for notification: {e}")
            return 0

        sent = 0
        for moderator in moderators:
            if exclude is not None and moderator.pk == exclude.pk:
                continue
            if self.notify(moderator, notification_type, message, link):
                sent += 1
        return sent


notification_service = ModerationNotificationService()


def _book_title(comment):
    return clean_message(comment.book.title)


def notify_report_submitted(report):
    """
    Tell moderators (and optionally the author) that a comment was reported.
    """
    comment = report.comment
    reason = clean_message(report.reason)

    if moderation_settings.NOTIFY_MODERATORS_ON_REPORT:
        notification_service.notify_moderators(
            NotificationType.COMMENT_REPORTED,
            f"A comment by {comment.user.get_username()} on \"{_book_title(comment)}\" "
            f"was reported by {report.reporter.get_username()}. Reason: {reason}",
            moderation_settings.REPORTED_COMMENTS_URL,
        )

    if moderation_settings.NOTIFY_AUTHOR_ON_REPORT:
        message = (
            f"Your comment on \"{_book_title(comment)}\" was reported "
            f"and will be reviewed by a moderator."
        )
        if moderation_settings.DISCLOSE_REPORT_REASON_TO_AUTHOR:
            message += f" Reason: {reason}"
        notification_service.notify(
            comment.user,
            NotificationType.COMMENT_REPORTED,
            message,
            comment.get_absolute_url(),
        )


def notify_auto_removal(comment, reason, report_count):
    """
    Tell moderators and the author that a comment was removed by the
    report threshold.

    Moderators receive the triggering reason. The author only receives it
    when DISCLOSE_REPORT_REASON_TO_AUTHOR is set, and never receives the
    reasons of earlier reports.
    """
    reason = clean_message(reason)

    notification_service.notify_moderators(
        NotificationType.COMMENT_DELETED,
        f"A comment by {comment.user.get_username()} on \"{_book_title(comment)}\" "
        f"was removed automatically after {report_count} reports. "
        f"Latest reason: {reason}",
        moderation_settings.REPORTED_COMMENTS_URL,
    )

    message = (
        f"Your comment on \"{_book_title(comment)}\" was removed automatically "
        f"because it received a high number of reports."
    )
    if moderation_settings.DISCLOSE_REPORT_REASON_TO_AUTHOR:
        message += f" Reason: {reason}"
    notification_service.notify(
        comment.user,
        NotificationType.COMMENT_DELETED,
        message,
        comment.get_absolute_url(),
    )


def notify_report_resolved(report, comment_removed=True):
    """
    Tell the reporter their report was upheld and, when this resolution
    removed the comment, tell the author.
    """
    comment = report.comment
    notification_service.notify(
        report.reporter,
        NotificationType.REPORT_RESOLVED,
        f"Your report on a comment on \"{_book_title(comment)}\" was upheld "
        f"and the comment has been removed. Thank you.",
    )
    if not comment_removed:
        return
    notification_service.notify(
        comment.user,
        NotificationType.COMMENT_DELETED,
        f"Your comment on \"{_book_title(comment)}\" was removed by a moderator "
        f"following a report.",
        comment.get_absolute_url(),
    )


def notify_report_rejected(report):
    comment = report.comment
    notification_service.notify(
        report.reporter,
        NotificationType.REPORT_REJECTED,
        f"Your report on a comment on \"{_book_title(comment)}\" was reviewed. "
        f"The comment does not break the community rules.",
        comment.get_absolute_url(),
    )


def notify_comment_removed(comment, moderator):
    """Tell the author a moderator removed their comment."""
    if comment.user_id == moderator.pk:
        return False
    return notification_service.notify(
        comment.user,
        NotificationType.COMMENT_DELETED,
        f"Your comment on \"{_book_title(comment)}\" was removed by a moderator.",
        comment.get_absolute_url(),
    )


def notify_user_warned(user, comment, reason):
    return notification_service.notify(
        user,
        NotificationType.USER_WARNING,
        f"You received a warning about your comment on \"{_book_title(comment)}\": "
        f"{clean_message(reason)}",
        comment.get_absolute_url(),
    )


def notify_user_banned(ban):
    """
    Notify user that they have been banned.
    """
    if ban.banned_until:
        message = (
            f"You have been banned from commenting until "
            f"{ban.banned_until.strftime('%Y-%m-%d')}. Reason: {clean_message(ban.reason)}"
        )
    else:
        message = (
            f"You have been permanently banned from commenting. "
            f"Reason: {clean_message(ban.reason)}"
        )
    return notification_service.notify(ban.user, NotificationType.USER_BANNED, message)
