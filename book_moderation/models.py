from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
import uuid
import logging

from .conf import moderation_settings
from .managers import (
    BookQuerySet,
    CommentManager,
    CommentQuerySet,
    CommentReportQuerySet,
    ModerationActionQuerySet,
    NotificationQuerySet,
)

logger = logging.getLogger(moderation_settings.LOGGER_NAME)


class CommentStatus(models.TextChoices):
    """
    Lifecycle state of a comment.

    Persisted as the two legacy flags ``is_deleted`` and
    ``is_admin_deleted``; this is the only place the flags are interpreted.
    """
    ACTIVE = 'active', _('Active')
    SELF_DELETED = 'self_deleted', _('Deleted by author')
    MODERATOR_DELETED = 'moderator_deleted', _('Removed by moderator')


class ReportStatus(models.TextChoices):
    PENDING = 'pending', _('Pending')
    RESOLVED = 'resolved', _('Resolved')
    REJECTED = 'rejected', _('Rejected')


class ActionType(models.TextChoices):
    """Closed set of moderation actions recorded in the audit log."""
    DELETE = 'delete', _('Delete')
    IGNORE = 'ignore', _('Ignore')
    WARN_USER = 'warn_user', _('Warn user')
    BAN_USER = 'ban_user', _('Ban user')
    RESOLVE_REPORT = 'resolve_report', _('Resolve report')
    REJECT_REPORT = 'reject_report', _('Reject report')
    REPORT = 'report', _('Report')


class NotificationType(models.TextChoices):
    COMMENT_REPORTED = 'comment_reported', _('Comment reported')
    COMMENT_DELETED = 'comment_deleted', _('Comment deleted')
    REPORT_RESOLVED = 'report_resolved', _('Report resolved')
    REPORT_REJECTED = 'report_rejected', _('Report rejected')
    USER_WARNING = 'user_warning', _('Warning')
    USER_BANNED = 'user_banned', _('Banned')


class Book(models.Model):
    """
    A book posted by a user. Owns its comments; soft-deleting a book
    cascades to them.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name=_("ID")
    )

    title = models.CharField(_('Title'), max_length=255)
    author_name = models.CharField(_('Author'), max_length=255, blank=True)
    description = models.TextField(_('Description'), blank=True)

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        verbose_name=_('Owner'),
        related_name='books',
        help_text=_('The user who posted this book')
    )

    # Denormalized count of visible comments
    comment_count = models.PositiveIntegerField(_('Comment count'), default=0)

    is_deleted = models.BooleanField(_('Is deleted'), default=False, db_index=True)
    deleted_at = models.DateTimeField(_('Deleted at'), null=True, blank=True)
    deleted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        verbose_name=_('Deleted by'),
        related_name='books_deleted'
    )

    created_at = models.DateTimeField(_('Created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('Updated at'), auto_now=True)

    objects = BookQuerySet.as_manager()

    class Meta:
        verbose_name = _('Book')
        verbose_name_plural = _('Books')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['is_deleted', 'deleted_at'], name='book_deleted_idx'),
            models.Index(fields=['owner'], name='book_owner_idx'),
        ]

    def __str__(self):
        return self.title

    def refresh_comment_count(self):
        """Recompute the denormalized comment count from the comment rows."""
        self.comment_count = self.comments.visible().count()
        self.save(update_fields=['comment_count', 'updated_at'])
        return self.comment_count


class Comment(models.Model):
    """
    A comment on a book.

    ``is_deleted`` marks an author (or book cascade) soft delete and
    ``is_admin_deleted`` a moderator soft delete. Use ``status`` to reason
    about the lifecycle instead of reading the flags directly.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name=_("ID")
    )

    book = models.ForeignKey(
        Book,
        on_delete=models.CASCADE,
        verbose_name=_('Book'),
        related_name='comments'
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        verbose_name=_('Author'),
        related_name='book_comments'
    )

    content = models.TextField(_('Content'))
    is_edited = models.BooleanField(_('Is edited'), default=False)

    # Author or cascade soft delete
    is_deleted = models.BooleanField(_('Is deleted'), default=False)
    deleted_at = models.DateTimeField(_('Deleted at'), null=True, blank=True)
    deleted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        verbose_name=_('Deleted by'),
        related_name='comments_deleted'
    )
    deleted_by_cascade = models.BooleanField(
        _('Deleted with book'),
        default=False,
        help_text=_('Set when the deletion came from deleting the book')
    )

    # Moderator soft delete
    is_admin_deleted = models.BooleanField(_('Removed by moderator'), default=False)
    admin_deleted_at = models.DateTimeField(_('Removed at'), null=True, blank=True)
    admin_deleted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        verbose_name=_('Removed by'),
        related_name='comments_removed'
    )

    # Cache of the number of pending reports; see reports.recount_pending()
    pending_report_count = models.PositiveIntegerField(_('Pending reports'), default=0)

    created_at = models.DateTimeField(_('Created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('Updated at'), auto_now=True)

    objects = CommentManager.from_queryset(CommentQuerySet)()

    class Meta:
        verbose_name = _('Comment')
        verbose_name_plural = _('Comments')
        ordering = ('-created_at',)
        permissions = [('can_moderate_comments', _('Can moderate comments'))]
        indexes = [
            models.Index(fields=['book', 'is_deleted', 'is_admin_deleted'], name='comment_visibility_idx'),
            models.Index(fields=['user'], name='comment_user_idx'),
            models.Index(fields=['created_at'], name='comment_created_idx'),
        ]

    def __str__(self):
        return _("Comment by {user} on {book}").format(
            user=self.user.get_username(),
            book=self.book
        )

    @property
    def status(self):
        if self.is_admin_deleted:
            return CommentStatus.MODERATOR_DELETED
        if self.is_deleted:
            return CommentStatus.SELF_DELETED
        return CommentStatus.ACTIVE

    @property
    def is_active(self):
        return self.status == CommentStatus.ACTIVE

    def set_status(self, status, actor, cascade=False):
        """
        Move the comment to ``status``, translating it to the persisted flags.

        Only one flag is ever toggled per call. Returns the changed field names
        so callers can save with ``update_fields``.
        """
        now = timezone.now()
        if status == CommentStatus.SELF_DELETED:
            self.is_deleted = True
            self.deleted_at = now
            self.deleted_by = actor
            self.deleted_by_cascade = cascade
            return ['is_deleted', 'deleted_at', 'deleted_by', 'deleted_by_cascade', 'updated_at']
        if status == CommentStatus.MODERATOR_DELETED:
            self.is_admin_deleted = True
            self.admin_deleted_at = now
            self.admin_deleted_by = actor
            return ['is_admin_deleted', 'admin_deleted_at', 'admin_deleted_by', 'updated_at']
        raise ValueError(f"Cannot move a comment to status '{status}'")

    def get_absolute_url(self):
        return moderation_settings.COMMENT_URL_TEMPLATE.format(
            book_id=self.book_id,
            comment_id=self.pk
        )


class CommentReport(models.Model):
    """
    A user's report that a comment is abusive. One per (comment, reporter).
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name=_("ID")
    )

    comment = models.ForeignKey(
        Comment,
        on_delete=models.CASCADE,
        verbose_name=_('Comment'),
        related_name='reports'
    )

    reporter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        verbose_name=_('Reporter'),
        related_name='comment_reports'
    )

    reason = models.TextField(_('Reason'))

    status = models.CharField(
        _('Status'),
        max_length=20,
        choices=ReportStatus.choices,
        default=ReportStatus.PENDING,
        db_index=True
    )

    resolved_at = models.DateTimeField(_('Resolved at'), null=True, blank=True)
    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        verbose_name=_('Resolved by'),
        related_name='reports_resolved'
    )
    resolution_notes = models.TextField(_('Resolution notes'), blank=True)

    created_at = models.DateTimeField(_('Created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('Updated at'), auto_now=True)

    objects = CommentReportQuerySet.as_manager()

    class Meta:
        verbose_name = _('Comment report')
        verbose_name_plural = _('Comment reports')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['comment', 'reporter'],
                name='unique_comment_reporter',
                violation_error_message=_('You have already reported this comment.')
            )
        ]
        indexes = [
            models.Index(fields=['comment', 'status'], name='report_comment_status_idx'),
            models.Index(fields=['status', 'created_at'], name='report_status_date_idx'),
        ]

    def __str__(self):
        return _('{user} reported comment {comment} ({status})').format(
            user=self.reporter.get_username(),
            comment=self.comment_id,
            status=self.get_status_display()
        )

    @property
    def is_pending(self):
        return self.status == ReportStatus.PENDING

    def _close(self, status, moderator, notes):
        if not self.is_pending:
            from .exceptions import AlreadyResolved
            raise AlreadyResolved(status=self.status)
        self.status = status
        self.resolved_by = moderator
        self.resolved_at = timezone.now()
        self.resolution_notes = notes
        self.save(update_fields=['status', 'resolved_by', 'resolved_at', 'resolution_notes', 'updated_at'])

    def mark_resolved(self, moderator, notes=''):
        """Mark this report as upheld. Terminal."""
        self._close(ReportStatus.RESOLVED, moderator, notes)

    def mark_rejected(self, moderator, notes=''):
        """Mark this report as dismissed. Terminal."""
        self._close(ReportStatus.REJECTED, moderator, notes)


class ModerationAction(models.Model):
    """
    Append-only log of moderation actions.
    Tracks who did what to which comment, and why.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name=_("ID")
    )

    moderator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        verbose_name=_('Moderator'),
        related_name='moderation_actions'
    )

    comment = models.ForeignKey(
        Comment,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        verbose_name=_('Comment'),
        related_name='moderation_actions'
    )

    action_type = models.CharField(
        _('Action'),
        max_length=20,
        choices=ActionType.choices
    )

    reason = models.TextField(
        _('Reason'),
        blank=True,
        help_text=_('Reason for this action')
    )

    # For warn and ban actions
    affected_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        verbose_name=_('Affected User'),
        related_name='moderation_actions_received'
    )

    created_at = models.DateTimeField(_('Created at'), auto_now_add=True)

    objects = ModerationActionQuerySet.as_manager()

    class Meta:
        verbose_name = _('Moderation Action')
        verbose_name_plural = _('Moderation Actions')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['comment'], name='modaction_comment_idx'),
            models.Index(fields=['moderator', 'action_type'], name='modaction_mod_idx'),
            models.Index(fields=['created_at'], name='modaction_time_idx'),
        ]

    def __str__(self):
        return _("{moderator} {action} at {time}").format(
            moderator=self.moderator.get_username() if self.moderator else 'System',
            action=self.get_action_type_display(),
            time=self.created_at.strftime('%Y-%m-%d %H:%M')
        )

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Moderation actions are append-only and cannot be modified.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Moderation actions are append-only and cannot be deleted.")


class Notification(models.Model):
    """
    In-app notification for a user affected by a moderation action.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name=_("ID")
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        verbose_name=_('User'),
        related_name='moderation_notifications'
    )

    notification_type = models.CharField(
        _('Type'),
        max_length=30,
        choices=NotificationType.choices
    )

    message = models.TextField(_('Message'))
    link = models.CharField(_('Link'), max_length=500, blank=True)
    is_read = models.BooleanField(_('Is read'), default=False)

    created_at = models.DateTimeField(_('Created at'), auto_now_add=True)

    objects = NotificationQuerySet.as_manager()

    class Meta:
        verbose_name = _('Notification')
        verbose_name_plural = _('Notifications')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read'], name='notification_unread_idx'),
        ]

    def __str__(self):
        return f'{self.get_notification_type_display()} for {self.user.get_username()}'

    def mark_read(self):
        if not self.is_read:
            self.is_read = True
            self.save(update_fields=['is_read'])


class BannedUser(models.Model):
    """
    Track users who are banned from commenting.
    Supports both permanent and temporary bans.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name=_("ID")
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        verbose_name=_('User'),
        related_name='comment_bans'
    )

    banned_until = models.DateTimeField(
        _('Banned Until'),
        null=True,
        blank=True,
        help_text=_('Leave empty for permanent ban')
    )

    reason = models.TextField(_('Reason'))

    banned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        verbose_name=_('Banned By'),
        related_name='users_banned'
    )

    comment = models.ForeignKey(
        Comment,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        verbose_name=_('Comment'),
        related_name='bans',
        help_text=_('The comment that led to the ban')
    )

    created_at = models.DateTimeField(_('Created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('Updated at'), auto_now=True)

    class Meta:
        verbose_name = _('Banned User')
        verbose_name_plural = _('Banned Users')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['user'],
                name='unique_banned_user',
                violation_error_message=_('This user is already banned.')
            )
        ]
        indexes = [
            models.Index(fields=['user', 'banned_until'], name='banneduser_until_idx'),
        ]

    def __str__(self):
        if self.banned_until:
            return _("{user} banned until {date}").format(
                user=self.user.get_username(),
                date=self.banned_until.strftime('%Y-%m-%d')
            )
        return _("{user} permanently banned").format(user=self.user.get_username())

    @property
    def is_permanent(self):
        return self.banned_until is None

    @property
    def is_active(self):
        """Check if ban is currently active."""
        if self.banned_until is None:
            return True
        return timezone.now() < self.banned_until

    @classmethod
    def is_user_banned(cls, user):
        if not user or not user.is_authenticated:
            return False
        return cls.objects.filter(user=user).filter(
            models.Q(banned_until__isnull=True) |
            models.Q(banned_until__gt=timezone.now())
        ).exists()
