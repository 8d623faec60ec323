from django.db import models
from django.db.models import Count, Max, Q

PENDING = 'pending'


class BookQuerySet(models.QuerySet):
    """QuerySet for Book with soft-delete helpers."""

    def active(self):
        return self.filter(is_deleted=False)

    def deleted(self):
        return self.filter(is_deleted=True)


class CommentQuerySet(models.QuerySet):
    """
    Custom QuerySet for Comment model.

    Visibility is expressed through the two persisted soft-delete flags:
    a comment is visible only when neither is set.
    """

    def with_related(self):
        """
        Optimize foreign key access for listings.
        """
        return self.select_related('user', 'book')

    def visible(self):
        """Return only comments that are neither self- nor moderator-deleted."""
        return self.filter(is_deleted=False, is_admin_deleted=False)

    def moderator_deleted(self):
        return self.filter(is_admin_deleted=True)

    def visible_to(self, viewer=None):
        """
        Return the comments a viewer may see.

        Self-deleted comments are hidden from everyone. Moderator-deleted
        comments are hidden from everyone except their own author.
        """
        queryset = self.filter(is_deleted=False)
        if viewer is not None and viewer.is_authenticated:
            return queryset.filter(Q(is_admin_deleted=False) | Q(user=viewer))
        return queryset.filter(is_admin_deleted=False)

    def for_book(self, book):
        return self.filter(book=book)

    def with_pending_report_count(self):
        """
        Annotate with the authoritative number of pending reports.
        """
        return self.annotate(
            report_count=Count('reports', filter=Q(reports__status=PENDING), distinct=True)
        )

    def reported(self, statuses):
        """
        Comments with at least one report in ``statuses``, grouped with the
        matching report count and the time of the latest matching report.

        Ordered by report count, then by most recent report.
        """
        report_filter = Q(reports__status__in=list(statuses))
        return self.filter(is_deleted=False).annotate(
            report_count=Count('reports', filter=report_filter, distinct=True),
            last_reported_at=Max('reports__created_at', filter=report_filter),
        ).filter(report_count__gt=0).order_by('-report_count', '-last_reported_at')


class CommentManager(models.Manager):
    """
    Custom Manager for Comment model.
    """

    def lock(self, pk):
        """
        Return the comment row locked for update, or None.

        Must be called inside an atomic block.
        """
        return self.select_for_update().filter(pk=pk).first()


class CommentReportQuerySet(models.QuerySet):

    def with_related(self):
        return self.select_related('comment', 'comment__user', 'reporter', 'resolved_by')

    def pending(self):
        return self.filter(status=PENDING)

    def with_status(self, status):
        return self.filter(status=status)

    def for_comment(self, comment):
        return self.filter(comment=comment)


class ModerationActionQuerySet(models.QuerySet):
    """
    QuerySet for the moderation log.
    """

    def with_related(self):
        return self.select_related('moderator', 'comment', 'comment__user', 'affected_user')

    def concerning_user(self, user):
        """
        Actions taken on comments written by ``user`` or targeting them directly.
        """
        return self.filter(Q(comment__user=user) | Q(affected_user=user))

    def of_type(self, action_type):
        return self.filter(action_type=action_type)

    def between(self, date_from=None, date_to=None):
        queryset = self
        if date_from:
            queryset = queryset.filter(created_at__date__gte=date_from)
        if date_to:
            queryset = queryset.filter(created_at__date__lte=date_to)
        return queryset


class NotificationQuerySet(models.QuerySet):

    def for_user(self, user):
        return self.filter(user=user)

    def unread(self):
        return self.filter(is_read=False)
