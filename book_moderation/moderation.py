"""
Moderation engine.

Entry points for every reporting and moderation operation. Each operation
validates its input, applies the state change to the stores inside one
transaction with the affected row locked, and only then writes the audit
log, sends notifications and fires signals. Those side effects are
best-effort: a failure is logged and the committed change stands.

Actors are always passed in explicitly as ``User`` instances.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta

from django.utils import timezone

from . import audit, books, lifecycle, notifications, reports, signals
from .conf import moderation_settings
from .exceptions import (
    BookNotFound,
    CommentNotFound,
    Forbidden,
    ReportNotFound,
)
from .models import (
    ActionType,
    BannedUser,
    Book,
    Comment,
    CommentReport,
    ModerationAction,
)
from .utils import (
    get_or_create_system_user,
    is_moderator,
    moderation_transaction,
    paginate,
)

logger = logging.getLogger(moderation_settings.LOGGER_NAME)


@dataclass
class ReportOutcome:
    """Result of ``report_comment``."""
    report: CommentReport
    comment: Comment
    triggered_auto_removal: bool = False


# ============================================================================
# HELPERS
# ============================================================================

def _as_uuid(value, not_found):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise not_found()


def _require_user(user, message="You must be logged in to do this."):
    if user is None or not user.is_authenticated:
        raise Forbidden(message)


def _require_moderator(user, message="You don't have permission to moderate comments."):
    if not is_moderator(user):
        raise Forbidden(message)


def _lock_comment(comment_id):
    comment = Comment.objects.lock(_as_uuid(comment_id, CommentNotFound))
    if comment is None:
        raise CommentNotFound()
    return comment


def _get_comment(comment_id):
    comment = Comment.objects.with_related().filter(
        pk=_as_uuid(comment_id, CommentNotFound)
    ).first()
    if comment is None:
        raise CommentNotFound()
    return comment


def _lock_report(report_id):
    """
    Lock the report's comment, then the report, in that order.

    Returns:
        tuple: (report, comment)
    """
    pk = _as_uuid(report_id, ReportNotFound)
    comment_id = CommentReport.objects.filter(pk=pk).values_list('comment_id', flat=True).first()
    if comment_id is None:
        raise ReportNotFound()
    comment = Comment.objects.lock(comment_id)
    report = CommentReport.objects.select_for_update().filter(pk=pk).first()
    if report is None or comment is None:
        raise ReportNotFound()
    report.comment = comment
    return report, comment


def _lock_book(book_id):
    book = Book.objects.select_for_update().filter(pk=_as_uuid(book_id, BookNotFound)).first()
    if book is None:
        raise BookNotFound()
    return book


def _best_effort(description, func, *args, **kwargs):
    """
    Run a post-commit side effect; failures are logged, never raised.
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        logger.error(f"Error while {description}: {e}")
        return None


# ============================================================================
# REPORTING
# ============================================================================

def report_comment(comment_id, reporter, reason):
    """
    Report a comment and apply the auto-removal threshold.

    The report insert, the authoritative pending count and, when the count
    reaches AUTO_REMOVE_THRESHOLD, the moderator removal of the comment and
    the bulk resolution of its pending reports all happen in one
    transaction under the comment row lock. Once removed the comment is no
    longer active, so a concurrent report cannot trigger a second removal.

    Returns:
        ReportOutcome

    Raises:
        Forbidden, CommentNotFound, SelfReport, InvalidReason,
        DuplicateReport, TransientError
    """
    _require_user(reporter, "You must be logged in to report comments.")

    system_user = None
    with moderation_transaction():
        comment = _lock_comment(comment_id)
        report = reports.submit(comment, reporter, reason)

        pending = CommentReport.objects.for_comment(comment).pending().count()
        triggered = pending >= moderation_settings.AUTO_REMOVE_THRESHOLD
        if triggered:
            system_user = get_or_create_system_user()
            lifecycle.delete(
                comment,
                system_user,
                as_moderator=True,
                system=True,
                notes=f"Removed automatically after {pending} reports",
            )
            report.refresh_from_db()
            logger.info(
                f"Comment {comment.pk} removed automatically after {pending} reports"
            )

    _best_effort(
        "logging report", audit.append, reporter, comment, ActionType.REPORT, report.reason
    )

    if triggered:
        _best_effort(
            "logging automatic removal",
            audit.append,
            system_user,
            comment,
            ActionType.DELETE,
            f"Removed automatically after {pending} reports",
        )
        _best_effort(
            "sending auto-removal notifications",
            notifications.notify_auto_removal,
            comment,
            report.reason,
            pending,
        )
        signals.safe_send(
            signals.comment_auto_removed,
            sender=Comment,
            comment=comment,
            report=report,
            report_count=pending,
        )
    else:
        _best_effort(
            "sending report notifications", notifications.notify_report_submitted, report
        )

    signals.safe_send(
        signals.comment_reported,
        sender=CommentReport,
        report=report,
        comment=comment,
        reporter=reporter,
        triggered_auto_removal=triggered,
    )

    return ReportOutcome(report=report, comment=comment, triggered_auto_removal=triggered)


def resolve_report(report_id, moderator, notes=''):
    """
    Uphold a pending report and remove its comment.

    Other pending reports on the same comment stay pending.

    Raises:
        Forbidden, ReportNotFound, AlreadyResolved, TransientError
    """
    _require_moderator(moderator)

    comment_removed = False
    with moderation_transaction():
        report, comment = _lock_report(report_id)
        reports.resolve(report, moderator, notes)
        if comment.is_active:
            lifecycle.delete(comment, moderator, as_moderator=True, resolve_pending=False)
            comment_removed = True

    _best_effort(
        "logging report resolution",
        audit.append,
        moderator,
        comment,
        ActionType.RESOLVE_REPORT,
        notes or f"Report upheld: {report.reason}",
    )
    _best_effort(
        "sending report resolution notifications",
        notifications.notify_report_resolved,
        report,
        comment_removed,
    )
    signals.safe_send(
        signals.report_resolved,
        sender=CommentReport,
        report=report,
        moderator=moderator,
        comment_removed=comment_removed,
    )
    return report


def reject_report(report_id, moderator, notes=''):
    """
    Dismiss a pending report. The comment stays visible.

    Raises:
        Forbidden, ReportNotFound, AlreadyResolved, TransientError
    """
    _require_moderator(moderator)

    with moderation_transaction():
        report, comment = _lock_report(report_id)
        reports.reject(report, moderator, notes)

    _best_effort(
        "logging report rejection",
        audit.append,
        moderator,
        comment,
        ActionType.REJECT_REPORT,
        notes or f"Report rejected: {report.reason}",
    )
    _best_effort(
        "sending report rejection notification",
        notifications.notify_report_rejected,
        report,
    )
    signals.safe_send(
        signals.report_rejected,
        sender=CommentReport,
        report=report,
        moderator=moderator,
    )
    return report


def ignore_report(report_id, moderator, reason=''):
    """
    Dismiss a pending report without telling the reporter.

    Recorded in the audit log as ``ignore``.
    """
    _require_moderator(moderator)

    with moderation_transaction():
        report, comment = _lock_report(report_id)
        reports.reject(report, moderator, reason or 'Ignored')

    _best_effort(
        "logging ignored report",
        audit.append,
        moderator,
        comment,
        ActionType.IGNORE,
        reason or f"Report ignored: {report.reason}",
    )
    return report


def recount_pending_reports(comment_id):
    """
    Recompute a comment's cached pending report count.

    Returns:
        int: the stored count
    """
    with moderation_transaction():
        comment = _lock_comment(comment_id)
        return reports.recount_pending(comment)


def list_reported_comments(page=1, per_page=None, status_filter='pending'):
    """
    Comments with reports in ``status_filter`` ('pending', 'resolved',
    'rejected' or 'all'), most reported first.

    Each item is annotated with ``report_count`` and ``last_reported_at``.

    Raises:
        InvalidStatusFilter
    """
    return paginate(reports.reported_comments(status_filter), page, per_page)


def get_comment_reports(comment_id, moderator):
    """
    Every report filed against a comment, newest first.
    """
    _require_moderator(moderator)
    comment = _get_comment(comment_id)
    return list(reports.reports_for_comment(comment))


# ============================================================================
# COMMENT LIFECYCLE
# ============================================================================

def delete_comment(comment_id, actor, as_moderator=False, reason=''):
    """
    Soft-delete a comment as its author, or remove it as a moderator.

    Raises:
        Forbidden, CommentNotFound, AlreadyDeleted, TransientError
    """
    _require_user(actor)

    with moderation_transaction():
        comment = _lock_comment(comment_id)
        lifecycle.delete(comment, actor, as_moderator=as_moderator, notes=reason)

    if not reason:
        if as_moderator:
            reason = "Removed by moderator"
        elif actor.pk == comment.user_id:
            reason = "Deleted by author"
        else:
            reason = "Deleted by moderator"
    _best_effort("logging comment deletion", audit.append, actor, comment, ActionType.DELETE, reason)
    _best_effort(
        "sending comment removal notification",
        notifications.notify_comment_removed,
        comment,
        actor,
    )
    signals.safe_send(
        signals.comment_deleted,
        sender=Comment,
        comment=comment,
        actor=actor,
        as_moderator=as_moderator,
    )
    return comment


def update_comment(comment_id, actor, content):
    """
    Edit a comment. Author only, while the comment is active.

    Raises:
        Forbidden, CommentNotFound, AlreadyDeleted, InvalidLength
    """
    _require_user(actor)

    with moderation_transaction():
        comment = _lock_comment(comment_id)
        return lifecycle.update(comment, content, actor)


def get_visible_comments(book_id, viewer=None, page=1, per_page=None):
    """
    One page of a book's comments as seen by ``viewer``.

    Deleted books are only visible to moderators.

    Raises:
        BookNotFound
    """
    book = Book.objects.filter(pk=_as_uuid(book_id, BookNotFound)).first()
    if book is None or (book.is_deleted and not is_moderator(viewer)):
        raise BookNotFound()
    return lifecycle.get_visible(book, viewer, page, per_page)


# ============================================================================
# BOOKS
# ============================================================================

def delete_book(book_id, actor):
    """
    Soft-delete a book and cascade the deletion to its comments.

    Raises:
        Forbidden, BookNotFound, AlreadyDeleted, TransientError
    """
    _require_user(actor)

    with moderation_transaction():
        book = _lock_book(book_id)
        cascaded = books.soft_delete(book, actor)

    signals.safe_send(
        signals.book_deleted,
        sender=Book,
        book=book,
        actor=actor,
        comment_count=cascaded,
    )
    return book


def restore_book(book_id, actor):
    """
    Restore a deleted book and the comments its deletion cascaded to.

    Moderator-removed comments stay removed.

    Raises:
        Forbidden, BookNotFound, NotDeleted, TransientError
    """
    _require_moderator(actor, "Only moderators can restore books.")

    with moderation_transaction():
        book = _lock_book(book_id)
        restored = books.restore(book, actor)

    signals.safe_send(
        signals.book_restored,
        sender=Book,
        book=book,
        actor=actor,
        comment_count=restored,
    )
    return book


def list_deleted_books(page=1, per_page=None):
    queryset = Book.objects.deleted().select_related('owner', 'deleted_by').order_by('-deleted_at')
    return paginate(queryset, page, per_page)


# ============================================================================
# AUDIT LOG & SANCTIONS
# ============================================================================

def log_moderation_action(moderator, comment, action_type, reason=''):
    """
    Append an audit record.

    Returns:
        bool: False if the record could not be written

    Raises:
        InvalidActionType: for an action type outside ActionType
    """
    return audit.append(moderator, comment, action_type, reason)


def list_moderation_actions(page=1, per_page=None, user=None, action_type=None,
                            date_from=None, date_to=None):
    """
    Page through the audit log, newest first.

    Args:
        user: only actions on comments written by, or targeting, this user
        action_type: only this ActionType
        date_from / date_to: inclusive date range

    Raises:
        InvalidActionType
    """
    queryset = ModerationAction.objects.with_related()
    if user is not None:
        queryset = queryset.concerning_user(user)
    if action_type:
        queryset = queryset.of_type(audit.coerce_action_type(action_type))
    queryset = queryset.between(date_from, date_to).order_by('-created_at')
    return paginate(
        queryset,
        page,
        per_page,
        default_per_page=moderation_settings.MODERATION_LOG_PAGE_SIZE,
    )


def warn_user(comment_id, moderator, reason):
    """
    Warn the author of a comment.

    Returns:
        bool: True if the warning notification was delivered

    Raises:
        Forbidden, CommentNotFound, InvalidReason
    """
    _require_moderator(moderator)
    reason = reports.clean_reason(reason)
    comment = _get_comment(comment_id)

    _best_effort(
        "logging warning",
        audit.append,
        moderator,
        comment,
        ActionType.WARN_USER,
        reason,
        affected_user=comment.user,
    )
    logger.info(f"User {comment.user_id} warned by {moderator}")
    return bool(_best_effort(
        "sending warning notification",
        notifications.notify_user_warned,
        comment.user,
        comment,
        reason,
    ))


def ban_user(comment_id, moderator, reason, duration_days=None, permanent=False):
    """
    Ban the author of a comment from commenting.

    Args:
        duration_days: ban length; defaults to DEFAULT_BAN_DURATION_DAYS
        permanent: ignore the duration and ban without an end date

    Returns:
        BannedUser

    Raises:
        Forbidden, CommentNotFound, InvalidReason, TransientError
    """
    _require_moderator(moderator)
    reason = reports.clean_reason(reason)

    if duration_days is None:
        duration_days = moderation_settings.DEFAULT_BAN_DURATION_DAYS
    if permanent or duration_days is None:
        banned_until = None
    else:
        banned_until = timezone.now() + timedelta(days=int(duration_days))

    with moderation_transaction():
        comment = _lock_comment(comment_id)
        target = comment.user
        if target.pk == moderator.pk:
            raise Forbidden("You cannot ban yourself.")
        if is_moderator(target):
            raise Forbidden("Moderators cannot be banned.")

        ban, _ = BannedUser.objects.update_or_create(
            user=target,
            defaults={
                'banned_until': banned_until,
                'reason': reason,
                'banned_by': moderator,
                'comment': comment,
            }
        )

    duration = 'permanent' if banned_until is None else f'{duration_days} days'
    _best_effort(
        "logging ban",
        audit.append,
        moderator,
        comment,
        ActionType.BAN_USER,
        f"{reason} ({duration})",
        affected_user=target,
    )
    _best_effort("sending ban notification", notifications.notify_user_banned, ban)
    logger.info(f"User {target.pk} banned by {moderator} ({duration})")
    return ban
