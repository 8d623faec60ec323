"""
Report ledger.

Stores one ``CommentReport`` per (comment, reporter) and keeps the
comment's cached ``pending_report_count`` in line with the report rows.
Callers hold the comment row lock (see ``moderation``) while calling the
mutating functions here.
"""
import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from .conf import moderation_settings
from .exceptions import (
    CommentNotFound,
    DuplicateReport,
    InvalidReason,
    InvalidStatusFilter,
    SelfReport,
)
from .models import Comment, CommentReport, ReportStatus

logger = logging.getLogger(moderation_settings.LOGGER_NAME)

STATUS_ALL = 'all'
STATUS_FILTERS = ReportStatus.values + [STATUS_ALL]


def clean_reason(reason):
    """
    Trim ``reason`` and check its length.

    Raises:
        InvalidReason: if the trimmed reason is too short or too long
    """
    reason = (reason or '').strip()
    min_length = moderation_settings.REPORT_REASON_MIN_LENGTH
    max_length = moderation_settings.REPORT_REASON_MAX_LENGTH
    if not min_length <= len(reason) <= max_length:
        raise InvalidReason(min_length=min_length, max_length=max_length)
    return reason


def recount_pending(comment):
    """
    Recompute ``pending_report_count`` from the report rows and store it.

    This is the reconciliation path for the cached counter.

    Returns:
        int: the authoritative number of pending reports
    """
    count = CommentReport.objects.for_comment(comment).pending().count()
    Comment.objects.filter(pk=comment.pk).update(pending_report_count=count)
    comment.pending_report_count = count
    return count


def submit(comment, reporter, reason):
    """
    File a report against ``comment``.

    Args:
        comment: locked Comment instance
        reporter: User filing the report
        reason: free-text reason, trimmed before validation

    Returns:
        CommentReport: the new pending report

    Raises:
        CommentNotFound: the comment is no longer active
        SelfReport: the reporter wrote the comment
        InvalidReason: the reason is outside the allowed length
        DuplicateReport: the reporter already reported this comment
    """
    if comment is None or not comment.is_active:
        raise CommentNotFound()

    if comment.user_id == reporter.pk:
        raise SelfReport()

    reason = clean_reason(reason)

    existing = CommentReport.objects.filter(comment=comment, reporter=reporter).first()
    if existing:
        raise DuplicateReport(status=existing.status)

    try:
        with transaction.atomic():
            report = CommentReport.objects.create(
                comment=comment,
                reporter=reporter,
                reason=reason,
            )
    except IntegrityError:
        # A concurrent submission by the same reporter won the insert
        existing = CommentReport.objects.filter(comment=comment, reporter=reporter).first()
        raise DuplicateReport(
            status=existing.status if existing else ReportStatus.PENDING
        )

    recount_pending(comment)
    logger.info(f"User {reporter.pk} reported comment {comment.pk}")
    return report


def resolve(report, moderator, notes=''):
    """
    Uphold a pending report. The comment itself is removed by the caller.

    Raises:
        AlreadyResolved: the report is not pending
    """
    report.mark_resolved(moderator, notes)
    recount_pending(report.comment)
    logger.info(f"Report {report.pk} resolved by {moderator}")
    return report


def reject(report, moderator, notes=''):
    """
    Dismiss a pending report. The comment stays as it is.

    Raises:
        AlreadyResolved: the report is not pending
    """
    report.mark_rejected(moderator, notes)
    recount_pending(report.comment)
    logger.info(f"Report {report.pk} rejected by {moderator}")
    return report


def resolve_all_pending(comment, actor, notes=''):
    """
    Resolve every pending report on ``comment`` in bulk.

    Returns:
        int: number of reports resolved
    """
    now = timezone.now()
    resolved = CommentReport.objects.for_comment(comment).pending().update(
        status=ReportStatus.RESOLVED,
        resolved_by=actor,
        resolved_at=now,
        resolution_notes=notes,
        updated_at=now,
    )
    recount_pending(comment)
    if resolved:
        logger.info(f"Resolved {resolved} pending reports on comment {comment.pk}")
    return resolved


def reports_for_comment(comment):
    return CommentReport.objects.for_comment(comment).with_related().order_by('-created_at')


def reported_comments(status=ReportStatus.PENDING):
    """
    Comments grouped with their report count for reports in ``status``.

    ``status`` is one of the report statuses or ``'all'``.

    Raises:
        InvalidStatusFilter: for any other value
    """
    if status not in STATUS_FILTERS:
        raise InvalidStatusFilter(status=status)

    statuses = ReportStatus.values if status == STATUS_ALL else [status]
    return Comment.objects.with_related().reported(statuses)
