"""
Tests for the reconcile_report_counts management command.
"""
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from ..models import Comment, ReportStatus
from .factories import CommentFactory, CommentReportFactory, create_reported_comment


def set_cached_count(comment, value):
    Comment.objects.filter(pk=comment.pk).update(pending_report_count=value)


@pytest.mark.django_db
class TestReconcileReportCounts:

    def test_nothing_to_fix(self):
        create_reported_comment(report_count=2)
        CommentFactory()

        out = StringIO()
        call_command('reconcile_report_counts', stdout=out)

        assert "All pending report counts are correct." in out.getvalue()

    def test_fixes_drifted_counts(self):
        drifted = create_reported_comment(report_count=3)
        set_cached_count(drifted, 1)
        orphaned = CommentFactory()
        set_cached_count(orphaned, 4)

        out = StringIO()
        call_command('reconcile_report_counts', stdout=out)

        output = out.getvalue()
        assert f"Comment {drifted.pk}: cached 1, actual 3" in output
        assert f"Comment {orphaned.pk}: cached 4, actual 0" in output
        assert "Fixed 2 comments." in output

        drifted.refresh_from_db()
        orphaned.refresh_from_db()
        assert drifted.pending_report_count == 3
        assert orphaned.pending_report_count == 0

    def test_only_pending_reports_count(self):
        comment = create_reported_comment(report_count=2)
        CommentReportFactory(comment=comment, status=ReportStatus.REJECTED)

        out = StringIO()
        call_command('reconcile_report_counts', stdout=out)

        assert "All pending report counts are correct." in out.getvalue()

    def test_dry_run_changes_nothing(self):
        comment = create_reported_comment(report_count=2)
        set_cached_count(comment, 0)

        out = StringIO()
        call_command('reconcile_report_counts', '--dry-run', stdout=out)

        assert "Would fix 1 comments (dry run)." in out.getvalue()
        comment.refresh_from_db()
        assert comment.pending_report_count == 0

    def test_single_comment(self):
        target = create_reported_comment(report_count=2)
        other = create_reported_comment(report_count=1)
        set_cached_count(target, 5)
        set_cached_count(other, 5)

        out = StringIO()
        call_command('reconcile_report_counts', f'--comment={target.pk}', stdout=out)

        assert "Fixed 1 comments." in out.getvalue()
        target.refresh_from_db()
        other.refresh_from_db()
        assert target.pending_report_count == 2
        assert other.pending_report_count == 5

    def test_invalid_comment_id(self):
        with pytest.raises(CommandError):
            call_command('reconcile_report_counts', '--comment=not-a-uuid', stdout=StringIO())
