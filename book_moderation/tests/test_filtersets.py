"""
Tests for book_moderation.api.filtersets
"""
from datetime import date, datetime, timezone as dt_timezone

from freezegun import freeze_time

from book_moderation import audit
from book_moderation.api.filtersets import CommentReportFilterSet, ModerationActionFilterSet
from book_moderation.models import ActionType, CommentReport, ModerationAction, ReportStatus
from book_moderation.tests.base import BaseModerationTestCase


class CommentReportFilterSetTests(BaseModerationTestCase):

    def setUp(self):
        super().setUp()
        self.pending = self.create_report()
        self.rejected = self.create_report(reporter=self.reporters[1], status=ReportStatus.REJECTED)
        self.other_comment = self.create_comment(user=self.reporters[2], content='Loved the ice.')
        self.other = self.create_report(comment=self.other_comment, reporter=self.reporters[3])

    def filter(self, **data):
        return CommentReportFilterSet(data=data, queryset=CommentReport.objects.all()).qs

    def test_filter_by_status(self):
        self.assertEqual(set(self.filter(status='pending')), {self.pending, self.other})
        self.assertEqual(list(self.filter(status='rejected')), [self.rejected])

    def test_filter_by_comment(self):
        self.assertEqual(list(self.filter(comment=str(self.other_comment.pk))), [self.other])

    def test_filter_by_reporter(self):
        self.assertEqual(list(self.filter(reporter=self.reporters[1].pk)), [self.rejected])

    def test_invalid_status_is_rejected(self):
        filterset = CommentReportFilterSet(
            data={'status': 'archived'}, queryset=CommentReport.objects.all()
        )
        self.assertFalse(filterset.is_valid())
        self.assertIn('status', filterset.errors)

    def test_no_filters(self):
        self.assertEqual(self.filter().count(), 3)


class ModerationActionFilterSetTests(BaseModerationTestCase):

    def setUp(self):
        super().setUp()
        other_comment = self.create_comment(user=self.reporters[1], content='Off-topic rant')

        with freeze_time(datetime(2024, 3, 1, 12, tzinfo=dt_timezone.utc)):
            audit.append(self.moderator, self.comment, ActionType.DELETE, 'Spam')
        with freeze_time(datetime(2024, 3, 5, 12, tzinfo=dt_timezone.utc)):
            audit.append(self.admin_user, other_comment, ActionType.REJECT_REPORT, 'Fine')
        with freeze_time(datetime(2024, 3, 9, 12, tzinfo=dt_timezone.utc)):
            audit.append(
                self.moderator, other_comment, ActionType.WARN_USER, 'Be civil',
                affected_user=self.author,
            )

    def filter(self, **data):
        return ModerationActionFilterSet(data=data, queryset=ModerationAction.objects.all()).qs

    def test_filter_by_user_matches_author_and_target(self):
        self.assertEqual(
            {a.action_type for a in self.filter(user=self.author.pk)},
            {ActionType.DELETE, ActionType.WARN_USER}
        )

    def test_filter_by_moderator(self):
        self.assertEqual(self.filter(moderator=self.admin_user.pk).count(), 1)

    def test_filter_by_action_type(self):
        self.assertEqual(self.filter(action_type='warn_user').count(), 1)

    def test_date_range(self):
        self.assertEqual(self.filter(date_from=date(2024, 3, 2).isoformat()).count(), 2)
        self.assertEqual(
            self.filter(date_from='2024-03-01', date_to='2024-03-05').count(),
            2
        )
        self.assertEqual(self.filter(date_to='2024-02-28').count(), 0)
