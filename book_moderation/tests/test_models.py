"""
Tests for the book_moderation models.
"""
from datetime import timedelta

from django.db import IntegrityError, transaction
from django.utils import timezone

from book_moderation.exceptions import AlreadyResolved
from book_moderation.models import (
    ActionType,
    BannedUser,
    Comment,
    CommentReport,
    CommentStatus,
    ModerationAction,
    Notification,
    NotificationType,
    ReportStatus,
)
from book_moderation.tests.base import BaseModerationTestCase


class CommentStatusTests(BaseModerationTestCase):

    def test_new_comment_is_active(self):
        self.assertEqual(self.comment.status, CommentStatus.ACTIVE)
        self.assertTrue(self.comment.is_active)

    def test_self_deleted_status(self):
        fields = self.comment.set_status(CommentStatus.SELF_DELETED, self.author)
        self.comment.save(update_fields=fields)

        comment = self.refresh(self.comment)
        self.assertEqual(comment.status, CommentStatus.SELF_DELETED)
        self.assertTrue(comment.is_deleted)
        self.assertFalse(comment.is_admin_deleted)
        self.assertEqual(comment.deleted_by, self.author)
        self.assertIsNotNone(comment.deleted_at)
        self.assertFalse(comment.deleted_by_cascade)

    def test_moderator_deleted_status(self):
        fields = self.comment.set_status(CommentStatus.MODERATOR_DELETED, self.moderator)
        self.comment.save(update_fields=fields)

        comment = self.refresh(self.comment)
        self.assertEqual(comment.status, CommentStatus.MODERATOR_DELETED)
        self.assertTrue(comment.is_admin_deleted)
        self.assertFalse(comment.is_deleted)
        self.assertEqual(comment.admin_deleted_by, self.moderator)

    def test_moderator_flag_wins_when_both_set(self):
        self.comment.is_deleted = True
        self.comment.is_admin_deleted = True
        self.assertEqual(self.comment.status, CommentStatus.MODERATOR_DELETED)
        self.assertFalse(self.comment.is_active)

    def test_cannot_move_back_to_active(self):
        with self.assertRaises(ValueError):
            self.comment.set_status(CommentStatus.ACTIVE, self.moderator)

    def test_absolute_url(self):
        url = self.comment.get_absolute_url()
        self.assertIn(str(self.book.pk), url)
        self.assertIn(str(self.comment.pk), url)


class CommentQuerySetTests(BaseModerationTestCase):

    def test_either_flag_hides_comment(self):
        self_deleted = self.create_comment(is_deleted=True)
        removed = self.create_comment(is_admin_deleted=True)

        visible = Comment.objects.visible()
        self.assertIn(self.comment, visible)
        self.assertNotIn(self_deleted, visible)
        self.assertNotIn(removed, visible)

    def test_author_sees_own_removed_comment(self):
        removed = self.create_comment(is_admin_deleted=True)

        self.assertIn(removed, Comment.objects.visible_to(self.author))
        self.assertNotIn(removed, Comment.objects.visible_to(self.reporter))
        self.assertNotIn(removed, Comment.objects.visible_to(None))

    def test_author_does_not_see_own_self_deleted_comment(self):
        deleted = self.create_comment(is_deleted=True)
        self.assertNotIn(deleted, Comment.objects.visible_to(self.author))

    def test_pending_report_count_annotation(self):
        self.create_report(reporter=self.reporters[0])
        self.create_report(reporter=self.reporters[1], status=ReportStatus.REJECTED)

        comment = Comment.objects.with_pending_report_count().get(pk=self.comment.pk)
        self.assertEqual(comment.report_count, 1)

    def test_reported_orders_by_count(self):
        quiet = self.create_comment(content='Loved the worldbuilding.')
        self.create_report(comment=quiet, reporter=self.reporters[0])
        for reporter in self.reporters[:3]:
            self.create_report(reporter=reporter)

        reported = list(Comment.objects.reported([ReportStatus.PENDING]))
        self.assertEqual(reported, [self.comment, quiet])
        self.assertEqual(reported[0].report_count, 3)
        self.assertEqual(reported[1].report_count, 1)


class BookTests(BaseModerationTestCase):

    def test_refresh_comment_count_ignores_hidden_comments(self):
        self.create_comment(is_deleted=True)
        self.create_comment(is_admin_deleted=True)

        self.book.refresh_comment_count()
        self.assertEqual(self.refresh(self.book).comment_count, 1)

    def test_str(self):
        self.assertEqual(str(self.book), 'The Left Hand of Darkness')


class CommentReportTests(BaseModerationTestCase):

    def test_one_report_per_reporter(self):
        self.create_report()
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                CommentReport.objects.create(
                    comment=self.comment, reporter=self.reporter, reason='Again and again'
                )

    def test_mark_resolved(self):
        report = self.create_report()
        report.mark_resolved(self.moderator, 'Clear spam')

        report = self.refresh(report)
        self.assertEqual(report.status, ReportStatus.RESOLVED)
        self.assertEqual(report.resolved_by, self.moderator)
        self.assertEqual(report.resolution_notes, 'Clear spam')
        self.assertIsNotNone(report.resolved_at)

    def test_closed_report_cannot_be_closed_again(self):
        report = self.create_report()
        report.mark_rejected(self.moderator)

        with self.assertRaises(AlreadyResolved) as cm:
            report.mark_resolved(self.moderator)
        self.assertEqual(cm.exception.status, ReportStatus.REJECTED)
        self.assertEqual(self.refresh(report).status, ReportStatus.REJECTED)


class ModerationActionTests(BaseModerationTestCase):

    def test_append_only(self):
        action = ModerationAction.objects.create(
            moderator=self.moderator,
            comment=self.comment,
            action_type=ActionType.DELETE,
            reason='Spam',
        )

        action.reason = 'Edited'
        with self.assertRaises(ValueError):
            action.save()
        with self.assertRaises(ValueError):
            action.delete()
        self.assertEqual(ModerationAction.objects.get(pk=action.pk).reason, 'Spam')

    def test_str_for_system_action(self):
        action = ModerationAction.objects.create(
            moderator=None, comment=self.comment, action_type=ActionType.DELETE
        )
        self.assertIn('System', str(action))


class NotificationTests(BaseModerationTestCase):

    def test_mark_read(self):
        notification = Notification.objects.create(
            user=self.author,
            notification_type=NotificationType.USER_WARNING,
            message='Please keep it civil.',
        )
        notification.mark_read()
        self.assertTrue(self.refresh(notification).is_read)
        self.assertEqual(Notification.objects.for_user(self.author).unread().count(), 0)


class BannedUserTests(BaseModerationTestCase):

    def test_temporary_ban(self):
        ban = BannedUser.objects.create(
            user=self.author,
            banned_until=timezone.now() + timedelta(days=3),
            reason='Repeated spam',
            banned_by=self.moderator,
        )
        self.assertTrue(ban.is_active)
        self.assertFalse(ban.is_permanent)
        self.assertTrue(BannedUser.is_user_banned(self.author))

    def test_expired_ban(self):
        BannedUser.objects.create(
            user=self.author,
            banned_until=timezone.now() - timedelta(days=1),
            reason='Repeated spam',
            banned_by=self.moderator,
        )
        self.assertFalse(BannedUser.is_user_banned(self.author))

    def test_permanent_ban(self):
        ban = BannedUser.objects.create(user=self.author, reason='Abuse', banned_by=self.moderator)
        self.assertTrue(ban.is_permanent)
        self.assertIn('permanently', str(ban))
