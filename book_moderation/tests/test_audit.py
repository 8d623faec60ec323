"""
Tests for the audit log writer and the moderation log listing.
"""
from datetime import date, datetime, timezone as dt_timezone
from unittest.mock import patch

from django.db import DatabaseError
from freezegun import freeze_time

from book_moderation import audit, moderation
from book_moderation.conf import moderation_settings
from book_moderation.exceptions import InvalidActionType
from book_moderation.models import ActionType, ModerationAction
from book_moderation.tests.base import BaseModerationTestCase


class AppendTests(BaseModerationTestCase):

    def test_append_writes_record(self):
        self.assertTrue(audit.append(self.moderator, self.comment, 'delete', 'Spam'))

        action = ModerationAction.objects.get()
        self.assertEqual(action.action_type, ActionType.DELETE)
        self.assertEqual(action.moderator, self.moderator)
        self.assertEqual(action.comment, self.comment)
        self.assertEqual(action.reason, 'Spam')

    def test_invalid_action_type_rejected_before_write(self):
        with self.assertRaises(InvalidActionType) as cm:
            audit.append(self.moderator, self.comment, 'purge', 'Spam')
        self.assertEqual(cm.exception.action_type, 'purge')
        self.assertFalse(ModerationAction.objects.exists())

    def test_write_failure_is_logged_not_raised(self):
        with patch.object(ModerationAction.objects, 'create', side_effect=DatabaseError('disk full')):
            with self.assertLogs(moderation_settings.LOGGER_NAME, level='ERROR') as logs:
                result = audit.append(self.moderator, self.comment, ActionType.DELETE)

        self.assertFalse(result)
        self.assertTrue(any('disk full' in line for line in logs.output))

    def test_log_moderation_action_entry_point(self):
        self.assertTrue(
            moderation.log_moderation_action(self.moderator, self.comment, ActionType.IGNORE, 'ok')
        )
        with self.assertRaises(InvalidActionType):
            moderation.log_moderation_action(self.moderator, self.comment, 'shadow_ban')


class ListModerationActionsTests(BaseModerationTestCase):

    def setUp(self):
        super().setUp()
        other_comment = self.create_comment(user=self.reporters[1], content='Off-topic rant')

        with freeze_time(datetime(2024, 3, 1, 12, tzinfo=dt_timezone.utc)):
            audit.append(self.moderator, self.comment, ActionType.DELETE, 'Spam')
        with freeze_time(datetime(2024, 3, 5, 12, tzinfo=dt_timezone.utc)):
            audit.append(self.moderator, other_comment, ActionType.REJECT_REPORT, 'Fine')
        with freeze_time(datetime(2024, 3, 9, 12, tzinfo=dt_timezone.utc)):
            audit.append(
                self.moderator, other_comment, ActionType.WARN_USER, 'Be civil',
                affected_user=self.author,
            )

    def test_newest_first(self):
        result = moderation.list_moderation_actions()
        self.assertEqual(
            [a.action_type for a in result.items],
            [ActionType.WARN_USER, ActionType.REJECT_REPORT, ActionType.DELETE]
        )

    def test_filter_by_user_includes_targeted_actions(self):
        result = moderation.list_moderation_actions(user=self.author)
        self.assertEqual(
            {a.action_type for a in result.items},
            {ActionType.DELETE, ActionType.WARN_USER}
        )

    def test_filter_by_action_type(self):
        result = moderation.list_moderation_actions(action_type='reject_report')
        self.assertEqual(result.total_items, 1)

    def test_filter_by_invalid_action_type(self):
        with self.assertRaises(InvalidActionType):
            moderation.list_moderation_actions(action_type='nuke')

    def test_date_range_is_inclusive(self):
        result = moderation.list_moderation_actions(
            date_from=date(2024, 3, 5), date_to=date(2024, 3, 9)
        )
        self.assertEqual(result.total_items, 2)

    def test_page_size(self):
        result = moderation.list_moderation_actions(per_page=2)
        self.assertEqual(len(result.items), 2)
        self.assertEqual(result.total_pages, 2)
