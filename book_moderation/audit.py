"""
Audit log writer.

Appends ``ModerationAction`` rows. A failed write is a degraded condition:
it is logged and reported through the return value, never raised, so the
moderation change it describes stays committed.
"""
import logging

from django.db import DatabaseError, transaction

from .conf import moderation_settings
from .exceptions import InvalidActionType
from .models import ActionType, ModerationAction

logger = logging.getLogger(moderation_settings.LOGGER_NAME)


def coerce_action_type(action_type):
    """
    Return ``action_type`` as an ``ActionType`` member.

    Raises:
        InvalidActionType: if the value is not one of the known actions
    """
    if isinstance(action_type, ActionType):
        return action_type
    try:
        return ActionType(action_type)
    except ValueError:
        raise InvalidActionType(action_type=action_type)


def append(moderator, comment, action_type, reason='', affected_user=None):
    """
    Record a moderation action.

    Args:
        moderator: User performing the action (the system user for automated actions)
        comment: Comment instance the action concerns (may be None)
        action_type: ActionType member or its value
        reason: Free-text reason
        affected_user: User targeted by a warn/ban

    Returns:
        bool: True if the record was written

    Raises:
        InvalidActionType: before any write, for an unknown action type
    """
    action_type = coerce_action_type(action_type)

    try:
        with transaction.atomic():
            ModerationAction.objects.create(
                moderator=moderator,
                comment=comment,
                action_type=action_type,
                reason=reason or '',
                affected_user=affected_user,
            )
    except DatabaseError as e:
        logger.error(
            f"Failed to log moderation action {action_type.value} "
            f"on comment {getattr(comment, 'pk', None)}: {e}"
        )
        return False

    logger.info(
        f"Logged moderation action: {action_type.value} by {moderator} "
        f"on comment {getattr(comment, 'pk', None)}"
    )
    return True
