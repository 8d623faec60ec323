"""
Book cascade store.

Soft-deleting a book sets the author flag on every comment its author has
not already deleted and marks those comments as cascade deletions.
Restoring the book clears exactly that cascade, so a comment removed by a
moderator is still removed afterwards.
"""
import logging

from django.utils import timezone

from .conf import moderation_settings
from .exceptions import AlreadyDeleted, Forbidden, NotDeleted
from .utils import is_moderator

logger = logging.getLogger(moderation_settings.LOGGER_NAME)


def soft_delete(book, actor):
    """
    Delete ``book`` and cascade to its comments.

    Must run inside the caller's transaction with the book row locked.

    Returns:
        int: number of comments deleted by the cascade

    Raises:
        Forbidden: the actor is neither the owner nor a moderator
        AlreadyDeleted: the book is already deleted
    """
    if book.owner_id != actor.pk and not is_moderator(actor):
        raise Forbidden("You can only delete your own books.")

    if book.is_deleted:
        raise AlreadyDeleted("This book has already been deleted.")

    now = timezone.now()
    book.is_deleted = True
    book.deleted_at = now
    book.deleted_by = actor
    book.comment_count = 0
    book.save(update_fields=['is_deleted', 'deleted_at', 'deleted_by', 'comment_count', 'updated_at'])

    cascaded = book.comments.filter(is_deleted=False).update(
        is_deleted=True,
        deleted_at=now,
        deleted_by=actor,
        deleted_by_cascade=True,
        updated_at=now,
    )

    logger.info(f"Book {book.pk} deleted by {actor}; cascaded to {cascaded} comments")
    return cascaded


def restore(book, actor):
    """
    Restore ``book`` and the comments its deletion cascaded to.

    Returns:
        int: number of comments restored

    Raises:
        Forbidden: the actor is not a moderator
        NotDeleted: the book is not deleted
    """
    if not is_moderator(actor):
        raise Forbidden("Only moderators can restore books.")

    if not book.is_deleted:
        raise NotDeleted("This book is not deleted.")

    book.is_deleted = False
    book.deleted_at = None
    book.deleted_by = None
    book.save(update_fields=['is_deleted', 'deleted_at', 'deleted_by', 'updated_at'])

    restored = book.comments.filter(is_deleted=True, deleted_by_cascade=True).update(
        is_deleted=False,
        deleted_at=None,
        deleted_by=None,
        deleted_by_cascade=False,
        updated_at=timezone.now(),
    )
    book.refresh_comment_count()

    logger.info(f"Book {book.pk} restored by {actor}; restored {restored} comments")
    return restored
