"""
Comment lifecycle store: soft deletes, edits and visible listings.
"""
import logging

from .conf import moderation_settings
from .exceptions import AlreadyDeleted, Forbidden, InvalidLength
from .models import CommentStatus
from .reports import resolve_all_pending
from .utils import is_moderator, paginate

logger = logging.getLogger(moderation_settings.LOGGER_NAME)


def can_delete(comment, actor, as_moderator=False, system=False):
    if system:
        return True
    if as_moderator:
        return is_moderator(actor)
    return comment.user_id == actor.pk or is_moderator(actor)


def delete(comment, actor, as_moderator=False, resolve_pending=True, notes='', system=False):
    """
    Soft-delete ``comment``.

    A self delete sets ``is_deleted``; a moderator delete sets
    ``is_admin_deleted``. A moderator delete also resolves the comment's
    pending reports unless ``resolve_pending`` is False. The owning book's
    comment count is recomputed either way.

    ``system`` is set only by the moderation engine when ``actor`` is the
    automation user it fetched itself; that actor may remove any comment.

    Raises:
        Forbidden: the actor may not delete this comment this way
        AlreadyDeleted: the comment is not active
    """
    if not can_delete(comment, actor, as_moderator, system):
        raise Forbidden(
            "Only moderators can remove comments." if as_moderator
            else "You can only delete your own comments."
        )

    if not comment.is_active:
        raise AlreadyDeleted("This comment has already been deleted.")

    status = CommentStatus.MODERATOR_DELETED if as_moderator else CommentStatus.SELF_DELETED
    update_fields = comment.set_status(status, actor)
    comment.save(update_fields=update_fields)

    if as_moderator and resolve_pending:
        resolve_all_pending(comment, actor, notes=notes or 'Comment removed by moderator')

    comment.book.refresh_comment_count()
    logger.info(f"Comment {comment.pk} moved to {status.value} by {actor}")
    return comment


def clean_content(content):
    """
    Trim ``content`` and check its length.

    Raises:
        InvalidLength: if the trimmed content is too short or too long
    """
    content = (content or '').strip()
    min_length = moderation_settings.COMMENT_MIN_LENGTH
    max_length = moderation_settings.COMMENT_MAX_LENGTH
    if not min_length <= len(content) <= max_length:
        raise InvalidLength(min_length=min_length, max_length=max_length)
    return content


def update(comment, new_content, actor):
    """
    Replace the content of an active comment. Author only.

    Raises:
        Forbidden: the actor is not the author
        AlreadyDeleted: the comment is not active
        InvalidLength: the new content is outside the allowed length
    """
    if comment.user_id != actor.pk:
        raise Forbidden("You can only edit your own comments.")

    if not comment.is_active:
        raise AlreadyDeleted("Deleted comments cannot be edited.")

    comment.content = clean_content(new_content)
    comment.is_edited = True
    comment.save(update_fields=['content', 'is_edited', 'updated_at'])
    return comment


def visible_comments(book, viewer=None):
    """
    Queryset of the comments on ``book`` that ``viewer`` may see, newest first.
    """
    return book.comments.visible_to(viewer).with_related().with_pending_report_count().order_by('-created_at')


def get_visible(book, viewer=None, page=1, per_page=None):
    """
    One page of the comments on ``book`` visible to ``viewer``.

    Each item carries ``display_content``: the content itself, or the
    removal placeholder for the author's own moderator-removed comments.
    """
    result = paginate(visible_comments(book, viewer), page, per_page)
    placeholder = moderation_settings.REMOVED_COMMENT_PLACEHOLDER
    for comment in result.items:
        if comment.is_admin_deleted:
            comment.display_content = placeholder
        else:
            comment.display_content = comment.content
    return result
