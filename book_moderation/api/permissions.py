from rest_framework import permissions

from ..utils import is_moderator


class ModeratorPermission(permissions.BasePermission):
    """
    Permission for moderation endpoints.
    Staff, superusers and holders of 'can_moderate_comments' pass.
    """
    message = "You don't have permission to moderate comments."

    def has_permission(self, request, view):
        return is_moderator(request.user)


class CommentPermission(permissions.BasePermission):
    """
    Permission for the comments API.
    - Anyone can retrieve a comment
    - Authenticated users can report, edit and delete
    - Ownership and moderator rules are enforced by the moderation engine
    """

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(request.user and request.user.is_authenticated)
