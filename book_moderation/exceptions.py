class ModerationError(Exception):
    """Base exception for all book_moderation errors."""

    default_message = "The moderation action could not be completed."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ============================================================================
# NOT FOUND
# ============================================================================

class NotFound(ModerationError):
    """Raised when the target of an operation does not exist."""
    default_message = "The requested object was not found."


class CommentNotFound(NotFound):
    """
    Raised when a comment does not exist or is no longer active.
    """
    default_message = "Comment not found."


class ReportNotFound(NotFound):
    default_message = "Report not found."


class BookNotFound(NotFound):
    default_message = "Book not found."


# ============================================================================
# PERMISSION
# ============================================================================

class Forbidden(ModerationError):
    """
    Raised when the actor is not allowed to perform the action.
    """
    default_message = "You do not have permission to perform this action."


# ============================================================================
# VALIDATION
# ============================================================================

class ValidationFailed(ModerationError):
    """Base class for input and business-rule validation errors."""
    default_message = "Invalid request."


class InvalidReason(ValidationFailed):
    """
    Exception raised when a report reason is outside the allowed length.
    """
    def __init__(self, message=None, min_length=None, max_length=None):
        self.min_length = min_length
        self.max_length = max_length
        message = message or (
            f"The reason must be between {min_length} and {max_length} characters."
        )
        super().__init__(message)


class SelfReport(ValidationFailed):
    default_message = "You cannot report your own comment."


class DuplicateReport(ValidationFailed):
    """
    Exception raised when the reporter already has a report on the comment.

    The message differs for a report still awaiting moderation and one
    that was already resolved or rejected.
    """
    def __init__(self, message=None, status=None):
        self.status = status
        if message is None:
            if status == 'pending':
                message = (
                    "You have already reported this comment. "
                    "It is awaiting moderation."
                )
            else:
                message = (
                    "You have already reported this comment. "
                    f"Status: {status}."
                )
        super().__init__(message)


class InvalidLength(ValidationFailed):
    """
    Exception raised when comment content is outside the allowed length.
    """
    def __init__(self, message=None, min_length=None, max_length=None):
        self.min_length = min_length
        self.max_length = max_length
        message = message or (
            f"The comment must be between {min_length} and {max_length} characters."
        )
        super().__init__(message)


class InvalidActionType(ValidationFailed):
    def __init__(self, message=None, action_type=None):
        self.action_type = action_type
        message = message or f"Invalid moderation action type: {action_type!r}."
        super().__init__(message)


class InvalidStatusFilter(ValidationFailed):
    def __init__(self, message=None, status=None):
        self.status = status
        message = message or f"Invalid report status filter: {status!r}."
        super().__init__(message)


# ============================================================================
# STATE CONFLICTS
# ============================================================================

class Conflict(ModerationError):
    """Base class for state machine violations."""
    default_message = "The object is not in a state that allows this action."


class AlreadyDeleted(Conflict):
    default_message = "This item has already been deleted."


class NotDeleted(Conflict):
    default_message = "This item is not deleted."


class AlreadyResolved(Conflict):
    """
    Exception raised when a report is no longer pending.
    """
    def __init__(self, message=None, status=None):
        self.status = status
        message = message or f"This report has already been processed. Status: {status}."
        super().__init__(message)


# ============================================================================
# TRANSIENT
# ============================================================================

class TransientError(ModerationError):
    """
    Exception raised when the transaction could not commit because of lock
    contention, a deadlock or a timeout. Nothing was persisted and the whole
    operation may be retried.
    """
    default_message = "The server is busy. Please try again."
