from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

# Default settings that can be overridden through settings.BOOK_MODERATION_CONFIG
DEFAULTS = {
    # ============================================================================
    # REPORTING & AUTO-REMOVAL
    # ============================================================================

    # Number of pending reports at which a comment is removed automatically.
    # The just-submitted report counts towards the threshold.
    'AUTO_REMOVE_THRESHOLD': 5,

    # Bounds for the report reason, applied after trimming whitespace
    'REPORT_REASON_MIN_LENGTH': 10,
    'REPORT_REASON_MAX_LENGTH': 500,

    # ============================================================================
    # CONTENT SETTINGS
    # ============================================================================

    # Bounds for comment content on edit, applied after trimming whitespace
    'COMMENT_MIN_LENGTH': 5,
    'COMMENT_MAX_LENGTH': 1000,

    # Placeholder shown to an author in place of their moderator-removed comment
    'REMOVED_COMMENT_PLACEHOLDER': 'This comment was removed by a moderator.',

    # ============================================================================
    # PAGINATION
    # ============================================================================

    'PAGE_SIZE': 20,
    'PAGE_SIZE_QUERY_PARAM': 'page_size',
    'MAX_PAGE_SIZE': 100,

    # Page size for the moderation log listing
    'MODERATION_LOG_PAGE_SIZE': 20,

    # ============================================================================
    # SYSTEM ACTOR
    # ============================================================================

    # Username of the reserved, inactive user that automated actions
    # (threshold auto-removal) are attributed to. The ':' keeps it outside
    # what Django's username validator accepts at registration.
    'SYSTEM_USERNAME': 'book-moderation:system',

    # ============================================================================
    # NOTIFICATIONS
    # ============================================================================

    # Master switch for in-app notifications
    'SEND_NOTIFICATIONS': True,

    # Also email the recipient (uses django.core.mail)
    'SEND_EMAIL_NOTIFICATIONS': False,

    # From address for notification emails (falls back to DEFAULT_FROM_EMAIL)
    'DEFAULT_FROM_EMAIL': None,

    # Deliver notifications through Celery after the transaction commits
    'USE_ASYNC_NOTIFICATIONS': False,

    # Tell moderators about every report below the auto-removal threshold
    'NOTIFY_MODERATORS_ON_REPORT': True,

    # Tell the author that their comment was reported
    'NOTIFY_AUTHOR_ON_REPORT': False,

    # Include the triggering report reason in the auto-removal notice
    # sent to the comment author. Moderators always receive it.
    'DISCLOSE_REPORT_REASON_TO_AUTHOR': False,

    # Links placed in notifications
    'REPORTED_COMMENTS_URL': '/moderation/reported-comments/',
    'COMMENT_URL_TEMPLATE': '/books/{book_id}/#comment-{comment_id}',

    # ============================================================================
    # BAN SYSTEM
    # ============================================================================

    # Default ban duration in days for ban_user (None = permanent)
    'DEFAULT_BAN_DURATION_DAYS': 7,

    # ============================================================================
    # LOGGING
    # ============================================================================

    'LOGGER_NAME': 'book_moderation',
}


class ModerationSettings:
    """
    A settings object for book_moderation that handles default vs user settings.

    User settings are read from ``settings.BOOK_MODERATION_CONFIG`` on every
    access so ``override_settings`` is honoured.

    Usage:
        from book_moderation.conf import moderation_settings

        threshold = moderation_settings.AUTO_REMOVE_THRESHOLD
    """

    def __init__(self, user_settings=None, defaults=None):
        self._user_settings = user_settings
        self.defaults = defaults or DEFAULTS

    @property
    def user_settings(self):
        if self._user_settings is not None:
            return self._user_settings
        return getattr(settings, 'BOOK_MODERATION_CONFIG', {}) or {}

    def __getattr__(self, attr):
        if attr.startswith('_') or attr not in self.defaults:
            raise AttributeError(f"Invalid book_moderation setting: '{attr}'")

        value = self.user_settings.get(attr, self.defaults[attr])

        if attr == 'DEFAULT_FROM_EMAIL' and not value:
            return getattr(settings, 'DEFAULT_FROM_EMAIL', None)

        return value

    @property
    def as_dict(self):
        """
        Return all settings as a dictionary.
        """
        return {key: getattr(self, key) for key in self.defaults}

    def validate(self):
        """
        Validate settings for common configuration errors.
        Raises ImproperlyConfigured for invalid settings.
        """
        errors = []

        for key in unknown_keys(self.user_settings, self.defaults):
            errors.append(f"Unknown setting '{key}'")

        threshold = self.AUTO_REMOVE_THRESHOLD
        if not isinstance(threshold, int) or threshold < 1:
            errors.append(
                f"AUTO_REMOVE_THRESHOLD must be a positive integer, got {threshold!r}"
            )

        for low, high in (
            ('REPORT_REASON_MIN_LENGTH', 'REPORT_REASON_MAX_LENGTH'),
            ('COMMENT_MIN_LENGTH', 'COMMENT_MAX_LENGTH'),
        ):
            if getattr(self, low) < 0:
                errors.append(f"{low} must not be negative")
            if getattr(self, high) < getattr(self, low):
                errors.append(
                    f"{high} ({getattr(self, high)}) must be >= "
                    f"{low} ({getattr(self, low)})"
                )

        if self.PAGE_SIZE and self.PAGE_SIZE <= 0:
            errors.append(f"PAGE_SIZE must be positive, got {self.PAGE_SIZE}")

        if self.MAX_PAGE_SIZE and self.MAX_PAGE_SIZE < self.PAGE_SIZE:
            errors.append(
                f"MAX_PAGE_SIZE ({self.MAX_PAGE_SIZE}) must be >= "
                f"PAGE_SIZE ({self.PAGE_SIZE})"
            )

        ban_days = self.DEFAULT_BAN_DURATION_DAYS
        if ban_days is not None and ban_days <= 0:
            errors.append(
                f"DEFAULT_BAN_DURATION_DAYS must be positive or None, got {ban_days}"
            )

        if not self.SYSTEM_USERNAME:
            errors.append("SYSTEM_USERNAME must not be empty")

        if errors:
            raise ImproperlyConfigured(
                "Invalid book_moderation configuration:\n" +
                "\n".join(f"  - {error}" for error in errors)
            )


def unknown_keys(user_settings, defaults):
    return sorted(key for key in user_settings if key not in defaults)


moderation_settings = ModerationSettings(defaults=DEFAULTS)
