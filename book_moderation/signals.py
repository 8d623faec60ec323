"""
Moderation signals.

Sent by the moderation engine after the state change has committed, so
receivers always observe the final state. Receivers must not raise; any
exception is logged and swallowed by ``safe_send``.
"""
import logging

from django.dispatch import Signal

from .conf import moderation_settings

logger = logging.getLogger(moderation_settings.LOGGER_NAME)

# Reporting signals
comment_reported = Signal()
comment_auto_removed = Signal()
report_resolved = Signal()
report_rejected = Signal()

# Lifecycle signals
comment_deleted = Signal()
book_deleted = Signal()
book_restored = Signal()


def safe_send(signal_obj, sender, **extra_kwargs):
    """Send a signal, logging receiver errors instead of raising them."""
    extra_kwargs.pop("signal", None)
    for receiver, response in signal_obj.send_robust(sender=sender, **extra_kwargs):
        if isinstance(response, Exception):
            logger.error(f"Signal receiver {receiver!r} failed: {response}")
