from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _
import logging


class BookModerationConfig(AppConfig):
    name = 'book_moderation'
    verbose_name = _('Book moderation')
    default_auto_field = 'django.db.models.BigAutoField'

    def ready(self):

        # Import signals so the moderation signals are registered
        import book_moderation.signals

        from .conf import moderation_settings

        moderation_settings.validate()

        logger = logging.getLogger(moderation_settings.LOGGER_NAME)
        logger.info(
            f'Book moderation initialized '
            f'(auto-remove threshold: {moderation_settings.AUTO_REMOVE_THRESHOLD})'
        )
