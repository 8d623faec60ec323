from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from .conf import moderation_settings


class ModerationPagination(PageNumberPagination):
    """
    Pagination for the moderation API.

    Usage in settings.py:
        BOOK_MODERATION_CONFIG = {
            'PAGE_SIZE': 20,
            'PAGE_SIZE_QUERY_PARAM': 'page_size',
            'MAX_PAGE_SIZE': 100,
        }
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)

        if moderation_settings.PAGE_SIZE:
            self.page_size = moderation_settings.PAGE_SIZE

        if moderation_settings.PAGE_SIZE_QUERY_PARAM:
            self.page_size_query_param = moderation_settings.PAGE_SIZE_QUERY_PARAM

        if moderation_settings.MAX_PAGE_SIZE:
            self.max_page_size = moderation_settings.MAX_PAGE_SIZE


class ModerationLogPagination(ModerationPagination):
    """Pagination for the moderation log, which has its own page size."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.page_size = moderation_settings.MODERATION_LOG_PAGE_SIZE


def paged_response(result, serializer_class, context=None):
    """
    Render a ``utils.PagedResult`` in the same shape DRF pagination uses.
    """
    return Response({
        'count': result.total_items,
        'page': result.page,
        'per_page': result.per_page,
        'total_pages': result.total_pages,
        'results': serializer_class(result.items, many=True, context=context or {}).data,
    })
