import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, List, Optional

from django.contrib.auth import get_user_model
from django.contrib.auth.hashers import make_password
from django.contrib.auth.models import Permission
from django.core.exceptions import ImproperlyConfigured
from django.core.paginator import EmptyPage, Paginator
from django.db import IntegrityError, OperationalError, transaction
from django.db.models import Q

from .conf import moderation_settings
from .exceptions import TransientError

User = get_user_model()

logger = logging.getLogger(moderation_settings.LOGGER_NAME)

MODERATE_PERMISSION = 'book_moderation.can_moderate_comments'


def get_or_create_system_user():
    """
    Get or create the system user atomically.

    The system user is the reserved actor that automated moderation
    (threshold auto-removal) is attributed to. It is never a human moderator.

    Returns:
        User: The system user instance

    Raises:
        ImproperlyConfigured: an account that can log in already holds
            the SYSTEM_USERNAME

    Notes:
        - User is created with is_active=False to prevent login
        - User has no usable password
        - Username comes from the SYSTEM_USERNAME setting
    """
    username = moderation_settings.SYSTEM_USERNAME
    try:
        system_user, created = User.objects.get_or_create(
            username=username,
            defaults={
                'email': '',
                'password': make_password(None),
                'is_active': False,
                'first_name': 'System',
                'last_name': 'User',
            }
        )
    except IntegrityError as e:
        # Lost a creation race with another process
        logger.error(f"IntegrityError creating system user: {e}")
        system_user, created = User.objects.get(username=username), False

    if created:
        logger.info("Created system user for automatic moderation")
    elif system_user.is_active or system_user.has_usable_password():
        logger.error(f"System username '{username}' is held by a login-capable account")
        raise ImproperlyConfigured(
            f"BOOK_MODERATION_CONFIG['SYSTEM_USERNAME'] ('{username}') belongs to an "
            "account that can log in. Choose a username no one can register."
        )

    return system_user


def is_moderator(user):
    """
    Return True if ``user`` may moderate comments.

    Staff, superusers and holders of the ``can_moderate_comments``
    permission are moderators.
    """
    if not user or not user.is_authenticated:
        return False
    return bool(
        user.is_staff or
        user.is_superuser or
        user.has_perm(MODERATE_PERMISSION)
    )


def get_moderators():
    """
    Return all active users that should receive moderator notifications.
    """
    app_label, codename = MODERATE_PERMISSION.split('.')
    perm = Permission.objects.filter(
        content_type__app_label=app_label,
        codename=codename
    ).first()

    criteria = Q(is_staff=True) | Q(is_superuser=True)
    if perm is not None:
        criteria |= Q(user_permissions=perm) | Q(groups__permissions=perm)

    return User.objects.filter(criteria, is_active=True).exclude(
        username=moderation_settings.SYSTEM_USERNAME
    ).distinct()


@contextmanager
def moderation_transaction():
    """
    Run a block inside ``transaction.atomic()``.

    Lock contention, deadlocks and timeouts roll the block back and surface
    as ``TransientError`` so callers can retry the whole operation.
    """
    try:
        with transaction.atomic():
            yield
    except OperationalError as e:
        logger.warning(f"Moderation transaction rolled back: {e}")
        raise TransientError() from e


def clamp_per_page(per_page=None, default=None):
    """
    Return a usable page size, capped at MAX_PAGE_SIZE.
    """
    default = default or moderation_settings.PAGE_SIZE
    try:
        per_page = int(per_page) if per_page else default
    except (TypeError, ValueError):
        per_page = default
    per_page = max(1, per_page)
    max_size = moderation_settings.MAX_PAGE_SIZE
    if max_size:
        per_page = min(per_page, max_size)
    return per_page


@dataclass
class PagedResult:
    """One page of a listing together with its paging metadata."""

    items: List[Any] = field(default_factory=list)
    page: int = 1
    per_page: int = 20
    total_items: int = 0

    @property
    def total_pages(self):
        if not self.total_items:
            return 0
        return int(math.ceil(self.total_items / self.per_page))

    @property
    def has_next(self):
        return self.page < self.total_pages


def paginate(queryset, page=1, per_page: Optional[int] = None, default_per_page=None) -> PagedResult:
    """
    Slice ``queryset`` into a PagedResult.

    Pages past the end return an empty item list rather than raising.
    """
    per_page = clamp_per_page(per_page, default_per_page)
    try:
        page = max(1, int(page))
    except (TypeError, ValueError):
        page = 1

    paginator = Paginator(queryset, per_page)
    try:
        items = list(paginator.page(page).object_list)
    except EmptyPage:
        items = []

    return PagedResult(
        items=items,
        page=page,
        per_page=per_page,
        total_items=paginator.count,
    )
