"""
Pytest fixtures for book_moderation tests.
"""
import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from .factories import (
    BookFactory,
    CommentFactory,
    CommentReportFactory,
    StaffUserFactory,
    SuperUserFactory,
    UserFactory,
    create_reported_comment,
)

User = get_user_model()


@pytest.fixture(autouse=True)
def enable_db_access_for_all_tests(db):
    """
    Automatically enable database access for all tests.
    """
    pass


# ============================================================================
# Users
# ============================================================================

@pytest.fixture
def user():
    return UserFactory(username='reader')


@pytest.fixture
def author():
    return UserFactory(username='author')


@pytest.fixture
def staff_user():
    return StaffUserFactory(username='moderator')


@pytest.fixture
def superuser():
    return SuperUserFactory(username='admin')


# ============================================================================
# Clients
# ============================================================================

@pytest.fixture
def api_client():
    """
    Return an unauthenticated DRF API client.
    """
    return APIClient()


@pytest.fixture
def authenticated_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


# ============================================================================
# Moderation data
# ============================================================================

@pytest.fixture
def book():
    return BookFactory()


@pytest.fixture
def comment(book, author):
    return CommentFactory(book=book, user=author)


@pytest.fixture
def report(comment):
    report = CommentReportFactory(comment=comment)
    comment.pending_report_count = 1
    comment.save(update_fields=['pending_report_count'])
    return report


@pytest.fixture
def reported_comment():
    return create_reported_comment(report_count=3)
