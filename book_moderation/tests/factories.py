"""
Factories for creating test data.
"""
from datetime import timedelta

import factory
from django.contrib.auth import get_user_model
from django.utils import timezone
from factory import fuzzy
from factory.django import DjangoModelFactory

from ..models import Book, Comment, CommentReport, ModerationAction, ActionType

User = get_user_model()


class UserFactory(DjangoModelFactory):
    """
    Factory for creating User instances with realistic data.
    """

    username = factory.Sequence(lambda n: f'user_{n}')
    email = factory.LazyAttribute(lambda obj: f'{obj.username}@example.com')
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    password = factory.PostGenerationMethodCall('set_password', 'testpass123')
    is_active = True
    is_staff = False
    is_superuser = False
    date_joined = factory.LazyFunction(
        lambda: timezone.now() - timedelta(days=fuzzy.FuzzyInteger(1, 365).fuzz())
    )

    class Meta:
        model = User
        django_get_or_create = ('username',)
        skip_postgeneration_save = True


class StaffUserFactory(UserFactory):
    """Factory for staff users."""
    is_staff = True


class SuperUserFactory(UserFactory):
    """Factory for superusers."""
    is_staff = True
    is_superuser = True


class BookFactory(DjangoModelFactory):
    title = factory.Faker('sentence', nb_words=4)
    author_name = factory.Faker('name')
    description = factory.Faker('paragraph', nb_sentences=2)
    owner = factory.SubFactory(UserFactory)

    class Meta:
        model = Book


class CommentFactory(DjangoModelFactory):
    """
    Factory for active comments with realistic content.
    """
    book = factory.SubFactory(BookFactory)
    user = factory.SubFactory(UserFactory)
    content = factory.Faker('paragraph', nb_sentences=3)

    class Meta:
        model = Comment


class SelfDeletedCommentFactory(CommentFactory):
    is_deleted = True
    deleted_at = factory.LazyFunction(timezone.now)
    deleted_by = factory.SelfAttribute('user')


class RemovedCommentFactory(CommentFactory):
    is_admin_deleted = True
    admin_deleted_at = factory.LazyFunction(timezone.now)
    admin_deleted_by = factory.SubFactory(StaffUserFactory)


class CommentReportFactory(DjangoModelFactory):
    comment = factory.SubFactory(CommentFactory)
    reporter = factory.SubFactory(UserFactory)
    reason = factory.Faker('sentence', nb_words=8)

    class Meta:
        model = CommentReport


class ModerationActionFactory(DjangoModelFactory):
    moderator = factory.SubFactory(StaffUserFactory)
    comment = factory.SubFactory(CommentFactory)
    action_type = ActionType.DELETE
    reason = factory.Faker('sentence', nb_words=6)

    class Meta:
        model = ModerationAction


def create_reported_comment(report_count=1, **kwargs):
    """
    Create a comment with ``report_count`` pending reports from distinct users.
    """
    comment = CommentFactory(**kwargs)
    for _ in range(report_count):
        CommentReportFactory(comment=comment)
    comment.pending_report_count = report_count
    comment.save(update_fields=['pending_report_count'])
    return comment
