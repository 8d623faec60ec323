"""
Tests for the book_moderation admin interface.
"""
import pytest
from django.contrib.admin.sites import AdminSite
from django.contrib.messages.storage.fallback import FallbackStorage
from django.test import RequestFactory
from django.urls import reverse

from ..admin import BookAdmin, CommentAdmin, CommentReportAdmin, ModerationActionAdmin
from ..models import (
    ActionType,
    Book,
    Comment,
    CommentReport,
    CommentStatus,
    ModerationAction,
    ReportStatus,
)
from .factories import (
    CommentFactory,
    CommentReportFactory,
    RemovedCommentFactory,
    SelfDeletedCommentFactory,
)


def make_request(user):
    request = RequestFactory().get('/')
    request.user = user
    setattr(request, 'session', {})
    setattr(request, '_messages', FallbackStorage(request))
    return request


def messages_of(request):
    return [str(m) for m in request._messages]


@pytest.mark.django_db
class TestCommentAdmin:
    """Tests for the CommentAdmin class."""

    @pytest.fixture(autouse=True)
    def setup_admin(self):
        self.comment_admin = CommentAdmin(Comment, AdminSite())

    def test_content_snippet(self, comment):
        comment.content = "Short content"
        assert self.comment_admin.content_snippet(comment) == "Short content"

        comment.content = "This is a very long comment that should be truncated in the admin list."
        assert self.comment_admin.content_snippet(comment) == (
            "This is a very long comment that should be truncat..."
        )

    def test_status_display(self):
        assert self.comment_admin.status_display(CommentFactory()) == 'Active'
        assert self.comment_admin.status_display(SelfDeletedCommentFactory()) == 'Deleted by author'
        assert self.comment_admin.status_display(RemovedCommentFactory()) == 'Removed by moderator'

    def test_book_link(self, comment):
        link = self.comment_admin.book_link(comment)
        assert reverse('admin:book_moderation_book_change', args=[comment.book_id]) in link
        assert comment.book.title in link

    def test_remove_comments_action(self, comment, report, superuser):
        request = make_request(superuser)

        self.comment_admin.remove_comments(request, Comment.objects.filter(pk=comment.pk))

        comment.refresh_from_db()
        report.refresh_from_db()
        assert comment.status == CommentStatus.MODERATOR_DELETED
        assert report.status == ReportStatus.RESOLVED
        assert ModerationAction.objects.filter(
            comment=comment, action_type=ActionType.DELETE, reason="Removed from admin"
        ).exists()
        assert "Successfully removed 1 comments." in messages_of(request)

    def test_remove_reports_failures_per_comment(self, superuser):
        active = CommentFactory()
        removed = RemovedCommentFactory()
        request = make_request(superuser)

        self.comment_admin.remove_comments(
            request, Comment.objects.filter(pk__in=[active.pk, removed.pk])
        )

        active.refresh_from_db()
        assert active.status == CommentStatus.MODERATOR_DELETED
        messages = messages_of(request)
        assert any("already been deleted" in m for m in messages)
        assert "Successfully removed 1 comments." in messages

    def test_remove_requires_moderator(self, comment, user):
        request = make_request(user)

        self.comment_admin.remove_comments(request, Comment.objects.filter(pk=comment.pk))

        comment.refresh_from_db()
        assert comment.is_active
        assert any("Only moderators" in m for m in messages_of(request))

    def test_recount_reports_action(self, report, superuser):
        comment = report.comment
        Comment.objects.filter(pk=comment.pk).update(pending_report_count=7)
        request = make_request(superuser)

        self.comment_admin.recount_reports(request, Comment.objects.filter(pk=comment.pk))

        comment.refresh_from_db()
        assert comment.pending_report_count == 1

    def test_comment_admin_list_view(self, admin_client, comment):
        response = admin_client.get(reverse('admin:book_moderation_comment_changelist'))

        assert response.status_code == 200
        assert comment.content[:50] in response.content.decode()

    def test_status_filter(self, admin_client):
        active = CommentFactory(content="Visible and well argued.")
        RemovedCommentFactory(content="Buy cheap watches now.")

        response = admin_client.get(
            reverse('admin:book_moderation_comment_changelist'),
            {'status': CommentStatus.MODERATOR_DELETED}
        )

        content = response.content.decode()
        assert "Buy cheap watches now." in content
        assert active.content not in content


@pytest.mark.django_db
class TestCommentReportAdmin:

    @pytest.fixture(autouse=True)
    def setup_admin(self):
        self.report_admin = CommentReportAdmin(CommentReport, AdminSite())

    def test_resolve_reports_action(self, report, superuser):
        request = make_request(superuser)

        self.report_admin.resolve_reports(request, CommentReport.objects.filter(pk=report.pk))

        report.refresh_from_db()
        assert report.status == ReportStatus.RESOLVED
        assert report.resolved_by == superuser
        assert report.comment.status == CommentStatus.MODERATOR_DELETED

    def test_reject_reports_action(self, report, superuser):
        request = make_request(superuser)

        self.report_admin.reject_reports(request, CommentReport.objects.filter(pk=report.pk))

        report.refresh_from_db()
        assert report.status == ReportStatus.REJECTED
        report.comment.refresh_from_db()
        assert report.comment.is_active

    def test_processed_report_is_skipped(self, superuser):
        report = CommentReportFactory(status=ReportStatus.REJECTED)
        request = make_request(superuser)

        self.report_admin.resolve_reports(request, CommentReport.objects.filter(pk=report.pk))

        report.refresh_from_db()
        assert report.status == ReportStatus.REJECTED
        assert any("already been processed" in m for m in messages_of(request))

    def test_no_add_permission(self, superuser):
        assert not self.report_admin.has_add_permission(make_request(superuser))


@pytest.mark.django_db
class TestBookAdmin:

    @pytest.fixture(autouse=True)
    def setup_admin(self):
        self.book_admin = BookAdmin(Book, AdminSite())

    def test_delete_and_restore_books(self, comment, superuser):
        book = comment.book
        queryset = Book.objects.filter(pk=book.pk)

        self.book_admin.delete_books(make_request(superuser), queryset)
        book.refresh_from_db()
        comment.refresh_from_db()
        assert book.is_deleted
        assert comment.deleted_by_cascade

        self.book_admin.restore_books(make_request(superuser), queryset)
        book.refresh_from_db()
        comment.refresh_from_db()
        assert not book.is_deleted
        assert comment.is_active


@pytest.mark.django_db
class TestModerationActionAdmin:

    def test_log_is_read_only(self, superuser):
        action_admin = ModerationActionAdmin(ModerationAction, AdminSite())
        request = make_request(superuser)

        assert not action_admin.has_add_permission(request)
        assert not action_admin.has_change_permission(request)
        assert not action_admin.has_delete_permission(request)

    def test_changelist_view(self, admin_client, comment, staff_user):
        ModerationAction.objects.create(
            moderator=staff_user, comment=comment,
            action_type=ActionType.WARN_USER, reason="Keep it civil"
        )

        response = admin_client.get(reverse('admin:book_moderation_moderationaction_changelist'))

        assert response.status_code == 200
        assert "Keep it civil" in response.content.decode()
