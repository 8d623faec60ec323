from django.contrib.auth import get_user_model
from django.utils.translation import gettext_lazy as _
from rest_framework import serializers

from ..models import (
    BannedUser,
    Book,
    Comment,
    CommentReport,
    ModerationAction,
    Notification,
)
from ..utils import is_moderator

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for the User model, nested in the other serializers.
    """
    display_name = serializers.SerializerMethodField()
    is_moderator = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ('id', 'username', 'display_name', 'is_moderator')
        read_only_fields = fields

    def get_display_name(self, obj) -> str:
        return obj.get_full_name() or obj.get_username()

    def get_is_moderator(self, obj) -> bool:
        return is_moderator(obj)


class BookSerializer(serializers.ModelSerializer):
    owner_info = UserSerializer(source='owner', read_only=True)
    deleted_by_info = UserSerializer(source='deleted_by', read_only=True)

    class Meta:
        model = Book
        fields = (
            'id', 'title', 'author_name', 'description', 'owner', 'owner_info',
            'comment_count', 'is_deleted', 'deleted_at', 'deleted_by_info',
            'created_at', 'updated_at',
        )
        read_only_fields = fields


class CommentSerializer(serializers.ModelSerializer):
    """
    Read serializer for comments.

    ``content`` is replaced by the removal placeholder when the listing
    attached one (author viewing their own moderator-removed comment).
    """
    user_info = UserSerializer(source='user', read_only=True)
    content = serializers.SerializerMethodField()
    status = serializers.CharField(read_only=True)
    report_count = serializers.SerializerMethodField()

    class Meta:
        model = Comment
        fields = (
            'id', 'book', 'user', 'user_info', 'content', 'is_edited', 'status',
            'is_deleted', 'is_admin_deleted', 'report_count',
            'created_at', 'updated_at',
        )
        read_only_fields = fields

    def get_content(self, obj) -> str:
        return getattr(obj, 'display_content', obj.content)

    def get_report_count(self, obj) -> int:
        return getattr(obj, 'report_count', obj.pending_report_count)


class CommentUpdateSerializer(serializers.Serializer):
    # Length bounds are enforced by the lifecycle store so the API and
    # direct callers get the same error message.
    content = serializers.CharField(trim_whitespace=False, allow_blank=True)


class ReportInputSerializer(serializers.Serializer):
    reason = serializers.CharField(trim_whitespace=False, allow_blank=True)


class ModerationNoteSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class RemoveCommentSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class WarnUserSerializer(serializers.Serializer):
    reason = serializers.CharField(trim_whitespace=False, allow_blank=True)


class BanUserSerializer(serializers.Serializer):
    reason = serializers.CharField(trim_whitespace=False, allow_blank=True)
    duration_days = serializers.IntegerField(required=False, min_value=1, allow_null=True)
    permanent = serializers.BooleanField(required=False, default=False)


class CommentReportSerializer(serializers.ModelSerializer):
    reporter_info = UserSerializer(source='reporter', read_only=True)
    resolved_by_info = UserSerializer(source='resolved_by', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = CommentReport
        fields = (
            'id', 'comment', 'reporter', 'reporter_info', 'reason', 'status',
            'status_display', 'created_at', 'resolved_at', 'resolved_by',
            'resolved_by_info', 'resolution_notes',
        )
        read_only_fields = fields


class ReportOutcomeSerializer(serializers.Serializer):
    report = CommentReportSerializer(read_only=True)
    triggered_auto_removal = serializers.BooleanField(read_only=True)
    detail = serializers.SerializerMethodField()

    def get_detail(self, obj) -> str:
        if obj.triggered_auto_removal:
            return str(_("Thank you. The comment has been removed after multiple reports."))
        return str(_("Thank you. Your report has been sent to the moderators."))


class ReportedCommentSerializer(CommentSerializer):
    """
    A comment in the reported-comments queue, with the matching report
    count and the time of the latest matching report.
    """
    report_count = serializers.IntegerField(read_only=True)
    last_reported_at = serializers.DateTimeField(read_only=True)
    book_title = serializers.CharField(source='book.title', read_only=True)

    class Meta(CommentSerializer.Meta):
        fields = CommentSerializer.Meta.fields + ('book_title', 'last_reported_at')
        read_only_fields = fields

    def get_content(self, obj) -> str:
        return obj.content


class ModerationActionSerializer(serializers.ModelSerializer):
    moderator_info = UserSerializer(source='moderator', read_only=True)
    affected_user_info = UserSerializer(source='affected_user', read_only=True)
    action_display = serializers.CharField(source='get_action_type_display', read_only=True)

    class Meta:
        model = ModerationAction
        fields = (
            'id', 'moderator', 'moderator_info', 'comment', 'action_type',
            'action_display', 'reason', 'affected_user', 'affected_user_info',
            'created_at',
        )
        read_only_fields = fields


class NotificationSerializer(serializers.ModelSerializer):
    type_display = serializers.CharField(source='get_notification_type_display', read_only=True)

    class Meta:
        model = Notification
        fields = (
            'id', 'notification_type', 'type_display', 'message', 'link',
            'is_read', 'created_at',
        )
        read_only_fields = fields


class BannedUserSerializer(serializers.ModelSerializer):
    user_info = UserSerializer(source='user', read_only=True)
    banned_by_info = UserSerializer(source='banned_by', read_only=True)
    is_active = serializers.BooleanField(read_only=True)
    is_permanent = serializers.BooleanField(read_only=True)

    class Meta:
        model = BannedUser
        fields = (
            'id', 'user', 'user_info', 'banned_until', 'reason', 'banned_by',
            'banned_by_info', 'comment', 'is_active', 'is_permanent', 'created_at',
        )
        read_only_fields = fields
