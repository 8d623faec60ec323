from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _
from django.urls import reverse

from . import moderation
from .exceptions import ModerationError
from .models import (
    BannedUser,
    Book,
    Comment,
    CommentReport,
    CommentStatus,
    ModerationAction,
    Notification,
)


class CommentStatusFilter(admin.SimpleListFilter):
    """
    Filter comments by lifecycle status instead of the raw flags.
    """
    title = _('status')
    parameter_name = 'status'

    def lookups(self, request, model_admin):
        return CommentStatus.choices

    def queryset(self, request, queryset):
        if self.value() == CommentStatus.ACTIVE:
            return queryset.filter(is_deleted=False, is_admin_deleted=False)
        if self.value() == CommentStatus.SELF_DELETED:
            return queryset.filter(is_deleted=True, is_admin_deleted=False)
        if self.value() == CommentStatus.MODERATOR_DELETED:
            return queryset.filter(is_admin_deleted=True)
        return queryset


def _run_for_each(modeladmin, request, queryset, operation, success_message):
    """
    Apply an engine operation to every selected object, reporting failures
    per object instead of aborting the whole action.
    """
    done = 0
    for obj in queryset:
        try:
            operation(obj)
            done += 1
        except ModerationError as e:
            modeladmin.message_user(
                request,
                _("%(object)s: %(error)s") % {'object': obj, 'error': e.message},
                level='warning'
            )
    if done:
        modeladmin.message_user(request, success_message % {'count': done})


@admin.register(Book)
class BookAdmin(admin.ModelAdmin):
    list_display = (
        'title', 'author_name', 'owner', 'comment_count', 'is_deleted',
        'deleted_at', 'created_at',
    )
    list_filter = ('is_deleted', 'created_at')
    search_fields = ('title', 'author_name', 'owner__username')
    raw_id_fields = ('owner',)
    readonly_fields = ('comment_count', 'is_deleted', 'deleted_at', 'deleted_by', 'created_at', 'updated_at')
    actions = ['delete_books', 'restore_books']

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('owner', 'deleted_by')

    def delete_books(self, request, queryset):
        """Soft-delete the selected books and their comments."""
        _run_for_each(
            self, request, queryset,
            lambda book: moderation.delete_book(book.pk, request.user),
            _("Successfully deleted %(count)d books.")
        )
    delete_books.short_description = _("Delete selected books and their comments")

    def restore_books(self, request, queryset):
        """Restore the selected books and the comments deleted with them."""
        _run_for_each(
            self, request, queryset,
            lambda book: moderation.restore_book(book.pk, request.user),
            _("Successfully restored %(count)d books.")
        )
    restore_books.short_description = _("Restore selected books")


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'content_snippet', 'user', 'book_link', 'status_display',
        'pending_report_count', 'is_edited', 'created_at',
    )
    list_filter = (CommentStatusFilter, 'is_edited', 'created_at')
    search_fields = ('content', 'user__username', 'book__title')
    date_hierarchy = 'created_at'
    raw_id_fields = ('user', 'book')
    readonly_fields = (
        'book', 'user', 'is_deleted', 'deleted_at', 'deleted_by', 'deleted_by_cascade',
        'is_admin_deleted', 'admin_deleted_at', 'admin_deleted_by',
        'pending_report_count', 'created_at', 'updated_at',
    )
    fieldsets = (
        (_('Comment'), {
            'fields': ('book', 'user', 'content', 'is_edited')
        }),
        (_('Deletion'), {
            'fields': (
                'is_deleted', 'deleted_at', 'deleted_by', 'deleted_by_cascade',
                'is_admin_deleted', 'admin_deleted_at', 'admin_deleted_by',
            )
        }),
        (_('Reports'), {
            'fields': ('pending_report_count',)
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
    actions = ['remove_comments', 'recount_reports']

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('user', 'book')

    def content_snippet(self, obj):
        """Display a snippet of the comment content."""
        if len(obj.content) > 50:
            return f"{obj.content[:50]}..."
        return obj.content
    content_snippet.short_description = _('Content')

    def book_link(self, obj):
        url = reverse('admin:book_moderation_book_change', args=[obj.book_id])
        return format_html('<a href="{}">{}</a>', url, obj.book.title)
    book_link.short_description = _('Book')

    def status_display(self, obj):
        return CommentStatus(obj.status).label
    status_display.short_description = _('Status')

    def remove_comments(self, request, queryset):
        """Remove the selected comments as a moderator."""
        _run_for_each(
            self, request, queryset,
            lambda comment: moderation.delete_comment(
                comment.pk, request.user, as_moderator=True, reason="Removed from admin"
            ),
            _("Successfully removed %(count)d comments.")
        )
    remove_comments.short_description = _("Remove selected comments")

    def recount_reports(self, request, queryset):
        """Recompute the cached pending report count."""
        _run_for_each(
            self, request, queryset,
            lambda comment: moderation.recount_pending_reports(comment.pk),
            _("Recounted reports for %(count)d comments.")
        )
    recount_reports.short_description = _("Recount pending reports")


@admin.register(CommentReport)
class CommentReportAdmin(admin.ModelAdmin):
    list_display = ('id', 'comment', 'reporter', 'reason_snippet', 'status', 'created_at', 'resolved_by')
    list_filter = ('status', 'created_at')
    search_fields = ('reason', 'reporter__username', 'comment__content')
    date_hierarchy = 'created_at'
    readonly_fields = (
        'comment', 'reporter', 'reason', 'status', 'resolved_by', 'resolved_at',
        'resolution_notes', 'created_at', 'updated_at',
    )
    actions = ['resolve_reports', 'reject_reports']

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('comment', 'reporter', 'resolved_by')

    def has_add_permission(self, request):
        return False

    def reason_snippet(self, obj):
        if len(obj.reason) > 50:
            return f"{obj.reason[:50]}..."
        return obj.reason
    reason_snippet.short_description = _('Reason')

    def resolve_reports(self, request, queryset):
        """Uphold the selected reports and remove their comments."""
        _run_for_each(
            self, request, queryset,
            lambda report: moderation.resolve_report(report.pk, request.user),
            _("Successfully resolved %(count)d reports.")
        )
    resolve_reports.short_description = _("Resolve selected reports")

    def reject_reports(self, request, queryset):
        """Dismiss the selected reports."""
        _run_for_each(
            self, request, queryset,
            lambda report: moderation.reject_report(report.pk, request.user),
            _("Successfully rejected %(count)d reports.")
        )
    reject_reports.short_description = _("Reject selected reports")


@admin.register(ModerationAction)
class ModerationActionAdmin(admin.ModelAdmin):
    """
    The moderation log is append-only, so the admin is read-only.
    """
    list_display = ('created_at', 'action_type', 'moderator', 'comment', 'affected_user', 'reason')
    list_filter = ('action_type', 'created_at')
    search_fields = ('reason', 'moderator__username', 'affected_user__username')
    date_hierarchy = 'created_at'

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('moderator', 'comment', 'affected_user')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('user', 'notification_type', 'is_read', 'created_at')
    list_filter = ('notification_type', 'is_read', 'created_at')
    search_fields = ('user__username', 'message')
    raw_id_fields = ('user',)


@admin.register(BannedUser)
class BannedUserAdmin(admin.ModelAdmin):
    list_display = ('user', 'banned_until', 'banned_by', 'created_at')
    search_fields = ('user__username', 'reason')
    raw_id_fields = ('user', 'banned_by', 'comment')
