from django.utils.translation import gettext_lazy as _
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .. import moderation
from ..conf import moderation_settings
from ..drf_integration import ModerationLogPagination, ModerationPagination, paged_response
from ..exceptions import (
    Conflict,
    DuplicateReport,
    Forbidden,
    ModerationError,
    NotFound,
    TransientError,
    ValidationFailed,
)
from ..models import Book, Comment, CommentReport, ModerationAction, Notification
from ..utils import is_moderator
from .filtersets import CommentReportFilterSet, ModerationActionFilterSet
from .permissions import CommentPermission, ModeratorPermission
from .serializers import (
    BanUserSerializer,
    BannedUserSerializer,
    BookSerializer,
    CommentReportSerializer,
    CommentSerializer,
    CommentUpdateSerializer,
    ModerationActionSerializer,
    ModerationNoteSerializer,
    NotificationSerializer,
    RemoveCommentSerializer,
    ReportedCommentSerializer,
    ReportInputSerializer,
    ReportOutcomeSerializer,
    WarnUserSerializer,
)

ERROR_STATUS_CODES = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (Forbidden, status.HTTP_403_FORBIDDEN),
    (ValidationFailed, status.HTTP_400_BAD_REQUEST),
    (Conflict, status.HTTP_409_CONFLICT),
    (TransientError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def moderation_error_response(exc):
    """
    Map a moderation error to a response with a specific message.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    for error_class, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            status_code = code
            break

    data = {'detail': exc.message}
    if isinstance(exc, DuplicateReport):
        data['status'] = exc.status

    headers = {'Retry-After': '1'} if isinstance(exc, TransientError) else None
    return Response(data, status=status_code, headers=headers)


class ModerationErrorMixin:
    """Render moderation errors raised by the engine."""

    def handle_exception(self, exc):
        if isinstance(exc, ModerationError):
            return moderation_error_response(exc)
        return super().handle_exception(exc)


def _page_args(request):
    return {
        'page': request.query_params.get('page', 1),
        'per_page': request.query_params.get(moderation_settings.PAGE_SIZE_QUERY_PARAM),
    }


class BookViewSet(ModerationErrorMixin,
                  mixins.RetrieveModelMixin,
                  mixins.DestroyModelMixin,
                  viewsets.GenericViewSet):
    """
    Books: retrieve, soft-delete, restore and list visible comments.
    """
    serializer_class = BookSerializer
    permission_classes = [CommentPermission]

    def get_queryset(self):
        queryset = Book.objects.select_related('owner', 'deleted_by')
        if is_moderator(self.request.user):
            return queryset
        return queryset.active()

    def destroy(self, request, pk=None):
        moderation.delete_book(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated])
    def restore(self, request, pk=None):
        book = moderation.restore_book(pk, request.user)
        return Response(BookSerializer(book).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['get'])
    def comments(self, request, pk=None):
        result = moderation.get_visible_comments(pk, request.user, **_page_args(request))
        return paged_response(result, CommentSerializer, self.get_serializer_context())

    @action(detail=False, methods=['get'], permission_classes=[ModeratorPermission])
    def deleted(self, request):
        result = moderation.list_deleted_books(**_page_args(request))
        return paged_response(result, BookSerializer, self.get_serializer_context())


class CommentViewSet(ModerationErrorMixin,
                     mixins.RetrieveModelMixin,
                     mixins.UpdateModelMixin,
                     mixins.DestroyModelMixin,
                     viewsets.GenericViewSet):
    """
    Comments: edit, delete, report and moderator actions.
    """
    serializer_class = CommentSerializer
    permission_classes = [CommentPermission]

    def get_queryset(self):
        return Comment.objects.visible_to(self.request.user).with_related()

    def update(self, request, pk=None, partial=False):
        serializer = CommentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = moderation.update_comment(pk, request.user, serializer.validated_data['content'])
        return Response(CommentSerializer(comment).data, status=status.HTTP_200_OK)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        moderation.delete_comment(pk, request.user, as_moderator=False)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated])
    def report(self, request, pk=None):
        """
        Report a comment. The comment is removed automatically once it
        collects enough pending reports.
        """
        serializer = ReportInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        outcome = moderation.report_comment(pk, request.user, serializer.validated_data['reason'])
        return Response(ReportOutcomeSerializer(outcome).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], permission_classes=[ModeratorPermission])
    def remove(self, request, pk=None):
        serializer = RemoveCommentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = moderation.delete_comment(
            pk, request.user, as_moderator=True, reason=serializer.validated_data['reason']
        )
        return Response(CommentSerializer(comment).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'], permission_classes=[ModeratorPermission])
    def warn(self, request, pk=None):
        serializer = WarnUserSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        moderation.warn_user(pk, request.user, serializer.validated_data['reason'])
        return Response({'detail': _("The user has been warned.")}, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'], permission_classes=[ModeratorPermission])
    def ban(self, request, pk=None):
        serializer = BanUserSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ban = moderation.ban_user(
            pk,
            request.user,
            serializer.validated_data['reason'],
            duration_days=serializer.validated_data.get('duration_days'),
            permanent=serializer.validated_data['permanent'],
        )
        return Response(BannedUserSerializer(ban).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'], permission_classes=[ModeratorPermission])
    def reports(self, request, pk=None):
        reports = moderation.get_comment_reports(pk, request.user)
        return Response(CommentReportSerializer(reports, many=True).data)


class ReportViewSet(ModerationErrorMixin, viewsets.ReadOnlyModelViewSet):
    """
    Moderator view of individual reports, with resolve/reject/ignore.
    """
    serializer_class = CommentReportSerializer
    permission_classes = [ModeratorPermission]
    pagination_class = ModerationPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = CommentReportFilterSet

    def get_queryset(self):
        return CommentReport.objects.with_related().order_by('-created_at')

    def _note(self, request):
        serializer = ModerationNoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data['notes']

    @action(detail=True, methods=['post'])
    def resolve(self, request, pk=None):
        report = moderation.resolve_report(pk, request.user, self._note(request))
        return Response(CommentReportSerializer(report).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        report = moderation.reject_report(pk, request.user, self._note(request))
        return Response(CommentReportSerializer(report).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'])
    def ignore(self, request, pk=None):
        report = moderation.ignore_report(pk, request.user, self._note(request))
        return Response(CommentReportSerializer(report).data, status=status.HTTP_200_OK)


class ReportedCommentViewSet(ModerationErrorMixin, viewsets.ViewSet):
    """
    The moderation queue: reported comments grouped with their report count.
    """
    permission_classes = [ModeratorPermission]

    def list(self, request):
        result = moderation.list_reported_comments(
            status_filter=request.query_params.get('status', 'pending'),
            **_page_args(request)
        )
        return paged_response(result, ReportedCommentSerializer, {'request': request})


class ModerationActionViewSet(ModerationErrorMixin, viewsets.ReadOnlyModelViewSet):
    """
    Read-only access to the moderation log.
    """
    serializer_class = ModerationActionSerializer
    permission_classes = [ModeratorPermission]
    pagination_class = ModerationLogPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = ModerationActionFilterSet

    def get_queryset(self):
        return ModerationAction.objects.with_related().order_by('-created_at')


class NotificationViewSet(viewsets.ReadOnlyModelViewSet):
    """
    The current user's notifications.
    """
    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = ModerationPagination

    def get_queryset(self):
        queryset = Notification.objects.for_user(self.request.user)
        if self.request.query_params.get('unread') in ('1', 'true', 'True'):
            queryset = queryset.unread()
        return queryset

    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        notification = self.get_object()
        notification.mark_read()
        return Response(NotificationSerializer(notification).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=['post'], url_path='read-all')
    def read_all(self, request):
        updated = Notification.objects.for_user(request.user).unread().update(is_read=True)
        return Response({'updated': updated}, status=status.HTTP_200_OK)
