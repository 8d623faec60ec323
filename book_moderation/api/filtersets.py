import django_filters
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from ..models import ActionType, CommentReport, ModerationAction, ReportStatus


class CommentReportFilterSet(django_filters.FilterSet):
    """
    FilterSet for the report list.
    """
    status = django_filters.ChoiceFilter(
        choices=ReportStatus.choices,
        help_text=_("Filter by report status")
    )
    comment = django_filters.UUIDFilter(
        field_name='comment_id',
        help_text=_("Filter by comment ID")
    )
    reporter = django_filters.NumberFilter(
        field_name='reporter_id',
        help_text=_("Filter by reporter user ID")
    )
    created_after = django_filters.DateTimeFilter(
        field_name='created_at',
        lookup_expr='gte',
        help_text=_("Filter reports filed after this date/time")
    )
    created_before = django_filters.DateTimeFilter(
        field_name='created_at',
        lookup_expr='lte',
        help_text=_("Filter reports filed before this date/time")
    )

    class Meta:
        model = CommentReport
        fields = ['status', 'comment', 'reporter']


class ModerationActionFilterSet(django_filters.FilterSet):
    """
    FilterSet for the moderation log.

    ``user`` matches actions on comments written by the user as well as
    warnings and bans targeting them.
    """
    user = django_filters.NumberFilter(
        method='filter_user',
        help_text=_("Filter by the user whose comment was moderated")
    )
    moderator = django_filters.NumberFilter(
        field_name='moderator_id',
        help_text=_("Filter by moderator user ID")
    )
    action_type = django_filters.ChoiceFilter(
        choices=ActionType.choices,
        help_text=_("Filter by action type")
    )
    comment = django_filters.UUIDFilter(
        field_name='comment_id',
        help_text=_("Filter by comment ID")
    )
    date_from = django_filters.DateFilter(
        field_name='created_at',
        lookup_expr='date__gte',
        help_text=_("Only actions on or after this date")
    )
    date_to = django_filters.DateFilter(
        field_name='created_at',
        lookup_expr='date__lte',
        help_text=_("Only actions on or before this date")
    )

    class Meta:
        model = ModerationAction
        fields = ['user', 'moderator', 'action_type', 'comment', 'date_from', 'date_to']

    def filter_user(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(Q(comment__user_id=value) | Q(affected_user_id=value))
