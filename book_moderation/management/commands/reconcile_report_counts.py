"""
Management command to bring cached pending report counts back in line
with the report rows.

The counter on each comment is updated in the same transaction as the
reports it counts, so drift only appears after manual database edits or
restored backups.

Usage:
    python manage.py reconcile_report_counts
    python manage.py reconcile_report_counts --dry-run
    python manage.py reconcile_report_counts --comment=<uuid>
"""
import logging
import uuid

from django.core.management.base import BaseCommand, CommandError
from django.db.models import Count, F, Q
from django.utils.translation import gettext_lazy as _

from ... import moderation
from ...conf import moderation_settings
from ...exceptions import ModerationError
from ...models import Comment, ReportStatus

logger = logging.getLogger(moderation_settings.LOGGER_NAME)


class Command(BaseCommand):
    help = _("Recompute cached pending report counts from the report rows")

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help=_('Do not change anything, just show which counts are wrong.')
        )
        parser.add_argument(
            '--comment',
            default=None,
            help=_('Only reconcile the comment with this ID.')
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        queryset = Comment.objects.annotate(
            actual_count=Count('reports', filter=Q(reports__status=ReportStatus.PENDING))
        ).exclude(pending_report_count=F('actual_count'))

        if options['comment']:
            try:
                comment_id = uuid.UUID(options['comment'])
            except ValueError:
                raise CommandError(f"Invalid comment ID '{options['comment']}'")
            queryset = queryset.filter(pk=comment_id)

        drifted = list(queryset.values_list('pk', 'pending_report_count', 'actual_count'))

        if not drifted:
            self.stdout.write(self.style.SUCCESS("All pending report counts are correct."))
            return

        for pk, cached, actual in drifted:
            self.stdout.write(f"Comment {pk}: cached {cached}, actual {actual}")

        if dry_run:
            self.stdout.write(self.style.WARNING(
                f"Would fix {len(drifted)} comments (dry run)."
            ))
            return

        fixed = 0
        for pk, _cached, _actual in drifted:
            try:
                moderation.recount_pending_reports(pk)
                fixed += 1
            except ModerationError as e:
                self.stderr.write(f"Comment {pk}: {e.message}")

        logger.info(f"Reconciled pending report counts for {fixed} comments")
        self.stdout.write(self.style.SUCCESS(f"Fixed {fixed} comments."))
