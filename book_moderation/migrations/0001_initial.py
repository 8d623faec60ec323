import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Book',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255, verbose_name='Title')),
                ('author_name', models.CharField(blank=True, max_length=255, verbose_name='Author')),
                ('description', models.TextField(blank=True, verbose_name='Description')),
                ('comment_count', models.PositiveIntegerField(default=0, verbose_name='Comment count')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, verbose_name='Is deleted')),
                ('deleted_at', models.DateTimeField(blank=True, null=True, verbose_name='Deleted at')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('deleted_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='books_deleted', to=settings.AUTH_USER_MODEL, verbose_name='Deleted by')),
                ('owner', models.ForeignKey(help_text='The user who posted this book', on_delete=django.db.models.deletion.CASCADE, related_name='books', to=settings.AUTH_USER_MODEL, verbose_name='Owner')),
            ],
            options={
                'verbose_name': 'Book',
                'verbose_name_plural': 'Books',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['is_deleted', 'deleted_at'], name='book_deleted_idx'),
                    models.Index(fields=['owner'], name='book_owner_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Comment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('content', models.TextField(verbose_name='Content')),
                ('is_edited', models.BooleanField(default=False, verbose_name='Is edited')),
                ('is_deleted', models.BooleanField(default=False, verbose_name='Is deleted')),
                ('deleted_at', models.DateTimeField(blank=True, null=True, verbose_name='Deleted at')),
                ('deleted_by_cascade', models.BooleanField(default=False, help_text='Set when the deletion came from deleting the book', verbose_name='Deleted with book')),
                ('is_admin_deleted', models.BooleanField(default=False, verbose_name='Removed by moderator')),
                ('admin_deleted_at', models.DateTimeField(blank=True, null=True, verbose_name='Removed at')),
                ('pending_report_count', models.PositiveIntegerField(default=0, verbose_name='Pending reports')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('admin_deleted_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='comments_removed', to=settings.AUTH_USER_MODEL, verbose_name='Removed by')),
                ('book', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='comments', to='book_moderation.book', verbose_name='Book')),
                ('deleted_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='comments_deleted', to=settings.AUTH_USER_MODEL, verbose_name='Deleted by')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='book_comments', to=settings.AUTH_USER_MODEL, verbose_name='Author')),
            ],
            options={
                'verbose_name': 'Comment',
                'verbose_name_plural': 'Comments',
                'ordering': ('-created_at',),
                'permissions': [('can_moderate_comments', 'Can moderate comments')],
                'indexes': [
                    models.Index(fields=['book', 'is_deleted', 'is_admin_deleted'], name='comment_visibility_idx'),
                    models.Index(fields=['user'], name='comment_user_idx'),
                    models.Index(fields=['created_at'], name='comment_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CommentReport',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('reason', models.TextField(verbose_name='Reason')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('resolved', 'Resolved'), ('rejected', 'Rejected')], db_index=True, default='pending', max_length=20, verbose_name='Status')),
                ('resolved_at', models.DateTimeField(blank=True, null=True, verbose_name='Resolved at')),
                ('resolution_notes', models.TextField(blank=True, verbose_name='Resolution notes')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('comment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reports', to='book_moderation.comment', verbose_name='Comment')),
                ('reporter', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='comment_reports', to=settings.AUTH_USER_MODEL, verbose_name='Reporter')),
                ('resolved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reports_resolved', to=settings.AUTH_USER_MODEL, verbose_name='Resolved by')),
            ],
            options={
                'verbose_name': 'Comment report',
                'verbose_name_plural': 'Comment reports',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['comment', 'status'], name='report_comment_status_idx'),
                    models.Index(fields=['status', 'created_at'], name='report_status_date_idx'),
                ],
            },
        ),
        migrations.AddConstraint(
            model_name='commentreport',
            constraint=models.UniqueConstraint(fields=('comment', 'reporter'), name='unique_comment_reporter', violation_error_message='You have already reported this comment.'),
        ),
        migrations.CreateModel(
            name='ModerationAction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('action_type', models.CharField(choices=[('delete', 'Delete'), ('ignore', 'Ignore'), ('warn_user', 'Warn user'), ('ban_user', 'Ban user'), ('resolve_report', 'Resolve report'), ('reject_report', 'Reject report'), ('report', 'Report')], max_length=20, verbose_name='Action')),
                ('reason', models.TextField(blank=True, help_text='Reason for this action', verbose_name='Reason')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created at')),
                ('affected_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='moderation_actions_received', to=settings.AUTH_USER_MODEL, verbose_name='Affected User')),
                ('comment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='moderation_actions', to='book_moderation.comment', verbose_name='Comment')),
                ('moderator', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='moderation_actions', to=settings.AUTH_USER_MODEL, verbose_name='Moderator')),
            ],
            options={
                'verbose_name': 'Moderation Action',
                'verbose_name_plural': 'Moderation Actions',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['comment'], name='modaction_comment_idx'),
                    models.Index(fields=['moderator', 'action_type'], name='modaction_mod_idx'),
                    models.Index(fields=['created_at'], name='modaction_time_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('notification_type', models.CharField(choices=[('comment_reported', 'Comment reported'), ('comment_deleted', 'Comment deleted'), ('report_resolved', 'Report resolved'), ('report_rejected', 'Report rejected'), ('user_warning', 'Warning'), ('user_banned', 'Banned')], max_length=30, verbose_name='Type')),
                ('message', models.TextField(verbose_name='Message')),
                ('link', models.CharField(blank=True, max_length=500, verbose_name='Link')),
                ('is_read', models.BooleanField(default=False, verbose_name='Is read')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created at')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='moderation_notifications', to=settings.AUTH_USER_MODEL, verbose_name='User')),
            ],
            options={
                'verbose_name': 'Notification',
                'verbose_name_plural': 'Notifications',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['user', 'is_read'], name='notification_unread_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='BannedUser',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False, verbose_name='ID')),
                ('banned_until', models.DateTimeField(blank=True, help_text='Leave empty for permanent ban', null=True, verbose_name='Banned Until')),
                ('reason', models.TextField(verbose_name='Reason')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated at')),
                ('banned_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='users_banned', to=settings.AUTH_USER_MODEL, verbose_name='Banned By')),
                ('comment', models.ForeignKey(blank=True, help_text='The comment that led to the ban', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='bans', to='book_moderation.comment', verbose_name='Comment')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='comment_bans', to=settings.AUTH_USER_MODEL, verbose_name='User')),
            ],
            options={
                'verbose_name': 'Banned User',
                'verbose_name_plural': 'Banned Users',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['user', 'banned_until'], name='banneduser_until_idx'),
                ],
            },
        ),
        migrations.AddConstraint(
            model_name='banneduser',
            constraint=models.UniqueConstraint(fields=('user',), name='unique_banned_user', violation_error_message='This user is already banned.'),
        ),
    ]
