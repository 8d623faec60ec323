from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'book_moderation_api'

router = DefaultRouter()
router.register(r'books', views.BookViewSet, basename='book')
router.register(r'comments', views.CommentViewSet, basename='comment')
router.register(r'reports', views.ReportViewSet, basename='report')
router.register(r'reported-comments', views.ReportedCommentViewSet, basename='reported-comment')
router.register(r'moderation-actions', views.ModerationActionViewSet, basename='moderation-action')
router.register(r'notifications', views.NotificationViewSet, basename='notification')

urlpatterns = [
    path('', include(router.urls)),
]
