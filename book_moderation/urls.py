from django.urls import path, include

app_name = 'book_moderation'

urlpatterns = [
    # REST API URLs
    path('api/', include('book_moderation.api.urls', namespace='api')),
]
