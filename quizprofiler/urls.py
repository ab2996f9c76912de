"""Root URL configuration for the Quiz Profiler project."""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('quizzes.urls')),
]
