"""Application configuration for the quizzes app."""

from __future__ import annotations

from django.apps import AppConfig


class QuizzesConfig(AppConfig):
    """Custom AppConfig for the quizzes application."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'quizzes'
    verbose_name = 'Quizzes'
