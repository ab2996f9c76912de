"""Create the SCARF leadership assessment.

Usage::

    python manage.py seed_scarf_quiz --owner admin@example.com

Without ``--owner`` the quiz has no owner and only appears in the admin.
Pass ``--force`` to create another copy when one with the same title
already exists.
"""

from __future__ import annotations

from django.contrib.auth.models import User
from django.core.management.base import BaseCommand, CommandError
from django.db import OperationalError

from quizzes.models import Quiz
from quizzes.services.scarf_template import SCARF_QUIZ_TITLE, create_scarf_quiz


class Command(BaseCommand):
    help = "Create the SCARF leadership assessment quiz."

    def add_arguments(self, parser):
        parser.add_argument(
            '--owner',
            help='Username of the account that will own the quiz.',
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Create the quiz even if a SCARF quiz already exists.',
        )

    def handle(self, *args, **options):
        owner = None
        if options['owner']:
            try:
                owner = User.objects.get(username=options['owner'])
            except User.DoesNotExist as exc:
                raise CommandError(f"No user named {options['owner']!r}.") from exc

        try:
            exists = Quiz.objects.filter(title=SCARF_QUIZ_TITLE).exists()
        except OperationalError as exc:
            raise CommandError(
                "Database is not ready; ensure migrations have been applied before seeding."
            ) from exc
        if exists and not options['force']:
            self.stdout.write(
                self.style.WARNING('A SCARF quiz already exists; use --force to create another one.')
            )
            return

        self.stdout.write(self.style.NOTICE('Creating SCARF quiz...'))
        quiz = create_scarf_quiz(owner=owner)
        self.stdout.write(self.style.SUCCESS(f'Created quiz {quiz.pk} with {quiz.questions.count()} questions.'))
