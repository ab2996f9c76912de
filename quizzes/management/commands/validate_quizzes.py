"""Report authoring issues in stored quizzes.

Usage::

    python manage.py validate_quizzes [--quiz <uuid>] [--fail-on-issues]
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from quizzes.services.quiz_loader import load_quiz_definition, quiz_queryset
from quizzes.services.validation import validate_quiz


class Command(BaseCommand):
    help = "Check quiz definitions for forward references, missing options and profile range gaps."

    def add_arguments(self, parser):
        parser.add_argument('--quiz', help='Only check the quiz with this id.')
        parser.add_argument(
            '--fail-on-issues',
            action='store_true',
            help='Exit with an error when any issue is found.',
        )

    def handle(self, *args, **options):
        quizzes = quiz_queryset().order_by('title')
        if options['quiz']:
            try:
                quizzes = quizzes.filter(pk=options['quiz'])
                if not quizzes.exists():
                    raise CommandError(f"Quiz {options['quiz']} does not exist.")
            except ValidationError as exc:
                raise CommandError(f"Invalid quiz id {options['quiz']!r}.") from exc

        total = 0
        for quiz in quizzes:
            issues = validate_quiz(load_quiz_definition(quiz))
            if not issues:
                self.stdout.write(self.style.SUCCESS(f'{quiz.title}: no issues'))
                continue
            total += len(issues)
            self.stdout.write(self.style.WARNING(f'{quiz.title}: {len(issues)} issue(s)'))
            for issue in issues:
                self.stdout.write(f'  [{issue.code}] {issue.message}')

        if total and options['fail_on_issues']:
            raise CommandError(f'Found {total} issue(s).')
        self.stdout.write(self.style.NOTICE(f'Checked quizzes; {total} issue(s) found.'))
