"""Data models for the Quiz Profiler application.

This module defines the database schema used to store quiz definitions and
completed responses.  A quiz owns its questions, question groups and
profile ranges; each question owns its options and the conditions that
decide whether it is shown.  Completed attempts are stored as a
``QuizResponse`` with one ``QuestionAnswer`` row per answered question.

Identifiers are UUIDs; respondents' answers reference option ids directly
through the public JSON API.
"""

from __future__ import annotations

import uuid

from django.contrib.auth.models import User
from django.db import models
from django.utils import timezone


class Quiz(models.Model):
    """A questionnaire authored by an admin user."""

    class ScoringStrategy(models.TextChoices):
        WEIGHTED = 'weighted', 'Weighted sum'
        SCARF = 'scarf', 'SCARF leadership fit'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='quizzes',
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    scoring_strategy = models.CharField(
        max_length=20,
        choices=ScoringStrategy.choices,
        default=ScoringStrategy.WEIGHTED,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name_plural = 'quizzes'

    def __str__(self) -> str:  # pragma: no cover
        return self.title


class QuestionGroup(models.Model):
    """A weighted bucket of questions used for dimension sub-scores.

    ``weight`` multiplies every member question's contribution, both to the
    group's own score and to the quiz total.  A weight of zero keeps a
    group purely informational (for example a diagnostic block).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    quiz = models.ForeignKey(Quiz, on_delete=models.CASCADE, related_name='question_groups')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    weight = models.DecimalField(max_digits=8, decimal_places=2, default=1)
    order_index = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['order_index']

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.title} (x{self.weight})"


class Question(models.Model):
    """A single question; ``order_index`` defines the quiz order."""

    class QuestionType(models.TextChoices):
        MULTIPLE_CHOICE = 'multiple-choice', 'Multiple choice'
        CHECKBOX = 'checkbox', 'Checkbox'
        OPEN_ENDED = 'open-ended', 'Open ended'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    quiz = models.ForeignKey(Quiz, on_delete=models.CASCADE, related_name='questions')
    group = models.ForeignKey(
        QuestionGroup,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='questions',
    )
    text = models.TextField()
    question_type = models.CharField(
        max_length=20,
        choices=QuestionType.choices,
        default=QuestionType.MULTIPLE_CHOICE,
    )
    required = models.BooleanField(default=False)
    image_url = models.CharField(max_length=500, blank=True)
    order_index = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['order_index']

    def __str__(self) -> str:  # pragma: no cover
        return self.text[:80]


class Option(models.Model):
    """A selectable answer and the points it awards."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    question = models.ForeignKey(Question, on_delete=models.CASCADE, related_name='options')
    text = models.CharField(max_length=500)
    weight = models.DecimalField(max_digits=8, decimal_places=2, default=0)
    order_index = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['order_index']

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.text} ({self.weight})"


class Condition(models.Model):
    """Prerequisite that decides whether ``question`` is shown.

    ``depends_on`` is the earlier question whose answer is inspected.  The
    ``logical_operator`` links the condition to the previous one in the
    same question (by ``order_index``) and is ignored on the first.
    """

    class Operator(models.TextChoices):
        EQUALS = 'equals', 'Equals'
        NOT_EQUALS = 'not-equals', 'Not equals'
        GREATER_THAN = 'greater-than', 'Greater than'
        LESS_THAN = 'less-than', 'Less than'
        CONTAINS = 'contains', 'Contains'

    class LogicalOperator(models.TextChoices):
        AND = 'AND', 'AND'
        OR = 'OR', 'OR'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    question = models.ForeignKey(Question, on_delete=models.CASCADE, related_name='conditions')
    depends_on = models.ForeignKey(
        Question,
        on_delete=models.CASCADE,
        related_name='dependent_conditions',
    )
    operator = models.CharField(max_length=20, choices=Operator.choices, default=Operator.EQUALS)
    value = models.CharField(max_length=255, blank=True)
    logical_operator = models.CharField(
        max_length=3,
        choices=LogicalOperator.choices,
        blank=True,
        default='',
    )
    order_index = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['order_index']

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.logical_operator or 'IF'} {self.depends_on_id} {self.operator} {self.value}"


class ProfileRange(models.Model):
    """Inclusive score interval mapped to a profile label."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    quiz = models.ForeignKey(Quiz, on_delete=models.CASCADE, related_name='profile_ranges')
    min_score = models.IntegerField()
    max_score = models.IntegerField()
    profile = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    order_index = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['order_index']

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.profile} [{self.min_score}, {self.max_score}]"


class QuizResponse(models.Model):
    """A completed attempt and the result computed for it.

    Everything except ``is_premium`` is written once when the respondent
    finishes; the premium flag is flipped later by the unlock action.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    quiz = models.ForeignKey(Quiz, on_delete=models.CASCADE, related_name='responses')
    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='quiz_responses',
    )
    user_name = models.CharField(max_length=255, blank=True)
    user_email = models.EmailField(blank=True)
    user_phone = models.CharField(max_length=32, blank=True)
    score = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    profile = models.CharField(max_length=255, blank=True)
    group_scores = models.JSONField(default=list, blank=True)
    details = models.JSONField(default=dict, blank=True)
    is_premium = models.BooleanField(default=False)
    completed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-completed_at']
        indexes = [
            models.Index(fields=['quiz', 'completed_at'], name='quizresponse_quiz_done_idx'),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.user_name or 'Anonymous'} - {self.quiz_id} ({self.score})"


class QuestionAnswer(models.Model):
    """One answer within a completed attempt.

    ``question_key`` keeps the original question id so stored answers stay
    readable even after the question is removed from the quiz.
    """

    response = models.ForeignKey(QuizResponse, on_delete=models.CASCADE, related_name='answers')
    question = models.ForeignKey(
        Question,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='answers',
    )
    question_key = models.CharField(max_length=64)
    answer = models.JSONField(default=list, blank=True)
    order_index = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['order_index']

    def __str__(self) -> str:  # pragma: no cover
        return f"Answer<{self.response_id}:{self.question_key}>"
