"""Conversion of stored quizzes into engine definitions."""

from __future__ import annotations

from typing import Iterable, List

from django.db.models import Prefetch

from ..models import Condition as ConditionModel
from ..models import Question as QuestionModel
from ..models import QuestionAnswer
from ..models import Quiz as QuizModel
from .definitions import (
    Condition,
    Option,
    ProfileRange,
    Question,
    QuestionGroup,
    Quiz,
    Response,
    coerce_number,
)


def quiz_queryset():
    """Queryset with every relation the engine needs prefetched."""

    return QuizModel.objects.prefetch_related(
        'question_groups',
        'profile_ranges',
        Prefetch(
            'questions',
            queryset=QuestionModel.objects.prefetch_related(
                'options',
                Prefetch('conditions', queryset=ConditionModel.objects.order_by('order_index')),
            ).order_by('order_index'),
        ),
    )


def _build_question(question: QuestionModel) -> Question:
    is_open = question.question_type == QuestionModel.QuestionType.OPEN_ENDED
    options = [] if is_open else [
        Option(id=str(option.pk), text=option.text, weight=coerce_number(option.weight))
        for option in question.options.all()
    ]
    conditions = [
        Condition(
            question_id=str(condition.depends_on_id),
            operator=condition.operator,
            value=condition.value,
            logical_operator=condition.logical_operator or None,
        )
        for condition in question.conditions.all()
    ]
    return Question(
        id=str(question.pk),
        text=question.text,
        type=question.question_type,
        options=options,
        required=question.required,
        conditions=conditions,
        image_url=question.image_url or None,
        group_id=str(question.group_id) if question.group_id else None,
    )


def load_quiz_definition(quiz: QuizModel) -> Quiz:
    """Build the engine's immutable view of ``quiz``.

    Pass an instance obtained from :func:`quiz_queryset` to avoid one query
    per question.
    """

    groups = [
        QuestionGroup(
            id=str(group.pk),
            title=group.title,
            description=group.description,
            weight=coerce_number(group.weight),
            order=group.order_index,
        )
        for group in quiz.question_groups.all()
    ]
    ranges = [
        ProfileRange(
            min=profile_range.min_score,
            max=profile_range.max_score,
            profile=profile_range.profile,
            description=profile_range.description,
        )
        for profile_range in quiz.profile_ranges.all()
    ]
    return Quiz(
        id=str(quiz.pk),
        title=quiz.title,
        description=quiz.description,
        questions=[_build_question(question) for question in quiz.questions.all()],
        question_groups=groups,
        profile_ranges=ranges,
        created_at=quiz.created_at,
        updated_at=quiz.updated_at,
        scoring_strategy=quiz.scoring_strategy,
    )


def responses_from_answers(answers: Iterable[QuestionAnswer]) -> List[Response]:
    """Rebuild the response list stored for a completed attempt."""

    responses: List[Response] = []
    for row in answers:
        answer = row.answer
        if isinstance(answer, list):
            value = [str(item) for item in answer]
        else:
            value = '' if answer is None else str(answer)
        responses.append(Response(question_id=row.question_key, answer=value))
    return responses
