"""Storage of computed quiz results and the premium unlock."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from django.contrib.auth.models import User
from django.db import DatabaseError, transaction

from ..models import QuestionAnswer, Quiz, QuizResponse
from .definitions import GroupScore, QuizResult, UserData, coerce_number
from .quiz_loader import responses_from_answers

logger = logging.getLogger(__name__)


class ResultPersistenceError(Exception):
    """Raised when a computed result could not be written to the database."""


def record_quiz_result(quiz: Quiz, result: QuizResult, user: Optional[User] = None) -> QuizResponse:
    """Persist ``result`` and its answers in a single transaction.

    The result is stored exactly as computed; nothing is rescored here, so
    a failed save can be retried with the same object.
    """

    known_questions = {str(pk): pk for pk in quiz.questions.values_list('pk', flat=True)}
    user_data = result.user_data or UserData(name='', email='')
    try:
        with transaction.atomic():
            record = QuizResponse.objects.create(
                quiz=quiz,
                user=user if user is not None and user.is_authenticated else None,
                user_name=user_data.name,
                user_email=user_data.email,
                user_phone=user_data.phone,
                score=Decimal(str(result.score)).quantize(Decimal('0.01')),
                profile=result.profile,
                group_scores=[group.to_dict() for group in result.group_scores],
                details=result.details,
                is_premium=result.is_premium,
                completed_at=result.completed_at,
            )
            QuestionAnswer.objects.bulk_create(
                [
                    QuestionAnswer(
                        response=record,
                        question_id=known_questions.get(response.question_id),
                        question_key=response.question_id,
                        answer=response.to_dict()['answer'],
                        order_index=index,
                    )
                    for index, response in enumerate(result.responses)
                ]
            )
    except DatabaseError as exc:
        logger.exception('Failed to store result for quiz %s', quiz.pk)
        raise ResultPersistenceError(str(exc)) from exc

    logger.info(
        'Stored result %s for quiz %s (score=%s, profile=%s)',
        record.pk,
        quiz.pk,
        result.score,
        result.profile,
    )
    return record


def result_from_record(record: QuizResponse) -> QuizResult:
    """Rebuild the engine result stored in ``record``."""

    user_data = None
    if record.user_name or record.user_email:
        user_data = UserData(name=record.user_name, email=record.user_email, phone=record.user_phone)
    return QuizResult(
        quiz_id=str(record.quiz_id),
        responses=responses_from_answers(record.answers.all()),
        score=coerce_number(record.score, label='score'),
        profile=record.profile,
        completed_at=record.completed_at,
        group_scores=[GroupScore.from_dict(item) for item in record.group_scores or []],
        is_premium=record.is_premium,
        user_data=user_data,
        details=dict(record.details or {}),
    )


def unlock_premium(record: QuizResponse) -> QuizResponse:
    """Flag ``record`` as premium; the only change allowed after creation."""

    if record.is_premium:
        return record
    record.is_premium = True
    record.save(update_fields=['is_premium'])
    logger.info('Unlocked premium report for result %s', record.pk)
    return record
