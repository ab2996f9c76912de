"""Weighted scoring of completed quiz responses.

The generic scoring policy sums option weights, scales grouped questions
by their group weight and reports a sub-score for every group that could
have earned points.  Open-ended questions never score.  Missing questions
or options contribute nothing rather than failing, so a respondent's
result is always produced even if the quiz changed underneath them.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from django.conf import settings
from django.utils import timezone

from .definitions import (
    QUESTION_CHECKBOX,
    QUESTION_MULTIPLE_CHOICE,
    STRATEGY_WEIGHTED,
    GroupScore,
    Number,
    ProfileRange,
    Question,
    Quiz,
    QuizResult,
    Response,
    UserData,
    clean_number,
    first_responses,
)

logger = logging.getLogger(__name__)

DISTRIBUTION_LABELS = ('Strong', 'Moderate', 'Developing', 'Needs work')


def unknown_profile_label() -> str:
    return getattr(settings, 'QUIZ_UNKNOWN_PROFILE_LABEL', 'Unknown profile')


def _selected_ids(answer: Any) -> List[str]:
    if isinstance(answer, list):
        return answer
    if answer in (None, ''):
        return []
    return [answer]


def raw_contribution(question: Question, answer: Any) -> Number:
    """Points earned by ``answer`` before any group weighting."""

    if question.type == QUESTION_MULTIPLE_CHOICE:
        if isinstance(answer, list):
            return 0
        option = question.find_option(answer)
        return option.weight if option else 0
    if question.type == QUESTION_CHECKBOX:
        selected = set(_selected_ids(answer))
        return sum(option.weight for option in question.options if option.id in selected)
    return 0


def max_contribution(question: Question) -> Number:
    """Highest raw score the question can award.

    Checkbox maxima only count positive weights: a negative option can
    lower the actual score but never raises the ceiling.
    """

    if question.type == QUESTION_MULTIPLE_CHOICE:
        return max((option.weight for option in question.options), default=0)
    if question.type == QUESTION_CHECKBOX:
        return sum(option.weight for option in question.options if option.weight > 0)
    return 0


def resolve_profile(score: Number, profile_ranges: Sequence[ProfileRange]) -> Optional[ProfileRange]:
    """Return the first declared range containing ``score``.

    Overlapping ranges are resolved by declaration order only.
    """

    for profile_range in profile_ranges:
        if profile_range.contains(score):
            return profile_range
    return None


def profile_label(score: Number, profile_ranges: Sequence[ProfileRange]) -> str:
    match = resolve_profile(score, profile_ranges)
    return match.profile if match else unknown_profile_label()


def _group_weight(quiz_groups: Dict[str, Any], question: Question) -> Tuple[Optional[str], Number]:
    group = quiz_groups.get(question.group_id) if question.group_id else None
    if group is None:
        return None, 1
    return group.id, group.weight


def max_possible_score(quiz: Quiz) -> Number:
    """Ceiling of the total score if every question were answered optimally."""

    groups = quiz.group_map()
    total: Number = 0
    for question in quiz.questions:
        if question.is_open_ended:
            continue
        _, weight = _group_weight(groups, question)
        total += max_contribution(question) * weight
    return clean_number(total)


def response_distribution(quiz: Quiz, responses: Sequence[Response]) -> Dict[str, int]:
    """Bucket each scored response by how close it came to the maximum.

    Only the first response to a question is counted.
    """

    questions = quiz.question_map()
    distribution: Dict[str, int] = OrderedDict((label, 0) for label in DISTRIBUTION_LABELS)
    for response in first_responses(responses):
        question = questions.get(response.question_id)
        if question is None or question.is_open_ended:
            continue
        ratio = raw_contribution(question, response.answer) / (max_contribution(question) or 1)
        if ratio > 0.75:
            distribution['Strong'] += 1
        elif ratio > 0.5:
            distribution['Moderate'] += 1
        elif ratio > 0.25:
            distribution['Developing'] += 1
        else:
            distribution['Needs work'] += 1
    return distribution


RESULT_ROW_HEADER = ['Question', 'Response', 'Score']


def build_result_rows(quiz: Quiz, result: QuizResult) -> List[List[Any]]:
    """Flatten a result into header, one row per response, and trailer rows."""

    questions = quiz.question_map()
    rows: List[List[Any]] = [list(RESULT_ROW_HEADER)]
    for response in first_responses(result.responses):
        question = questions.get(response.question_id)
        answer = response.answer
        if question is None:
            text = ', '.join(answer) if isinstance(answer, list) else answer
            rows.append(['', text, 0])
            continue
        if question.type == QUESTION_MULTIPLE_CHOICE:
            option = None if isinstance(answer, list) else question.find_option(answer)
            text = option.text if option else ''
        elif question.type == QUESTION_CHECKBOX:
            selected = set(_selected_ids(answer))
            text = ', '.join(option.text for option in question.options if option.id in selected)
        else:
            text = ', '.join(answer) if isinstance(answer, list) else answer
        rows.append([question.text, text, clean_number(raw_contribution(question, answer))])
    rows.append(['', 'Total Score:', result.score])
    rows.append(['', 'Profile:', result.profile])
    return rows


class ScoringStrategy(ABC):
    """Reduces a response set into a :class:`QuizResult`."""

    name: str = ''

    @abstractmethod
    def score(
        self,
        quiz: Quiz,
        responses: Sequence[Response],
        user_data: Optional[UserData] = None,
        completed_at: Optional[datetime] = None,
    ) -> QuizResult:
        raise NotImplementedError


@dataclass
class _GroupTally:
    score: Number = 0
    max_score: Number = 0


class WeightedScoringStrategy(ScoringStrategy):
    """Sum of option weights, scaled by group weight where a group applies."""

    name = STRATEGY_WEIGHTED

    def score(
        self,
        quiz: Quiz,
        responses: Sequence[Response],
        user_data: Optional[UserData] = None,
        completed_at: Optional[datetime] = None,
    ) -> QuizResult:
        responses = first_responses(responses)
        questions = quiz.question_map()
        groups = quiz.group_map()
        tallies: Dict[str, _GroupTally] = {}
        total: Number = 0

        for response in responses:
            question = questions.get(response.question_id)
            if question is None:
                logger.debug('Skipping answer for unknown question %s', response.question_id)
                continue
            if question.is_open_ended:
                continue
            group_id, weight = _group_weight(groups, question)
            earned = raw_contribution(question, response.answer) * weight
            total += earned
            if group_id is not None:
                tally = tallies.setdefault(group_id, _GroupTally())
                tally.score += earned
                tally.max_score += max_contribution(question) * weight

        group_scores: List[GroupScore] = []
        for group in quiz.ordered_groups():
            tally = tallies.get(group.id)
            if tally is None or tally.max_score <= 0:
                continue
            group_scores.append(
                GroupScore(
                    group_id=group.id,
                    title=group.title,
                    score=clean_number(tally.score),
                    max_score=clean_number(tally.max_score),
                    percentage=100.0 * tally.score / tally.max_score,
                )
            )

        total = clean_number(total)
        profile = profile_label(total, quiz.profile_ranges)
        logger.debug('Scored quiz %s: total=%s profile=%s', quiz.id, total, profile)
        return QuizResult(
            quiz_id=quiz.id,
            responses=list(responses),
            score=total,
            profile=profile,
            completed_at=completed_at or timezone.now(),
            group_scores=group_scores,
            is_premium=False,
            user_data=user_data,
            details={'distribution': response_distribution(quiz, responses)},
        )
