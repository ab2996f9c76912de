"""SCARF leadership-fit scoring.

The SCARF template asks the same 25 statements three times: about the
C-level, about managers and about the respondent's own preferences.  Each
block is cut into five consecutive questions per dimension (Status,
Certainty, Autonomy, Relatedness, Fairness).  The organisation vector is
the group-weighted mean of the first two blocks, the user vector is the
third block, and the fit score measures how far apart the two are.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from django.utils import timezone

from .definitions import (
    STRATEGY_SCARF,
    GroupScore,
    Question,
    QuestionGroup,
    Quiz,
    QuizResult,
    Response,
    UserData,
    clean_number,
    find_response,
    first_responses,
)
from .scoring import ScoringStrategy, profile_label

logger = logging.getLogger(__name__)

# Also the tie-break priority when ranking the respondent's dimensions.
DIMENSIONS: Tuple[str, ...] = ('Status', 'Certainty', 'Autonomy', 'Relatedness', 'Fairness')
QUESTIONS_PER_DIMENSION = 5
NEUTRAL_ANSWER = 3.0
SCALE_MAX = 5
MAX_TOTAL_DIFFERENCE = len(DIMENSIONS) * SCALE_MAX

FIT_RANGES: Tuple[Tuple[float, str], ...] = (
    (85, 'Fit Excelente'),
    (70, 'Fit Elevado'),
    (55, 'Fit Moderado'),
    (40, 'Fit em Desenvolvimento'),
)
FIT_RANGE_FLOOR = 'Fit Desafiador'

LEADERSHIP_PROFILES: Dict[str, str] = {
    'Certainty + Status': 'Executivo/Tradicional',
    'Autonomy + Relatedness': 'Colaborativo/Coach',
    'Autonomy + Certainty': 'Visionário/Estratégico',
    'Autonomy + Status': 'Transformacional/Disruptivo',
    'Fairness + Relatedness': 'Liderança Servidora',
    'Fairness + Status': 'Líder Justo/Ético',
    'Certainty + Relatedness': 'Facilitador/Estável',
    'Autonomy + Fairness': 'Inovador/Íntegro',
    'Certainty + Fairness': 'Sistemático/Confiável',
    'Relatedness + Status': 'Influenciador/Carismático',
}


def answer_value(question: Question, response: Response) -> float:
    """Numeric value of a Likert answer.

    The selected option's weight wins; a bare number is accepted for
    answers recorded by value, and anything else counts as neutral.
    """

    answer = response.answer
    if isinstance(answer, list):
        answer = answer[0] if answer else ''
    option = question.find_option(answer)
    if option is not None:
        return float(option.weight)
    try:
        value = float(str(answer).strip())
    except ValueError:
        return NEUTRAL_ANSWER
    return value if math.isfinite(value) else NEUTRAL_ANSWER


def dimension_scores(questions: Sequence[Question], responses: Sequence[Response]) -> Dict[str, float]:
    """Mean answer per dimension for one block of questions."""

    scores: Dict[str, float] = {}
    for index, dimension in enumerate(DIMENSIONS):
        chunk = questions[index * QUESTIONS_PER_DIMENSION:(index + 1) * QUESTIONS_PER_DIMENSION]
        values = []
        for question in chunk:
            response = find_response(responses, question.id)
            if response is not None:
                values.append(answer_value(question, response))
        scores[dimension] = sum(values) / len(values) if values else 0.0
    return scores


def blend_dimensions(blocks: Sequence[Tuple[Dict[str, float], float]]) -> Dict[str, float]:
    """Weighted mean of several dimension vectors."""

    total_weight = sum(weight for _, weight in blocks)
    if total_weight <= 0:
        return {dimension: 0.0 for dimension in DIMENSIONS}
    return {
        dimension: sum(scores[dimension] * weight for scores, weight in blocks) / total_weight
        for dimension in DIMENSIONS
    }


def fit_score(organization: Dict[str, float], user: Dict[str, float]) -> float:
    difference = sum(abs(organization[dimension] - user[dimension]) for dimension in DIMENSIONS)
    score = 100.0 - (difference / MAX_TOTAL_DIFFERENCE) * 100.0
    return max(0.0, min(100.0, score))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (82.5 -> 83)."""

    return int(math.floor(value + 0.5))


def fit_range(score: float) -> str:
    for threshold, label in FIT_RANGES:
        if score >= threshold:
            return label
    return FIT_RANGE_FLOOR


def leadership_profile(user: Dict[str, float]) -> str:
    # sorted() is stable and DIMENSIONS is in priority order, so ties keep priority
    ranked = sorted(DIMENSIONS, key=lambda dimension: user.get(dimension, 0.0), reverse=True)
    top1, top2 = ranked[0], ranked[1]
    combination = ' + '.join(sorted([top1, top2]))
    return LEADERSHIP_PROFILES.get(combination, f'{top1}/{top2} Dominante')


class ScarfScoringStrategy(ScoringStrategy):
    """Organisation-versus-respondent fit over the five SCARF dimensions.

    Blocks are picked by the ``order`` of their question group so the
    template's diagnostic group (order 0) is ignored.
    """

    name = STRATEGY_SCARF

    def __init__(self, organization_orders: Sequence[int] = (1, 2), user_order: int = 3) -> None:
        self.organization_orders = tuple(organization_orders)
        self.user_order = user_order

    def _block(self, quiz: Quiz, order: int) -> Tuple[Optional[QuestionGroup], List[Question]]:
        for group in quiz.ordered_groups():
            if group.order == order:
                return group, [question for question in quiz.questions if question.group_id == group.id]
        return None, []

    def score(
        self,
        quiz: Quiz,
        responses: Sequence[Response],
        user_data: Optional[UserData] = None,
        completed_at: Optional[datetime] = None,
    ) -> QuizResult:
        responses = first_responses(responses)
        organization_blocks = []
        for order in self.organization_orders:
            group, questions = self._block(quiz, order)
            if group is None:
                continue
            organization_blocks.append((dimension_scores(questions, responses), float(group.weight)))
        organization = blend_dimensions(organization_blocks)

        _, user_questions = self._block(quiz, self.user_order)
        user = dimension_scores(user_questions, responses)

        fit = fit_score(organization, user)
        rounded = round_half_up(fit)
        group_scores = [
            GroupScore(
                group_id=dimension.lower(),
                title=dimension,
                score=clean_number(round(user[dimension], 1)),
                max_score=SCALE_MAX,
                percentage=user[dimension] / SCALE_MAX * 100.0,
            )
            for dimension in DIMENSIONS
        ]
        details = {
            'fit_score': fit,
            'fit_range': fit_range(fit),
            'leadership_profile': leadership_profile(user),
            'user_dimensions': user,
            'organization_dimensions': organization,
        }
        logger.debug('SCARF fit for quiz %s: %.2f (%s)', quiz.id, fit, details['fit_range'])
        return QuizResult(
            quiz_id=quiz.id,
            responses=list(responses),
            score=rounded,
            profile=profile_label(rounded, quiz.profile_ranges),
            completed_at=completed_at or timezone.now(),
            group_scores=group_scores,
            is_premium=False,
            user_data=user_data,
            details=details,
        )
