"""Selection of the scoring policy attached to a quiz template."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Dict, Optional, Sequence

from .definitions import (
    STRATEGY_SCARF,
    STRATEGY_WEIGHTED,
    QuizDefinitionError,
    Quiz,
    QuizResult,
    Response,
    UserData,
)
from .scarf import ScarfScoringStrategy
from .scoring import ScoringStrategy, WeightedScoringStrategy

STRATEGY_FACTORIES: Dict[str, Callable[[], ScoringStrategy]] = {
    STRATEGY_WEIGHTED: WeightedScoringStrategy,
    STRATEGY_SCARF: ScarfScoringStrategy,
}


def get_scoring_strategy(name: Optional[str]) -> ScoringStrategy:
    """Return a strategy instance for ``name`` (defaults to weighted)."""

    factory = STRATEGY_FACTORIES.get(name or STRATEGY_WEIGHTED)
    if factory is None:
        raise QuizDefinitionError(f'Unknown scoring strategy "{name}".')
    return factory()


def score_quiz(
    quiz: Quiz,
    responses: Sequence[Response],
    user_data: Optional[UserData] = None,
    completed_at: Optional[datetime] = None,
) -> QuizResult:
    """Score ``responses`` with the strategy configured on ``quiz``."""

    strategy = get_scoring_strategy(quiz.scoring_strategy)
    return strategy.score(quiz, responses, user_data=user_data, completed_at=completed_at)
