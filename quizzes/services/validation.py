"""Authoring checks for quiz definitions.

None of these findings change how a quiz is evaluated: conditions that
point forward still evaluate false and overlapping profile ranges still
resolve by declaration order.  The checks exist so authors see those
situations in the admin before respondents do.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .definitions import QUESTION_CHECKBOX, QUESTION_MULTIPLE_CHOICE, Quiz

ISSUE_FORWARD_REFERENCE = 'condition-forward-reference'
ISSUE_UNKNOWN_QUESTION = 'condition-unknown-question'
ISSUE_RANGE_OVERLAP = 'profile-range-overlap'
ISSUE_RANGE_GAP = 'profile-range-gap'
ISSUE_OPTIONS_MISSING = 'options-missing'
ISSUE_UNKNOWN_GROUP = 'unknown-group'


@dataclass(frozen=True)
class QuizIssue:
    code: str
    message: str
    question_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'code': self.code, 'message': self.message, 'question_id': self.question_id}


def _check_questions(quiz: Quiz) -> List[QuizIssue]:
    issues: List[QuizIssue] = []
    positions = {question.id: index for index, question in enumerate(quiz.questions)}
    group_ids = {group.id for group in quiz.question_groups}

    for index, question in enumerate(quiz.questions):
        label = question.text or question.id
        if question.type in (QUESTION_MULTIPLE_CHOICE, QUESTION_CHECKBOX) and not question.options:
            issues.append(QuizIssue(
                ISSUE_OPTIONS_MISSING,
                f'Question "{label}" has no options to choose from.',
                question.id,
            ))
        if question.group_id and question.group_id not in group_ids:
            issues.append(QuizIssue(
                ISSUE_UNKNOWN_GROUP,
                f'Question "{label}" belongs to an unknown group.',
                question.id,
            ))
        for condition in question.conditions:
            target = positions.get(condition.question_id)
            if target is None:
                issues.append(QuizIssue(
                    ISSUE_UNKNOWN_QUESTION,
                    f'Question "{label}" has a condition on an unknown question.',
                    question.id,
                ))
            elif target >= index:
                issues.append(QuizIssue(
                    ISSUE_FORWARD_REFERENCE,
                    f'Question "{label}" depends on a question that is not asked before it; '
                    'the condition will always be false.',
                    question.id,
                ))
    return issues


def _check_profile_ranges(quiz: Quiz) -> List[QuizIssue]:
    issues: List[QuizIssue] = []
    ranges = quiz.profile_ranges
    for i, first in enumerate(ranges):
        for second in ranges[i + 1:]:
            if first.min <= second.max and second.min <= first.max:
                issues.append(QuizIssue(
                    ISSUE_RANGE_OVERLAP,
                    f'Profile ranges "{first.profile}" and "{second.profile}" overlap; '
                    f'"{first.profile}" wins because it is declared first.',
                ))

    ordered = sorted(ranges, key=lambda item: (item.min, item.max))
    if not ordered:
        return issues
    covered = ordered[0].max
    for upper in ordered[1:]:
        # Integer bounds are inclusive, so [0, 10] and [11, 20] leave no gap.
        if upper.min > covered + 1:
            issues.append(QuizIssue(
                ISSUE_RANGE_GAP,
                f'Scores between {covered} and {upper.min} match no profile range.',
            ))
        covered = max(covered, upper.max)
    return issues


def validate_quiz(quiz: Quiz) -> List[QuizIssue]:
    """Return every authoring issue found in ``quiz``."""

    return _check_questions(quiz) + _check_profile_ranges(quiz)
