"""Conditional branching for quiz questions.

A question carries a flat list of conditions, each annotated with the
logical operator linking it to the previous entry.  The list is read as a
disjunction of conjunctions: every ``OR`` starts a new group, the
conditions inside a group must all hold, and the question is active when
any group holds.  ``[A, AND B, OR C, AND D]`` therefore means
``(A and B) or (C and D)``.

Conditions only ever look at answers already given.  A prerequisite that is
unanswered, unknown or declared after the question makes the condition
false instead of raising, so a respondent is never blocked by a
definition mistake.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from django.conf import settings

from .definitions import (
    LOGICAL_OR,
    OPERATOR_CONTAINS,
    OPERATOR_EQUALS,
    OPERATOR_GREATER_THAN,
    OPERATOR_LESS_THAN,
    OPERATOR_NOT_EQUALS,
    Condition,
    Question,
    Quiz,
    Response,
    find_response,
)


DECIMAL_PATTERN = re.compile(r'[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')


def _to_number(value: Any) -> Optional[float]:
    """Parse a plain decimal; ``1_000``, ``nan`` and ``inf`` are not numbers."""

    if isinstance(value, (list, tuple)) or value is None:
        return None
    text = str(value).strip()
    if not DECIMAL_PATTERN.fullmatch(text):
        return None
    number = float(text)
    if not math.isfinite(number):
        return None
    return number


def _answer_equals(answer: Any, value: str) -> bool:
    if isinstance(answer, list):
        return value in answer
    return answer == value


def evaluate_condition(condition: Condition, responses: Sequence[Response]) -> bool:
    """Evaluate a single condition against the running answer set."""

    response = find_response(responses, condition.question_id)
    if response is None:
        return False
    answer = response.answer
    operator = condition.operator

    if operator == OPERATOR_EQUALS:
        return _answer_equals(answer, condition.value)
    if operator == OPERATOR_NOT_EQUALS:
        return not _answer_equals(answer, condition.value)
    if operator in (OPERATOR_GREATER_THAN, OPERATOR_LESS_THAN):
        left = _to_number(answer)
        right = _to_number(condition.value)
        if left is None or right is None:
            return False
        return left > right if operator == OPERATOR_GREATER_THAN else left < right
    if operator == OPERATOR_CONTAINS:
        if isinstance(answer, list):
            return condition.value in answer
        return condition.value in str(answer)
    return False


def group_conditions(conditions: Optional[Sequence[Condition]]) -> List[List[Condition]]:
    """Split a flat condition list into AND-groups at every ``OR`` boundary."""

    groups: List[List[Condition]] = []
    current: List[Condition] = []
    for index, condition in enumerate(conditions or []):
        if index > 0 and condition.logical_operator == LOGICAL_OR:
            groups.append(current)
            current = []
        current.append(condition)
    if current:
        groups.append(current)
    return groups


def evaluate_conditions(conditions: Optional[Sequence[Condition]], responses: Sequence[Response]) -> bool:
    """Return True when the question owning ``conditions`` is active."""

    if not conditions:
        return True
    return any(
        all(evaluate_condition(condition, responses) for condition in group)
        for group in group_conditions(conditions)
    )


# ---------------------------------------------------------------------------
# Expression tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Leaf:
    condition: Condition

    def evaluate(self, responses: Sequence[Response]) -> bool:
        return evaluate_condition(self.condition, responses)


@dataclass(frozen=True)
class AllOf:
    children: List['Expression'] = field(default_factory=list)

    def evaluate(self, responses: Sequence[Response]) -> bool:
        return all(child.evaluate(responses) for child in self.children)


@dataclass(frozen=True)
class AnyOf:
    children: List['Expression'] = field(default_factory=list)

    def evaluate(self, responses: Sequence[Response]) -> bool:
        return any(child.evaluate(responses) for child in self.children)


Expression = Union[Leaf, AllOf, AnyOf]


def build_condition_expression(conditions: Optional[Sequence[Condition]]) -> Expression:
    """Translate a flat condition list into an explicit expression tree.

    An empty list becomes ``AllOf([])``, which is vacuously true, so the
    tree agrees with :func:`evaluate_conditions` on every input.
    """

    groups = group_conditions(conditions)
    if not groups:
        return AllOf([])
    return AnyOf([AllOf([Leaf(condition) for condition in group]) for group in groups])


# ---------------------------------------------------------------------------
# Quiz-level helpers used by the presentation layer
# ---------------------------------------------------------------------------


def active_questions(quiz: Quiz, responses: Sequence[Response]) -> List[Question]:
    """Return the questions currently eligible to be shown, in quiz order.

    Each question only sees answers to questions declared before it, which
    keeps forward references false even when the later question has
    already been answered.
    """

    active: List[Question] = []
    earlier_ids: set[str] = set()
    for question in quiz.questions:
        prior = [response for response in responses if response.question_id in earlier_ids]
        if evaluate_conditions(question.conditions, prior):
            active.append(question)
        earlier_ids.add(question.id)
    return active


@dataclass
class DisplayGroup:
    title: str
    questions: List[Question]
    group_id: Optional[str] = None
    description: str = ''
    weight: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'group_id': self.group_id,
            'title': self.title,
            'description': self.description,
            'weight': self.weight,
            'question_ids': [question.id for question in self.questions],
        }


def group_active_questions(quiz: Quiz, active: Sequence[Question]) -> List[DisplayGroup]:
    """Arrange active questions into display groups.

    Ungrouped questions come first under the general title, followed by the
    declared groups in their display order.  Questions pointing at an
    undeclared group are not displayed in any group.
    """

    groups: List[DisplayGroup] = []
    ungrouped = [question for question in active if not question.group_id]
    if ungrouped:
        title = getattr(settings, 'QUIZ_GENERAL_GROUP_TITLE', 'General questions')
        groups.append(DisplayGroup(title=title, questions=ungrouped))

    for group in quiz.ordered_groups():
        members = [question for question in active if question.group_id == group.id]
        if members:
            groups.append(
                DisplayGroup(
                    title=group.title,
                    questions=members,
                    group_id=group.id,
                    description=group.description,
                    weight=group.weight,
                )
            )
    return groups


def missing_required_questions(quiz: Quiz, responses: Sequence[Response]) -> List[Question]:
    """Return active required questions without a non-empty answer."""

    missing: List[Question] = []
    for question in active_questions(quiz, responses):
        if not question.required:
            continue
        response = find_response(responses, question.id)
        if response is None or response.is_empty:
            missing.append(question)
    return missing


def next_question(quiz: Quiz, responses: Sequence[Response]) -> Optional[Question]:
    """Return the first active question that has not been answered yet."""

    for question in active_questions(quiz, responses):
        response = find_response(responses, question.id)
        if response is None or response.is_empty:
            return question
    return None


def progress(quiz: Quiz, responses: Sequence[Response]) -> float:
    """Percentage of active questions that carry an answer."""

    active = active_questions(quiz, responses)
    if not active:
        return 100.0
    answered = 0
    for question in active:
        response = find_response(responses, question.id)
        if response is not None and not response.is_empty:
            answered += 1
    return round(answered / len(active) * 100.0, 1)
