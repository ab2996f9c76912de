"""Plain data structures consumed by the branching and scoring engine.

The engine never touches the ORM.  Quiz definitions are converted into the
dataclasses below (see :mod:`quizzes.services.quiz_loader`) and answers
arrive as :class:`Response` objects, either parsed from a JSON payload or
rebuilt from stored ``QuestionAnswer`` rows.  Every type can be converted to
and from the snake_case dictionaries spoken by the JSON API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from django.utils.dateparse import parse_datetime

QUESTION_MULTIPLE_CHOICE = 'multiple-choice'
QUESTION_CHECKBOX = 'checkbox'
QUESTION_OPEN_ENDED = 'open-ended'
QUESTION_TYPES = (QUESTION_MULTIPLE_CHOICE, QUESTION_CHECKBOX, QUESTION_OPEN_ENDED)

OPERATOR_EQUALS = 'equals'
OPERATOR_NOT_EQUALS = 'not-equals'
OPERATOR_GREATER_THAN = 'greater-than'
OPERATOR_LESS_THAN = 'less-than'
OPERATOR_CONTAINS = 'contains'
CONDITION_OPERATORS = (
    OPERATOR_EQUALS,
    OPERATOR_NOT_EQUALS,
    OPERATOR_GREATER_THAN,
    OPERATOR_LESS_THAN,
    OPERATOR_CONTAINS,
)

LOGICAL_AND = 'AND'
LOGICAL_OR = 'OR'
LOGICAL_OPERATORS = (LOGICAL_AND, LOGICAL_OR)

STRATEGY_WEIGHTED = 'weighted'
STRATEGY_SCARF = 'scarf'

Number = Union[int, float]
Answer = Union[str, List[str]]


class QuizDefinitionError(Exception):
    """Raised when a quiz definition or answer payload cannot be parsed."""


def _require(data: Dict[str, Any], key: str, kind: str) -> Any:
    if not isinstance(data, dict):
        raise QuizDefinitionError(f'{kind} must be an object.')
    value = data.get(key)
    if value in (None, ''):
        raise QuizDefinitionError(f'{kind} is missing "{key}".')
    return value


def coerce_number(value: Any, *, label: str = 'weight') -> Number:
    """Return ``value`` as an int when integral, otherwise as a float."""

    if isinstance(value, bool):
        raise QuizDefinitionError(f'Invalid {label}: {value!r}.')
    if value in (None, ''):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise QuizDefinitionError(f'Invalid {label}: {value!r}.') from exc
    return clean_number(number)


def clean_number(value: Number) -> Number:
    """Collapse integral floats (``15.0``) back to ints for stable output."""

    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return value
    parsed = parse_datetime(str(value))
    if parsed is None:
        raise QuizDefinitionError(f'Invalid timestamp: {value!r}.')
    return parsed


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class Option:
    id: str
    text: str
    weight: Number = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Option':
        return cls(
            id=str(_require(data, 'id', 'Option')),
            text=str(data.get('text') or ''),
            weight=coerce_number(data.get('weight')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'text': self.text, 'weight': self.weight}


@dataclass(frozen=True)
class Condition:
    """A prerequisite on an earlier question's answer.

    ``logical_operator`` links this condition to the one immediately before
    it in the owning question's list; it is ignored on the first entry.
    """

    question_id: str
    operator: str
    value: str = ''
    logical_operator: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Condition':
        operator = str(_require(data, 'operator', 'Condition'))
        if operator not in CONDITION_OPERATORS:
            raise QuizDefinitionError(f'Unknown condition operator "{operator}".')
        logical = data.get('logical_operator')
        if logical in (None, ''):
            logical = None
        else:
            logical = str(logical).upper()
            if logical not in LOGICAL_OPERATORS:
                raise QuizDefinitionError(f'Unknown logical operator "{logical}".')
        value = data.get('value')
        return cls(
            question_id=str(_require(data, 'question_id', 'Condition')),
            operator=operator,
            value='' if value is None else str(value),
            logical_operator=logical,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'question_id': self.question_id,
            'operator': self.operator,
            'value': self.value,
            'logical_operator': self.logical_operator,
        }


@dataclass(frozen=True)
class Question:
    id: str
    text: str
    type: str
    options: List[Option] = field(default_factory=list)
    required: bool = False
    conditions: List[Condition] = field(default_factory=list)
    image_url: Optional[str] = None
    group_id: Optional[str] = None

    @property
    def is_open_ended(self) -> bool:
        return self.type == QUESTION_OPEN_ENDED

    def find_option(self, option_id: Any) -> Optional[Option]:
        for option in self.options:
            if option.id == option_id:
                return option
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Question':
        question_type = str(_require(data, 'type', 'Question'))
        if question_type not in QUESTION_TYPES:
            raise QuizDefinitionError(f'Unknown question type "{question_type}".')
        options = [] if question_type == QUESTION_OPEN_ENDED else [
            Option.from_dict(item) for item in data.get('options') or []
        ]
        return cls(
            id=str(_require(data, 'id', 'Question')),
            text=str(data.get('text') or ''),
            type=question_type,
            options=options,
            required=bool(data.get('required', False)),
            conditions=[Condition.from_dict(item) for item in data.get('conditions') or []],
            image_url=data.get('image_url') or None,
            group_id=str(data['group_id']) if data.get('group_id') else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'text': self.text,
            'type': self.type,
            'options': [option.to_dict() for option in self.options],
            'required': self.required,
            'conditions': [condition.to_dict() for condition in self.conditions],
            'image_url': self.image_url,
            'group_id': self.group_id,
        }


@dataclass(frozen=True)
class QuestionGroup:
    id: str
    title: str
    description: str = ''
    weight: Number = 1
    order: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'QuestionGroup':
        weight = data.get('weight')
        return cls(
            id=str(_require(data, 'id', 'Question group')),
            title=str(data.get('title') or ''),
            description=str(data.get('description') or ''),
            weight=1 if weight is None else coerce_number(weight),
            order=int(coerce_number(data.get('order'), label='order')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'weight': self.weight,
            'order': self.order,
        }


@dataclass(frozen=True)
class ProfileRange:
    min: Number
    max: Number
    profile: str
    description: str = ''

    def contains(self, score: Number) -> bool:
        return self.min <= score <= self.max

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProfileRange':
        low = coerce_number(data.get('min'), label='range minimum')
        high = coerce_number(data.get('max'), label='range maximum')
        if low > high:
            raise QuizDefinitionError(f'Profile range minimum {low} exceeds maximum {high}.')
        return cls(
            min=low,
            max=high,
            profile=str(_require(data, 'profile', 'Profile range')),
            description=str(data.get('description') or ''),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'min': self.min,
            'max': self.max,
            'profile': self.profile,
            'description': self.description,
        }


@dataclass(frozen=True)
class Quiz:
    id: str
    title: str
    description: str = ''
    questions: List[Question] = field(default_factory=list)
    question_groups: List[QuestionGroup] = field(default_factory=list)
    profile_ranges: List[ProfileRange] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    scoring_strategy: str = STRATEGY_WEIGHTED

    def question_map(self) -> Dict[str, Question]:
        return {question.id: question for question in self.questions}

    def group_map(self) -> Dict[str, QuestionGroup]:
        return {group.id: group for group in self.question_groups}

    def ordered_groups(self) -> List[QuestionGroup]:
        # sorted() is stable, so equal orders keep declaration order
        return sorted(self.question_groups, key=lambda group: group.order)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Quiz':
        return cls(
            id=str(_require(data, 'id', 'Quiz')),
            title=str(data.get('title') or ''),
            description=str(data.get('description') or ''),
            questions=[Question.from_dict(item) for item in data.get('questions') or []],
            question_groups=[QuestionGroup.from_dict(item) for item in data.get('question_groups') or []],
            profile_ranges=[ProfileRange.from_dict(item) for item in data.get('profile_ranges') or []],
            created_at=_parse_timestamp(data.get('created_at')),
            updated_at=_parse_timestamp(data.get('updated_at')),
            scoring_strategy=str(data.get('scoring_strategy') or STRATEGY_WEIGHTED),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'questions': [question.to_dict() for question in self.questions],
            'question_groups': [group.to_dict() for group in self.question_groups],
            'profile_ranges': [profile_range.to_dict() for profile_range in self.profile_ranges],
            'created_at': _format_timestamp(self.created_at),
            'updated_at': _format_timestamp(self.updated_at),
            'scoring_strategy': self.scoring_strategy,
        }


@dataclass(frozen=True)
class Response:
    """A respondent's answer to one question.

    ``answer`` is a single string (option id or free text) or, for
    checkbox questions, a list of option ids.
    """

    question_id: str
    answer: Answer

    @property
    def is_empty(self) -> bool:
        if isinstance(self.answer, list):
            return len(self.answer) == 0
        return not self.answer

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Response':
        question_id = str(_require(data, 'question_id', 'Response'))
        raw = data.get('answer')
        if isinstance(raw, (list, tuple)):
            if not all(isinstance(item, str) for item in raw):
                raise QuizDefinitionError(f'Answer for question {question_id} must be a list of strings.')
            answer: Answer = list(raw)
        elif raw is None:
            answer = ''
        elif isinstance(raw, (str, int, float)) and not isinstance(raw, bool):
            answer = str(raw)
        else:
            raise QuizDefinitionError(f'Unsupported answer for question {question_id}.')
        return cls(question_id=question_id, answer=answer)

    def to_dict(self) -> Dict[str, Any]:
        answer = list(self.answer) if isinstance(self.answer, list) else self.answer
        return {'question_id': self.question_id, 'answer': answer}


def parse_responses(payload: Any) -> List[Response]:
    """Parse a JSON list of ``{question_id, answer}`` objects."""

    if payload in (None, ''):
        return []
    if not isinstance(payload, list):
        raise QuizDefinitionError('Responses must be a list.')
    return [Response.from_dict(item) for item in payload]


@dataclass(frozen=True)
class UserData:
    name: str
    email: str
    phone: str = ''

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['UserData']:
        if not data:
            return None
        return cls(
            name=str(data.get('name') or ''),
            email=str(data.get('email') or ''),
            phone=str(data.get('phone') or ''),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'email': self.email, 'phone': self.phone}


@dataclass(frozen=True)
class GroupScore:
    group_id: str
    title: str
    score: Number
    max_score: Number
    percentage: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GroupScore':
        return cls(
            group_id=str(_require(data, 'group_id', 'Group score')),
            title=str(data.get('title') or ''),
            score=coerce_number(data.get('score'), label='score'),
            max_score=coerce_number(data.get('max_score'), label='max score'),
            percentage=float(data.get('percentage') or 0.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'group_id': self.group_id,
            'title': self.title,
            'score': self.score,
            'max_score': self.max_score,
            'percentage': self.percentage,
        }


@dataclass
class QuizResult:
    quiz_id: str
    responses: List[Response]
    score: Number
    profile: str
    completed_at: datetime
    group_scores: List[GroupScore] = field(default_factory=list)
    is_premium: bool = False
    user_data: Optional[UserData] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'QuizResult':
        completed_at = _parse_timestamp(_require(data, 'completed_at', 'Quiz result'))
        return cls(
            quiz_id=str(_require(data, 'quiz_id', 'Quiz result')),
            responses=parse_responses(data.get('responses')),
            score=coerce_number(data.get('score'), label='score'),
            profile=str(data.get('profile') or ''),
            completed_at=completed_at,  # type: ignore[arg-type]
            group_scores=[GroupScore.from_dict(item) for item in data.get('group_scores') or []],
            is_premium=bool(data.get('is_premium', False)),
            user_data=UserData.from_dict(data.get('user_data')),
            details=dict(data.get('details') or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'quiz_id': self.quiz_id,
            'responses': [response.to_dict() for response in self.responses],
            'score': self.score,
            'group_scores': [group.to_dict() for group in self.group_scores],
            'profile': self.profile,
            'completed_at': _format_timestamp(self.completed_at),
            'is_premium': self.is_premium,
            'user_data': self.user_data.to_dict() if self.user_data else None,
            'details': self.details,
        }


def find_response(responses: Iterable[Response], question_id: str) -> Optional[Response]:
    """Return the first response recorded for ``question_id``."""

    for response in responses:
        if response.question_id == question_id:
            return response
    return None


def first_responses(responses: Iterable[Response]) -> List[Response]:
    """Drop repeated answers so each question keeps only its first response."""

    seen = set()
    unique: List[Response] = []
    for response in responses:
        if response.question_id in seen:
            continue
        seen.add(response.question_id)
        unique.append(response)
    return unique
