"""JSON views for taking quizzes and reading results.

The respondent-facing endpoints are public: they load a quiz, report
which questions are active for the answers given so far and score a
finished attempt.  Scoring and branching live in :mod:`quizzes.services`;
the views only parse payloads, translate errors into HTTP statuses and
keep a computed result in the session when it could not be saved.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from django.contrib.auth.decorators import login_required
from django.db.models import Avg, Count
from django.http import HttpRequest, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_GET, require_POST

from .forms import RespondentForm
from .models import Quiz, QuizResponse
from .services.conditions import (
    active_questions,
    group_active_questions,
    missing_required_questions,
    next_question,
    progress,
)
from .services.definitions import QuizDefinitionError, QuizResult, UserData, parse_responses
from .services.quiz_loader import load_quiz_definition, quiz_queryset
from .services.scoring import build_result_rows, max_possible_score
from .services.strategies import score_quiz
from .services.submissions import (
    ResultPersistenceError,
    record_quiz_result,
    result_from_record,
    unlock_premium,
)
from .services.validation import validate_quiz

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ('en', 'pt')
PENDING_RESULTS_KEY = 'pending_results'
SESSION_RESULTS_KEY = 'result_ids'
RECENT_RESPONSES_LIMIT = 20


def _localise_text(lang: str, english: str, portuguese: str) -> str:
    """Return the appropriate string for the provided language code."""

    return portuguese if lang == 'pt' else english


def _get_lang(request: HttpRequest) -> str:
    """Return the preferred language code stored on the session."""

    return request.session.get('lang', 'en')


def _load_payload(request: HttpRequest) -> Dict[str, Any]:
    try:
        payload = json.loads(request.body.decode('utf-8')) if request.body else {}
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise QuizDefinitionError('Request body is not valid JSON.') from exc
    if not isinstance(payload, dict):
        raise QuizDefinitionError('Request body must be a JSON object.')
    return payload


def _invalid_payload(lang: str, exc: QuizDefinitionError) -> JsonResponse:
    return JsonResponse(
        {
            'error': _localise_text(lang, 'Invalid payload.', 'Dados enviados inválidos.'),
            'detail': str(exc),
        },
        status=400,
    )


def _pending_results(request: HttpRequest) -> Dict[str, Any]:
    return request.session.get(PENDING_RESULTS_KEY) or {}


def _store_pending(request: HttpRequest, quiz_id: str, result: Optional[QuizResult]) -> None:
    pending = _pending_results(request)
    if result is None:
        pending.pop(quiz_id, None)
    else:
        pending[quiz_id] = result.to_dict()
    request.session[PENDING_RESULTS_KEY] = pending
    request.session.modified = True


def _remember_result(request: HttpRequest, record: QuizResponse) -> None:
    result_ids = list(request.session.get(SESSION_RESULTS_KEY) or [])
    result_ids.append(str(record.pk))
    request.session[SESSION_RESULTS_KEY] = result_ids


def _can_access_result(request: HttpRequest, record: QuizResponse) -> bool:
    """Results belong to the session that stored them, their respondent and the quiz owner."""

    if str(record.pk) in (request.session.get(SESSION_RESULTS_KEY) or []):
        return True
    user = request.user
    if not user.is_authenticated:
        return False
    return user.is_superuser or user.pk in (record.user_id, record.quiz.owner_id)


def _save_result(request: HttpRequest, quiz: Quiz, result: QuizResult) -> JsonResponse:
    """Persist ``result`` or park it in the session for a later retry.

    A failed save answers 202 with ``saved: false``; session changes are
    only written for non-5xx responses, so the pending result survives.
    """

    lang = _get_lang(request)
    quiz_id = str(quiz.pk)
    try:
        record = record_quiz_result(quiz, result, user=request.user)
    except ResultPersistenceError:
        _store_pending(request, quiz_id, result)
        return JsonResponse(
            {
                'saved': False,
                'error': _localise_text(
                    lang,
                    'Your result could not be saved. Please try again.',
                    'Não foi possível salvar o seu resultado. Tente novamente.',
                ),
                'result': result.to_dict(),
            },
            status=202,
        )
    _store_pending(request, quiz_id, None)
    _remember_result(request, record)
    return JsonResponse({'saved': True, 'result_id': str(record.pk), 'result': result.to_dict()})


@ensure_csrf_cookie
@require_GET
def quiz_detail(request: HttpRequest, quiz_id) -> JsonResponse:
    """Return the full quiz definition."""

    quiz = get_object_or_404(quiz_queryset(), pk=quiz_id)
    definition = load_quiz_definition(quiz)
    return JsonResponse({'quiz': definition.to_dict(), 'max_score': max_possible_score(definition)})


@require_POST
def quiz_active_questions(request: HttpRequest, quiz_id) -> JsonResponse:
    """Report which questions apply to the answers given so far."""

    lang = _get_lang(request)
    quiz = get_object_or_404(quiz_queryset(), pk=quiz_id)
    definition = load_quiz_definition(quiz)
    try:
        responses = parse_responses(_load_payload(request).get('responses'))
    except QuizDefinitionError as exc:
        return _invalid_payload(lang, exc)

    active = active_questions(definition, responses)
    upcoming = next_question(definition, responses)
    return JsonResponse(
        {
            'active_question_ids': [question.id for question in active],
            'groups': [group.to_dict() for group in group_active_questions(definition, active)],
            'progress': progress(definition, responses),
            'next_question_id': upcoming.id if upcoming else None,
            'missing_required_ids': [
                question.id for question in missing_required_questions(definition, responses)
            ],
        }
    )


@require_POST
def quiz_submit(request: HttpRequest, quiz_id) -> JsonResponse:
    """Score a finished attempt and store it.

    Required active questions must be answered unless ``force`` is set,
    which is how a respondent finishes early.
    """

    lang = _get_lang(request)
    quiz = get_object_or_404(quiz_queryset(), pk=quiz_id)
    definition = load_quiz_definition(quiz)
    try:
        payload = _load_payload(request)
        responses = parse_responses(payload.get('responses'))
    except QuizDefinitionError as exc:
        return _invalid_payload(lang, exc)

    user_payload = payload.get('user_data')
    form = RespondentForm(user_payload if isinstance(user_payload, dict) else {})
    if not form.is_valid():
        return JsonResponse(
            {
                'error': _localise_text(
                    lang,
                    'Please provide your name and a valid email.',
                    'Informe o seu nome e um email válido.',
                ),
                'fields': form.errors.get_json_data(),
            },
            status=400,
        )

    if not payload.get('force'):
        missing = missing_required_questions(definition, responses)
        if missing:
            return JsonResponse(
                {
                    'error': _localise_text(
                        lang,
                        'Please answer all required questions.',
                        'Responda a todas as perguntas obrigatórias.',
                    ),
                    'missing_question_ids': [question.id for question in missing],
                },
                status=400,
            )

    try:
        result = score_quiz(definition, responses, user_data=UserData(**form.cleaned_data))
    except QuizDefinitionError as exc:
        return _invalid_payload(lang, exc)
    logger.info('Quiz %s submitted (force=%s)', quiz.pk, bool(payload.get('force')))
    return _save_result(request, quiz, result)


@require_POST
def quiz_submit_retry(request: HttpRequest, quiz_id) -> JsonResponse:
    """Store the result kept in the session after a failed save."""

    lang = _get_lang(request)
    quiz = get_object_or_404(Quiz, pk=quiz_id)
    pending = _pending_results(request).get(str(quiz.pk))
    if pending is None:
        return JsonResponse(
            {'error': _localise_text(lang, 'There is no result waiting to be saved.', 'Não há resultado pendente.')},
            status=404,
        )
    try:
        result = QuizResult.from_dict(pending)
    except QuizDefinitionError as exc:
        _store_pending(request, str(quiz.pk), None)
        return _invalid_payload(lang, exc)
    return _save_result(request, quiz, result)


def _access_denied(request: HttpRequest) -> JsonResponse:
    return JsonResponse(
        {'error': _localise_text(_get_lang(request), 'Access denied.', 'Acesso negado.')},
        status=403,
    )


@require_POST
def result_unlock(request: HttpRequest, result_id) -> JsonResponse:
    """Unlock the premium report of a stored result."""

    record = get_object_or_404(QuizResponse.objects.select_related('quiz'), pk=result_id)
    if not _can_access_result(request, record):
        return _access_denied(request)
    record = unlock_premium(record)
    return JsonResponse({'ok': True, 'result_id': str(record.pk), 'is_premium': record.is_premium})


@require_GET
def result_rows(request: HttpRequest, result_id) -> JsonResponse:
    """Return a stored result as export rows."""

    record = get_object_or_404(
        QuizResponse.objects.select_related('quiz').prefetch_related('answers'),
        pk=result_id,
    )
    if not _can_access_result(request, record):
        return _access_denied(request)
    quiz = get_object_or_404(quiz_queryset(), pk=record.quiz_id)
    rows = build_result_rows(load_quiz_definition(quiz), result_from_record(record))
    return JsonResponse({'result_id': str(record.pk), 'rows': rows})


@login_required
@require_GET
def quiz_validation(request: HttpRequest, quiz_id) -> JsonResponse:
    """List authoring issues for a quiz owned by the current user."""

    quiz = get_object_or_404(quiz_queryset(), pk=quiz_id)
    if quiz.owner_id != request.user.pk and not request.user.is_superuser:
        return _access_denied(request)
    issues = validate_quiz(load_quiz_definition(quiz))
    return JsonResponse({'quiz_id': str(quiz.pk), 'issues': [issue.to_dict() for issue in issues]})


@login_required
@require_GET
def analytics_summary(request: HttpRequest) -> JsonResponse:
    """Totals and recent activity for the current user's quizzes."""

    responses = QuizResponse.objects.filter(quiz__owner=request.user)
    totals = responses.aggregate(total=Count('pk'), average=Avg('score'))
    average = totals['average']
    recent = responses.select_related('quiz').order_by('-completed_at')[:RECENT_RESPONSES_LIMIT]
    return JsonResponse(
        {
            'total_quizzes': Quiz.objects.filter(owner=request.user).count(),
            'total_responses': totals['total'],
            'average_score': int(round(average)) if average is not None else 0,
            'recent_responses': [
                {
                    'id': str(record.pk),
                    'quiz_id': str(record.quiz_id),
                    'quiz_title': record.quiz.title,
                    'user_name': record.user_name,
                    'score': float(record.score),
                    'profile': record.profile,
                    'is_premium': record.is_premium,
                    'completed_at': record.completed_at.isoformat(),
                }
                for record in recent
            ],
        }
    )


def toggle_language(request: HttpRequest, lang: str) -> JsonResponse:
    """Switch the message language between English and Portuguese."""

    if lang not in SUPPORTED_LANGUAGES:
        lang = 'en'
    request.session['lang'] = lang
    return JsonResponse({'lang': lang})
