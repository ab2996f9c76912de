"""Tests for storing computed results."""

from datetime import datetime, timezone as dt_timezone
from unittest import mock

from django.contrib.auth.models import User
from django.db import DatabaseError
from django.test import TestCase

from quizzes.models import Question, QuizResponse, Quiz
from quizzes.services.definitions import GroupScore, QuizResult, Response, UserData
from quizzes.services.submissions import (
    ResultPersistenceError,
    record_quiz_result,
    result_from_record,
    unlock_premium,
)


class RecordQuizResultTests(TestCase):
    def setUp(self) -> None:
        self.quiz = Quiz.objects.create(title='Habits')
        self.question = Question.objects.create(quiz=self.quiz, text='Notes', question_type='open-ended')
        self.result = QuizResult(
            quiz_id=str(self.quiz.pk),
            responses=[Response(str(self.question.pk), 'Morning runs'), Response('retired-question', ['a'])],
            score=7.5,
            profile='Balanced',
            completed_at=datetime(2024, 5, 1, 9, 30, tzinfo=dt_timezone.utc),
            group_scores=[GroupScore('g1', 'Health', 7.5, 10, 75.0)],
            user_data=UserData('Rui', 'rui@example.com', '+55 11 90000-0000'),
            details={'distribution': {'Strong': 1}},
        )

    def test_result_and_answers_are_stored_as_computed(self) -> None:
        user = User.objects.create_user('rui@example.com', password='secret123')
        with self.assertLogs('quizzes.services.submissions', level='INFO'):
            record = record_quiz_result(self.quiz, self.result, user=user)

        self.assertEqual(record.user, user)
        self.assertEqual(record.user_phone, '+55 11 90000-0000')
        self.assertEqual(record.group_scores[0]['title'], 'Health')
        answers = list(record.answers.all())
        self.assertEqual(answers[0].question_id, self.question.pk)
        self.assertIsNone(answers[1].question_id)
        self.assertEqual(answers[1].question_key, 'retired-question')

        rebuilt = result_from_record(QuizResponse.objects.get(pk=record.pk))
        self.assertEqual(rebuilt.to_dict(), self.result.to_dict())

    def test_database_errors_are_wrapped(self) -> None:
        with mock.patch.object(QuizResponse.objects, 'create', side_effect=DatabaseError('disk full')):
            with self.assertLogs('quizzes.services.submissions', level='ERROR'):
                with self.assertRaises(ResultPersistenceError):
                    record_quiz_result(self.quiz, self.result)
        self.assertFalse(QuizResponse.objects.exists())

    def test_unlock_is_idempotent(self) -> None:
        record = record_quiz_result(self.quiz, self.result)
        self.assertTrue(unlock_premium(record).is_premium)
        self.assertTrue(unlock_premium(record).is_premium)
        record.refresh_from_db()
        self.assertTrue(record.is_premium)
