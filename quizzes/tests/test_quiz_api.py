"""Tests for the quiz-taking and result JSON endpoints."""

import json
import uuid
from unittest import mock

from django.contrib.auth.models import User
from django.test import Client, TestCase
from django.urls import reverse

from quizzes.models import Condition, Option, ProfileRange, Question, QuestionAnswer, Quiz, QuizResponse
from quizzes.services.scarf_template import create_scarf_quiz
from quizzes.services.submissions import ResultPersistenceError

RESPONDENT = {'name': 'Ana Souza', 'email': 'ana@example.com', 'phone': ''}


class QuizApiTestMixin:
    """Builds the two-question skills quiz used across the API tests."""

    def setUp(self) -> None:
        self.owner = User.objects.create_user('org@example.com', password='secret123')
        self.quiz = Quiz.objects.create(owner=self.owner, title='Skills')
        self.q1 = Question.objects.create(
            quiz=self.quiz,
            text='Experience?',
            question_type=Question.QuestionType.MULTIPLE_CHOICE,
            required=True,
            order_index=0,
        )
        self.five = Option.objects.create(question=self.q1, text='Five', weight=5, order_index=0)
        self.ten = Option.objects.create(question=self.q1, text='Ten', weight=10, order_index=1)
        self.q2 = Question.objects.create(
            quiz=self.quiz,
            text='Tools?',
            question_type=Question.QuestionType.CHECKBOX,
            order_index=1,
        )
        self.three = Option.objects.create(question=self.q2, text='Three', weight=3, order_index=0)
        self.seven = Option.objects.create(question=self.q2, text='Seven', weight=7, order_index=1)
        self.q3 = Question.objects.create(
            quiz=self.quiz,
            text='Which senior role?',
            question_type=Question.QuestionType.OPEN_ENDED,
            required=True,
            order_index=2,
        )
        Condition.objects.create(question=self.q3, depends_on=self.q1, operator='equals', value=str(self.ten.pk))
        ProfileRange.objects.create(quiz=self.quiz, min_score=0, max_score=10, profile='Beginner', order_index=0)
        ProfileRange.objects.create(quiz=self.quiz, min_score=11, max_score=20, profile='Intermediate', order_index=1)

    def _post(self, name: str, payload: dict, **kwargs):
        url = reverse(name, kwargs=kwargs or {'quiz_id': self.quiz.pk})
        return self.client.post(url, data=json.dumps(payload), content_type='application/json')

    def _answers(self, first, tools=None) -> list:
        responses = [{'question_id': str(self.q1.pk), 'answer': str(first.pk)}]
        if tools is not None:
            responses.append({'question_id': str(self.q2.pk), 'answer': [str(option.pk) for option in tools]})
        return responses


class QuizDetailTests(QuizApiTestMixin, TestCase):
    def test_definition_is_returned(self) -> None:
        response = self.client.get(reverse('quiz_detail', kwargs={'quiz_id': self.quiz.pk}))
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['max_score'], 20)
        self.assertEqual(len(data['quiz']['questions']), 3)
        self.assertEqual(data['quiz']['questions'][2]['options'], [])
        self.assertEqual(data['quiz']['questions'][2]['conditions'][0]['question_id'], str(self.q1.pk))

    def test_unknown_quiz_is_404(self) -> None:
        response = self.client.get(reverse('quiz_detail', kwargs={'quiz_id': uuid.uuid4()}))
        self.assertEqual(response.status_code, 404)


class ActiveQuestionsApiTests(QuizApiTestMixin, TestCase):
    def test_branch_opens_after_matching_answer(self) -> None:
        response = self._post('quiz_active_questions', {'responses': self._answers(self.ten)})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['active_question_ids'], [str(self.q1.pk), str(self.q2.pk), str(self.q3.pk)])
        self.assertEqual(data['next_question_id'], str(self.q2.pk))
        self.assertEqual(data['missing_required_ids'], [str(self.q3.pk)])
        self.assertEqual(data['progress'], 33.3)
        self.assertEqual(data['groups'][0]['title'], 'General questions')

    def test_branch_stays_closed_otherwise(self) -> None:
        response = self._post('quiz_active_questions', {'responses': self._answers(self.five)})
        data = response.json()
        self.assertEqual(data['active_question_ids'], [str(self.q1.pk), str(self.q2.pk)])
        self.assertEqual(data['missing_required_ids'], [])

    def test_malformed_payload_is_400(self) -> None:
        url = reverse('quiz_active_questions', kwargs={'quiz_id': self.quiz.pk})
        response = self.client.post(url, data='not json', content_type='application/json')
        self.assertEqual(response.status_code, 400)
        response = self._post('quiz_active_questions', {'responses': 'nope'})
        self.assertEqual(response.status_code, 400)

    def test_get_is_not_allowed(self) -> None:
        response = self.client.get(reverse('quiz_active_questions', kwargs={'quiz_id': self.quiz.pk}))
        self.assertEqual(response.status_code, 405)


class SubmitApiTests(QuizApiTestMixin, TestCase):
    """Scoring, storing and retrying submissions."""

    def test_submission_is_scored_and_stored(self) -> None:
        response = self._post(
            'quiz_submit',
            {'responses': self._answers(self.five, [self.three, self.seven]), 'user_data': RESPONDENT},
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data['saved'])
        self.assertEqual(data['result']['score'], 15)
        self.assertEqual(data['result']['profile'], 'Intermediate')

        record = QuizResponse.objects.get(pk=data['result_id'])
        self.assertEqual(record.user_email, 'ana@example.com')
        self.assertEqual(record.profile, 'Intermediate')
        self.assertEqual(float(record.score), 15.0)
        self.assertFalse(record.is_premium)
        answers = list(record.answers.all())
        self.assertEqual(len(answers), 2)
        self.assertEqual(answers[0].question_id, self.q1.pk)
        self.assertEqual(answers[1].answer, [str(self.three.pk), str(self.seven.pk)])

    def test_missing_required_answers_block_submission(self) -> None:
        response = self._post('quiz_submit', {'responses': self._answers(self.ten), 'user_data': RESPONDENT})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['missing_question_ids'], [str(self.q3.pk)])
        self.assertFalse(QuizResponse.objects.exists())

    def test_force_finish_skips_required_check(self) -> None:
        response = self._post(
            'quiz_submit',
            {'responses': self._answers(self.ten), 'user_data': RESPONDENT, 'force': True},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['result']['profile'], 'Beginner')
        self.assertEqual(QuizResponse.objects.count(), 1)

    def test_respondent_details_are_required(self) -> None:
        response = self._post(
            'quiz_submit',
            {'responses': self._answers(self.five), 'user_data': {'name': ' ', 'email': 'not-an-email'}},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(set(response.json()['fields']), {'name', 'email'})

    def test_error_messages_follow_session_language(self) -> None:
        self.client.get(reverse('toggle_language', kwargs={'lang': 'pt'}))
        response = self._post('quiz_submit', {'responses': self._answers(self.five), 'user_data': {}})
        self.assertEqual(response.json()['error'], 'Informe o seu nome e um email válido.')

    def test_failed_save_is_kept_for_retry(self) -> None:
        """A failed save keeps the result in the session and retry stores it unchanged."""

        payload = {'responses': self._answers(self.five, [self.seven]), 'user_data': RESPONDENT}
        with mock.patch('quizzes.views.record_quiz_result', side_effect=ResultPersistenceError('db down')):
            response = self._post('quiz_submit', payload)
        self.assertEqual(response.status_code, 202)
        data = response.json()
        self.assertFalse(data['saved'])
        self.assertEqual(data['result']['score'], 12)
        self.assertFalse(QuizResponse.objects.exists())
        pending = self.client.session['pending_results'][str(self.quiz.pk)]
        self.assertEqual(pending['completed_at'], data['result']['completed_at'])

        with mock.patch('quizzes.views.score_quiz') as score_quiz:
            response = self._post('quiz_submit_retry', {})
        score_quiz.assert_not_called()
        self.assertEqual(response.status_code, 200)
        record = QuizResponse.objects.get()
        self.assertEqual(float(record.score), 12.0)
        self.assertEqual(record.completed_at.isoformat(), data['result']['completed_at'])
        self.assertEqual(QuestionAnswer.objects.filter(response=record).count(), 2)
        self.assertNotIn(str(self.quiz.pk), self.client.session['pending_results'])

    def test_retry_without_pending_result_is_404(self) -> None:
        response = self._post('quiz_submit_retry', {})
        self.assertEqual(response.status_code, 404)

    def test_repeated_answers_are_scored_once(self) -> None:
        repeated = self._answers(self.ten) * 50
        response = self._post('quiz_submit', {'responses': repeated, 'user_data': RESPONDENT, 'force': True})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['result']['score'], 10)
        self.assertEqual(QuestionAnswer.objects.count(), 1)

    def test_posts_require_the_csrf_token(self) -> None:
        client = Client(enforce_csrf_checks=True)
        url = reverse('quiz_submit', kwargs={'quiz_id': self.quiz.pk})
        body = json.dumps({'responses': self._answers(self.five), 'user_data': RESPONDENT})
        self.assertEqual(client.post(url, data=body, content_type='application/json').status_code, 403)

        client.get(reverse('quiz_detail', kwargs={'quiz_id': self.quiz.pk}))
        token = client.cookies['csrftoken'].value
        response = client.post(url, data=body, content_type='application/json', HTTP_X_CSRFTOKEN=token)
        self.assertEqual(response.status_code, 200)


class ResultApiTests(QuizApiTestMixin, TestCase):
    def setUp(self) -> None:
        super().setUp()
        response = self._post(
            'quiz_submit',
            {'responses': self._answers(self.five, [self.three, self.seven]), 'user_data': RESPONDENT},
        )
        self.result_id = response.json()['result_id']

    def test_unlock_sets_premium_flag(self) -> None:
        response = self.client.post(reverse('result_unlock', kwargs={'result_id': self.result_id}))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['is_premium'])
        self.assertTrue(QuizResponse.objects.get(pk=self.result_id).is_premium)
        response = self.client.post(reverse('result_unlock', kwargs={'result_id': self.result_id}))
        self.assertTrue(response.json()['is_premium'])

    def test_rows_are_built_from_the_stored_result(self) -> None:
        response = self.client.get(reverse('result_rows', kwargs={'result_id': self.result_id}))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json()['rows'],
            [
                ['Question', 'Response', 'Score'],
                ['Experience?', 'Five', 5],
                ['Tools?', 'Three, Seven', 10],
                ['', 'Total Score:', 15],
                ['', 'Profile:', 'Intermediate'],
            ],
        )

    def test_other_visitors_cannot_unlock_or_read(self) -> None:
        stranger = Client()
        response = stranger.post(reverse('result_unlock', kwargs={'result_id': self.result_id}))
        self.assertEqual(response.status_code, 403)
        self.assertFalse(QuizResponse.objects.get(pk=self.result_id).is_premium)
        response = stranger.get(reverse('result_rows', kwargs={'result_id': self.result_id}))
        self.assertEqual(response.status_code, 403)

        other = User.objects.create_user('other@example.com', password='secret123')
        stranger.force_login(other)
        response = stranger.post(reverse('result_unlock', kwargs={'result_id': self.result_id}))
        self.assertEqual(response.status_code, 403)

    def test_quiz_owner_can_unlock(self) -> None:
        owner_client = Client()
        owner_client.force_login(self.owner)
        response = owner_client.post(reverse('result_unlock', kwargs={'result_id': self.result_id}))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(QuizResponse.objects.get(pk=self.result_id).is_premium)

    def test_unknown_result_is_404(self) -> None:
        response = self.client.post(reverse('result_unlock', kwargs={'result_id': uuid.uuid4()}))
        self.assertEqual(response.status_code, 404)


class OwnerApiTests(QuizApiTestMixin, TestCase):
    """Endpoints restricted to quiz owners."""

    def test_validation_is_owner_only(self) -> None:
        url = reverse('quiz_validation', kwargs={'quiz_id': self.quiz.pk})
        self.assertEqual(self.client.get(url).status_code, 302)

        other = User.objects.create_user('other@example.com', password='secret123')
        self.client.force_login(other)
        self.assertEqual(self.client.get(url).status_code, 403)

        self.client.force_login(self.owner)
        response = self.client.get(url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['issues'], [])

    def test_validation_reports_forward_reference(self) -> None:
        Condition.objects.create(question=self.q1, depends_on=self.q2, operator='contains', value='x')
        self.client.force_login(self.owner)
        response = self.client.get(reverse('quiz_validation', kwargs={'quiz_id': self.quiz.pk}))
        issues = response.json()['issues']
        self.assertEqual([issue['code'] for issue in issues], ['condition-forward-reference'])
        self.assertEqual(issues[0]['question_id'], str(self.q1.pk))

    def test_analytics_summarise_owned_quizzes(self) -> None:
        for first in (self.five, self.ten):
            self._post(
                'quiz_submit',
                {'responses': self._answers(first), 'user_data': RESPONDENT, 'force': True},
            )
        other_quiz = Quiz.objects.create(title='Not mine')
        QuizResponse.objects.create(quiz=other_quiz, score=99, profile='Other')

        self.client.force_login(self.owner)
        data = self.client.get(reverse('analytics_summary')).json()
        self.assertEqual(data['total_quizzes'], 1)
        self.assertEqual(data['total_responses'], 2)
        self.assertEqual(data['average_score'], 8)
        self.assertEqual(len(data['recent_responses']), 2)
        self.assertEqual({item['quiz_title'] for item in data['recent_responses']}, {'Skills'})


class ScarfApiTests(TestCase):
    def test_scarf_quiz_scores_leadership_fit(self) -> None:
        quiz = create_scarf_quiz()
        responses = []
        for question in quiz.questions.prefetch_related('options'):
            option = next(option for option in question.options.all() if option.weight == 4)
            responses.append({'question_id': str(question.pk), 'answer': str(option.pk)})

        url = reverse('quiz_submit', kwargs={'quiz_id': quiz.pk})
        response = self.client.post(
            url,
            data=json.dumps({'responses': responses, 'user_data': RESPONDENT}),
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 200)
        result = response.json()['result']
        self.assertEqual(result['score'], 100)
        self.assertEqual(result['profile'], 'Fit Elevado')
        self.assertEqual(result['details']['fit_range'], 'Fit Excelente')
        self.assertEqual(len(result['group_scores']), 5)
