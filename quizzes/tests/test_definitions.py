"""Tests for parsing quiz definitions and answer payloads."""

from django.test import SimpleTestCase

from quizzes.services.definitions import (
    Condition,
    ProfileRange,
    Question,
    Quiz,
    QuizDefinitionError,
    QuizResult,
    Response,
    coerce_number,
    parse_responses,
)

QUIZ_PAYLOAD = {
    'id': 'quiz-1',
    'title': 'Career check',
    'questions': [
        {
            'id': 'q1',
            'text': 'Years of experience?',
            'type': 'multiple-choice',
            'required': True,
            'options': [{'id': 'o1', 'text': 'Less than 2', 'weight': '5'}, {'id': 'o2', 'text': 'More', 'weight': 10}],
        },
        {
            'id': 'q2',
            'text': 'Anything else?',
            'type': 'open-ended',
            'options': [{'id': 'ignored', 'text': 'x', 'weight': 1}],
            'conditions': [{'question_id': 'q1', 'operator': 'equals', 'value': 'o2', 'logical_operator': 'or'}],
            'group_id': 'g1',
        },
    ],
    'question_groups': [{'id': 'g1', 'title': 'Extras', 'weight': 0.5, 'order': 2}],
    'profile_ranges': [{'min': 0, 'max': 10, 'profile': 'Beginner'}],
    'created_at': '2024-05-01T10:00:00+00:00',
}


class DefinitionParsingTests(SimpleTestCase):
    """snake_case payloads become engine dataclasses."""

    def test_quiz_from_dict(self) -> None:
        quiz = Quiz.from_dict(QUIZ_PAYLOAD)
        self.assertEqual([question.id for question in quiz.questions], ['q1', 'q2'])
        self.assertEqual(quiz.questions[0].options[0].weight, 5)
        self.assertTrue(quiz.questions[0].required)
        self.assertEqual(quiz.questions[1].options, [])
        self.assertEqual(quiz.questions[1].conditions, [Condition('q1', 'equals', 'o2', 'OR')])
        self.assertEqual(quiz.question_groups[0].weight, 0.5)
        self.assertEqual(quiz.scoring_strategy, 'weighted')
        self.assertEqual(quiz.created_at.year, 2024)
        self.assertEqual(quiz.to_dict()['questions'][1]['group_id'], 'g1')

    def test_invalid_definitions_raise(self) -> None:
        with self.assertRaises(QuizDefinitionError):
            Question.from_dict({'id': 'q', 'type': 'slider'})
        with self.assertRaises(QuizDefinitionError):
            Condition.from_dict({'question_id': 'q', 'operator': 'between'})
        with self.assertRaises(QuizDefinitionError):
            Condition.from_dict({'question_id': 'q', 'operator': 'equals', 'logical_operator': 'XOR'})
        with self.assertRaises(QuizDefinitionError):
            ProfileRange.from_dict({'min': 10, 'max': 5, 'profile': 'Backwards'})
        with self.assertRaises(QuizDefinitionError):
            Quiz.from_dict({'title': 'No id'})

    def test_coerce_number(self) -> None:
        self.assertEqual(coerce_number('15.0'), 15)
        self.assertIsInstance(coerce_number('15.0'), int)
        self.assertEqual(coerce_number(2.5), 2.5)
        self.assertEqual(coerce_number(None), 0)
        for bad in (True, 'heavy', [1]):
            with self.subTest(value=bad):
                with self.assertRaises(QuizDefinitionError):
                    coerce_number(bad)


class ResponseParsingTests(SimpleTestCase):
    def test_parse_responses(self) -> None:
        responses = parse_responses([
            {'question_id': 'q1', 'answer': 'o1'},
            {'question_id': 'q2', 'answer': ['c1', 'c2']},
            {'question_id': 'q3', 'answer': 7},
            {'question_id': 'q4', 'answer': None},
        ])
        self.assertEqual([response.answer for response in responses], ['o1', ['c1', 'c2'], '7', ''])
        self.assertTrue(responses[3].is_empty)
        self.assertEqual(parse_responses(None), [])

    def test_malformed_responses_raise(self) -> None:
        for payload in ({'question_id': 'q1'}, [{'answer': 'x'}], [{'question_id': 'q1', 'answer': True}],
                        [{'question_id': 'q1', 'answer': [1, 2]}], [{'question_id': 'q1', 'answer': {'a': 1}}]):
            with self.subTest(payload=payload):
                with self.assertRaises(QuizDefinitionError):
                    parse_responses(payload)

    def test_result_survives_serialisation(self) -> None:
        """A result parked in the session is rebuilt unchanged."""

        payload = {
            'quiz_id': 'quiz-1',
            'responses': [{'question_id': 'q1', 'answer': 'o1'}],
            'score': 5,
            'group_scores': [{'group_id': 'g1', 'title': 'Extras', 'score': 5, 'max_score': 10, 'percentage': 50.0}],
            'profile': 'Beginner',
            'completed_at': '2024-05-01T10:00:00+00:00',
            'is_premium': False,
            'user_data': {'name': 'Ana', 'email': 'ana@example.com', 'phone': ''},
            'details': {'distribution': {'Strong': 0}},
        }
        result = QuizResult.from_dict(payload)
        self.assertEqual(result.responses, [Response('q1', 'o1')])
        self.assertEqual(result.to_dict(), payload)
