"""Tests for quiz authoring checks."""

from django.test import SimpleTestCase

from quizzes.services.definitions import Condition, Option, ProfileRange, Question, QuestionGroup, Quiz
from quizzes.services.validation import (
    ISSUE_FORWARD_REFERENCE,
    ISSUE_OPTIONS_MISSING,
    ISSUE_RANGE_GAP,
    ISSUE_RANGE_OVERLAP,
    ISSUE_UNKNOWN_GROUP,
    ISSUE_UNKNOWN_QUESTION,
    validate_quiz,
)

OPTIONS = [Option('a', 'A', 1)]


class ValidateQuizTests(SimpleTestCase):
    """Issues are reported without changing evaluation."""

    def test_clean_quiz_has_no_issues(self) -> None:
        quiz = Quiz(
            id='clean',
            title='Clean',
            questions=[
                Question('q1', 'First', 'multiple-choice', OPTIONS),
                Question('q2', 'Second', 'open-ended', conditions=[Condition('q1', 'equals', 'a')], group_id='g'),
            ],
            question_groups=[QuestionGroup('g', 'Group')],
            profile_ranges=[ProfileRange(0, 10, 'Low'), ProfileRange(11, 20, 'High')],
        )
        self.assertEqual(validate_quiz(quiz), [])

    def test_condition_problems_are_reported_per_question(self) -> None:
        quiz = Quiz(
            id='broken',
            title='Broken',
            questions=[
                Question('q1', 'First', 'multiple-choice', OPTIONS, conditions=[Condition('q2', 'equals', 'a')]),
                Question('q2', 'Second', 'multiple-choice', OPTIONS, conditions=[Condition('q2', 'equals', 'a')]),
                Question('q3', 'Third', 'checkbox', conditions=[Condition('gone', 'equals', 'a')], group_id='nope'),
            ],
        )
        issues = [(issue.code, issue.question_id) for issue in validate_quiz(quiz)]
        self.assertEqual(
            issues,
            [
                (ISSUE_FORWARD_REFERENCE, 'q1'),
                (ISSUE_FORWARD_REFERENCE, 'q2'),
                (ISSUE_OPTIONS_MISSING, 'q3'),
                (ISSUE_UNKNOWN_GROUP, 'q3'),
                (ISSUE_UNKNOWN_QUESTION, 'q3'),
            ],
        )

    def test_overlapping_and_gapped_ranges(self) -> None:
        quiz = Quiz(
            id='ranges',
            title='Ranges',
            profile_ranges=[
                ProfileRange(0, 10, 'Low'),
                ProfileRange(8, 12, 'Middle'),
                ProfileRange(20, 30, 'High'),
            ],
        )
        issues = validate_quiz(quiz)
        self.assertEqual([issue.code for issue in issues], [ISSUE_RANGE_OVERLAP, ISSUE_RANGE_GAP])
        self.assertIn('"Low" wins', issues[0].message)
        self.assertIn('between 12 and 20', issues[1].message)
        self.assertEqual(issues[1].to_dict()['question_id'], None)

    def test_nested_range_does_not_hide_a_gap(self) -> None:
        quiz = Quiz(
            id='nested',
            title='Nested',
            profile_ranges=[ProfileRange(0, 50, 'Wide'), ProfileRange(10, 20, 'Inner'), ProfileRange(60, 70, 'Top')],
        )
        codes = [issue.code for issue in validate_quiz(quiz)]
        self.assertEqual(codes, [ISSUE_RANGE_OVERLAP, ISSUE_RANGE_GAP])
