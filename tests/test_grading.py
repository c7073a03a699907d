"""Tests for the grading engine."""

from __future__ import annotations

import pytest

from learnpath.enums import ActivityType
from learnpath.errors import UnsupportedActivityType
from learnpath.grading import GradingPolicy, grade


QUIZ = {"correctAnswers": {"q1": "a", "q2": "b", "q3": "c", "q4": "d"}}


class TestQuiz:
	def test_all_correct(self):
		result = grade(ActivityType.LEARN_QUIZ, {"answers": {"q1": "a", "q2": "b", "q3": "c", "q4": "d"}}, QUIZ)
		assert result.score == 100
		assert result.passed
		assert result.feedback == "You got 4 out of 4 questions correct."

	def test_score_is_floored(self):
		content = {"correctAnswers": {"q1": "a", "q2": "b", "q3": "c"}}
		result = grade("LEARN_QUIZ", {"answers": {"q1": "a", "q2": "b"}}, content)
		assert result.score == 66
		assert not result.passed

	def test_threshold_is_inclusive(self):
		content = {"correctAnswers": {str(i): "x" for i in range(10)}}
		answers = {str(i): "x" for i in range(7)}
		assert grade("LEARN_QUIZ", {"answers": answers}, content).passed
		answers.pop("6")
		assert not grade("LEARN_QUIZ", {"answers": answers}, content).passed

	def test_no_questions_fails(self):
		result = grade("LEARN_QUIZ", {"answers": {"q1": "a"}}, {"correctAnswers": {}})
		assert result.score == 0
		assert not result.passed

	def test_unknown_questions_are_ignored(self):
		result = grade("LEARN_QUIZ", {"answers": {"q1": "a", "bogus": "z"}}, QUIZ)
		assert result.score == 25
		assert len(result.tests) == 4

	def test_missing_answers(self):
		result = grade("LEARN_QUIZ", None, QUIZ)
		assert result.score == 0
		assert not result.passed

	def test_custom_threshold(self):
		policy = GradingPolicy(quiz_pass_threshold=50)
		result = grade("LEARN_QUIZ", {"answers": {"q1": "a", "q2": "b"}}, QUIZ, policy)
		assert result.passed


class TestCodeExercises:
	def test_drill_checks(self):
		content = {"testCases": [
			{"name": "loop", "pattern": r"for\s+\w+\s+in"},
			{"name": "total", "expectedOutput": "15"},
		]}
		submission = {"code": "total = 0\nfor n in range(6):\n    total += n\nprint(total)", "output": "15\n"}
		result = grade(ActivityType.PRACTICE_DRILL, submission, content)
		assert result.score == 100
		assert result.passed
		assert result.feedback == "All tests passed! Great job!"
		assert [t.name for t in result.tests] == ["loop", "total"]

	def test_partial_credit_below_threshold(self):
		content = {"testCases": [{"contains": "for"}, {"expectedOutput": "15"}]}
		result = grade("PRACTICE_DRILL", "for x in y: pass", content)
		assert result.score == 50
		assert not result.passed
		assert result.tests[1].message == "No program output was submitted"

	def test_challenge_accepts_string_outputs(self):
		content = {"expectedOutputs": ["42"]}
		assert grade("APPLY_CHALLENGE", {"code": "print(42)", "output": " 42 "}, content).passed

	def test_challenge_accepts_named_outputs(self):
		content = {"expectedOutputs": {"answer": "42"}}
		result = grade("APPLY_CHALLENGE", {"code": "print(41)", "output": "41"}, content)
		assert not result.passed
		assert result.tests[0].name == "answer"

	def test_assessment_not_contains(self):
		content = {"assessmentCriteria": [{"contains": "pd.DataFrame"}, {"notContains": "eval("}]}
		assert grade("ASSESS_TEST", "df = pd.DataFrame(data)", content).score == 100
		assert grade("ASSESS_TEST", "df = pd.DataFrame(eval(s))", content).score == 50

	def test_invalid_pattern_fails_check(self):
		result = grade("PRACTICE_DRILL", "x", {"testCases": [{"pattern": "("}]})
		assert not result.passed
		assert result.tests[0].message == "Invalid check pattern"

	def test_no_checks_counts_as_completion(self):
		result = grade("APPLY_CHALLENGE", "print('hi')", {})
		assert result.score == 100
		assert result.passed

	def test_as_dict_shape(self):
		data = grade("ASSESS_TEST", "pd.DataFrame()", {"assessmentCriteria": [{"contains": "pd"}]}).as_dict()
		assert set(data) == {"score", "passed", "feedback", "details"}
		assert data["details"]["tests"][0]["passed"] is True


def test_unsupported_type():
	with pytest.raises(UnsupportedActivityType):
		grade("VIDEO_LESSON", {}, {})


@pytest.mark.parametrize("threshold", [0, 101])
def test_threshold_out_of_range(threshold):
	with pytest.raises(ValueError):
		GradingPolicy(quiz_pass_threshold=threshold)
