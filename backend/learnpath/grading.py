"""Grading of activity submissions.

``grade`` is a pure function of (activity type, submission, activity content):
no I/O and the same inputs always give the same result. Code exercises are
pattern-matched against the checks in the activity content, never executed.

Content layout per type:

* LEARN_QUIZ: ``{"correctAnswers": {question_id: option_id}}``; the
  submission is ``{"answers": {question_id: option_id}}``.
* PRACTICE_DRILL: ``{"testCases": [check, ...]}``
* APPLY_CHALLENGE: ``{"expectedOutputs": [check | str, ...] | {name: str}}``
* ASSESS_TEST: ``{"assessmentCriteria": [check, ...]}``

A code submission is the code string or ``{"code": str, "output": str}``. A
check is a dict using any of ``expectedOutput``, ``outputContains``,
``contains``, ``notContains`` and ``pattern``; it passes when every key it uses
passes. Checks using none of them are informational and are not scored.
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .enums import ActivityType
from .errors import UnsupportedActivityType

# Pass thresholds, in percent. Both must stay within 1..100 so that a perfect
# score always passes.
QUIZ_PASS_THRESHOLD = 70
CODE_PASS_THRESHOLD = 70

_CHECK_KEYS = ("expectedOutput", "outputContains", "contains", "notContains", "pattern")

_CONTENT_KEYS = {
	ActivityType.PRACTICE_DRILL: "testCases",
	ActivityType.APPLY_CHALLENGE: "expectedOutputs",
	ActivityType.ASSESS_TEST: "assessmentCriteria",
}


@dataclass(frozen=True)
class GradingPolicy:
	quiz_pass_threshold: int = QUIZ_PASS_THRESHOLD
	code_pass_threshold: int = CODE_PASS_THRESHOLD

	def __post_init__(self) -> None:
		for name in ("quiz_pass_threshold", "code_pass_threshold"):
			value = getattr(self, name)
			if not 1 <= value <= 100:
				raise ValueError(f"{name} must be within 1..100, got {value}")

	@classmethod
	def from_settings(cls, settings: Any) -> "GradingPolicy":
		return cls(
			quiz_pass_threshold=settings.quiz_pass_threshold,
			code_pass_threshold=settings.code_pass_threshold,
		)


@dataclass
class CheckResult:
	name: str
	passed: bool
	message: Optional[str] = None


@dataclass
class GradingResult:
	score: int
	passed: bool
	feedback: str
	tests: List[CheckResult] = field(default_factory=list)

	def as_dict(self) -> Dict[str, Any]:
		return {
			"score": self.score,
			"passed": self.passed,
			"feedback": self.feedback,
			"details": {
				"tests": [
					{"name": t.name, "passed": t.passed, "message": t.message} for t in self.tests
				]
			},
		}


def grade(
	activity_type: Any,
	submission: Any,
	activity_content: Any,
	policy: Optional[GradingPolicy] = None,
) -> GradingResult:
	policy = policy or GradingPolicy()
	try:
		kind = ActivityType(activity_type)
	except (ValueError, TypeError):
		raise UnsupportedActivityType(f"Unsupported activity type: {activity_type}")
	content = activity_content if isinstance(activity_content, dict) else {}
	if kind is ActivityType.LEARN_QUIZ:
		return grade_quiz(submission, content, policy.quiz_pass_threshold)
	checks = _normalize_checks(content.get(_CONTENT_KEYS[kind]))
	return grade_code(submission, checks, policy.code_pass_threshold)


def grade_quiz(submission: Any, content: Dict[str, Any], threshold: int = QUIZ_PASS_THRESHOLD) -> GradingResult:
	raw_answers = submission.get("answers") if isinstance(submission, dict) else None
	answers = {str(k): v for k, v in (raw_answers or {}).items()} if isinstance(raw_answers, dict) else {}
	correct_answers = content.get("correctAnswers") or {}
	total = len(correct_answers)
	if total == 0:
		return GradingResult(score=0, passed=False, feedback="This quiz has no questions to grade.")

	correct = 0
	tests: List[CheckResult] = []
	for question_id, expected in correct_answers.items():
		is_correct = str(question_id) in answers and answers[str(question_id)] == expected
		if is_correct:
			correct += 1
		tests.append(CheckResult(
			name=f"Question {question_id}",
			passed=is_correct,
			message="Correct" if is_correct else "Incorrect",
		))
	score = correct * 100 // total
	return GradingResult(
		score=score,
		passed=score >= threshold,
		feedback=f"You got {correct} out of {total} questions correct.",
		tests=tests,
	)


def grade_code(submission: Any, checks: List[Dict[str, Any]], threshold: int = CODE_PASS_THRESHOLD) -> GradingResult:
	code, output = _split_submission(submission)
	scored = [c for c in checks if any(k in c for k in _CHECK_KEYS)]
	if not scored:
		return GradingResult(score=100, passed=True, feedback="Submission received. This exercise has no automated checks.")

	tests: List[CheckResult] = []
	for index, check in enumerate(scored, start=1):
		ok, message = _run_check(check, code, output)
		tests.append(CheckResult(name=str(check.get("name") or f"Test {index}"), passed=ok, message=message))
	passing = sum(1 for t in tests if t.passed)
	score = passing * 100 // len(tests)
	passed = score >= threshold
	if passing == len(tests):
		feedback = "All tests passed! Great job!"
	else:
		feedback = f"{passing} of {len(tests)} checks passed."
	return GradingResult(score=score, passed=passed, feedback=feedback, tests=tests)


def _split_submission(submission: Any) -> Tuple[str, Optional[str]]:
	if isinstance(submission, str):
		return submission, None
	if isinstance(submission, dict):
		code = submission.get("code")
		output = submission.get("output")
		return (code if isinstance(code, str) else ""), (output if isinstance(output, str) else None)
	return "", None


def _normalize_checks(raw: Any) -> List[Dict[str, Any]]:
	if isinstance(raw, dict):
		return [{"name": str(name), "expectedOutput": expected} for name, expected in raw.items()]
	if not isinstance(raw, list):
		return []
	checks: List[Dict[str, Any]] = []
	for item in raw:
		if isinstance(item, dict):
			checks.append(item)
		elif isinstance(item, str):
			checks.append({"expectedOutput": item})
	return checks


def _run_check(check: Dict[str, Any], code: str, output: Optional[str]) -> Tuple[bool, str]:
	if "expectedOutput" in check:
		if output is None:
			return False, "No program output was submitted"
		if output.strip() != str(check["expectedOutput"]).strip():
			return False, "Output does not match the expected output"
	if "outputContains" in check:
		if output is None or str(check["outputContains"]) not in output:
			return False, f"Output should contain {check['outputContains']!r}"
	if "contains" in check and str(check["contains"]) not in code:
		return False, f"Code should contain {check['contains']!r}"
	if "notContains" in check and str(check["notContains"]) in code:
		return False, f"Code should not contain {check['notContains']!r}"
	if "pattern" in check:
		try:
			matched = re.search(str(check["pattern"]), code, re.MULTILINE) is not None
		except re.error:
			return False, "Invalid check pattern"
		if not matched:
			return False, check.get("message") or "Code does not match the expected pattern"
	return True, "Passed"
