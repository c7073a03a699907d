from __future__ import annotations
import enum


class ActivityType(str, enum.Enum):
	LEARN_QUIZ = "LEARN_QUIZ"
	PRACTICE_DRILL = "PRACTICE_DRILL"
	APPLY_CHALLENGE = "APPLY_CHALLENGE"
	ASSESS_TEST = "ASSESS_TEST"


class ProficiencyLevel(str, enum.Enum):
	NOVICE = "NOVICE"
	APPRENTICE = "APPRENTICE"
	JOURNEYMAN = "JOURNEYMAN"
	MASTER = "MASTER"

	@property
	def rank(self) -> int:
		return _PROFICIENCY_ORDER.index(self)


_PROFICIENCY_ORDER = [
	ProficiencyLevel.NOVICE,
	ProficiencyLevel.APPRENTICE,
	ProficiencyLevel.JOURNEYMAN,
	ProficiencyLevel.MASTER,
]


# Services a user may store a credential for
SUPPORTED_SERVICES = ("gemini",)
