from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .db import Store
from .errors import ActivityNotFound
from .grading import GradingPolicy, GradingResult, grade
from .models import Activity
from .progress import LedgerPolicy, apply_result, xp_for_result
from .skills import update_proficiency

logger = logging.getLogger(__name__)


@dataclass
class SubmissionOutcome:
	result: GradingResult
	xp_gained: int
	new_level: int
	new_xp: int
	attempts: int

	def as_dict(self) -> Dict[str, Any]:
		return {
			"success": True,
			"result": self.result.as_dict(),
			"xpGained": self.xp_gained,
			"newLevel": self.new_level,
			"newXp": self.new_xp,
			"attempts": self.attempts,
		}


def submit_activity(
	store: Store,
	user_id: str,
	activity_id: str,
	submission: Any,
	*,
	grading_policy: Optional[GradingPolicy] = None,
	ledger_policy: Optional[LedgerPolicy] = None,
) -> SubmissionOutcome:
	"""Grade a submission, credit XP, then update skill proficiency.

	Grading and the ledger share one transaction: if either fails no XP is
	granted. The proficiency update runs in a second transaction after that
	commit, and a failure there is logged without undoing the XP.
	"""
	ledger_policy = ledger_policy or LedgerPolicy()
	with store.session_scope() as db:
		activity = db.get(Activity, activity_id)
		if activity is None:
			raise ActivityNotFound()
		result = grade(activity.type, submission, activity.content, grading_policy)
		xp_gained = xp_for_result(activity.xp_reward, result.passed, ledger_policy.consolation_ratio)
		ledger = apply_result(db, user_id, activity_id, xp_gained, result.score, result.passed, ledger_policy)
		outcome = SubmissionOutcome(
			result=result,
			xp_gained=xp_gained,
			new_level=ledger.new_level,
			new_xp=ledger.new_xp,
			attempts=ledger.attempt.attempts,
		)

	if result.passed:
		try:
			with store.session_scope() as db:
				update_proficiency(db, user_id, activity_id, result.passed, result.score)
		except Exception:
			logger.exception("Skill proficiency update failed for user %s, activity %s", user_id, activity_id)
	return outcome
