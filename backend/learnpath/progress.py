from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from .errors import ProfileNotFound
from .models import UserActivityProgress, UserProfile

logger = logging.getLogger(__name__)

LEVEL_UP_SINGLE = "single"
LEVEL_UP_CASCADE = "cascade"
COMPLETION_LATEST = "latest"
COMPLETION_STICKY = "sticky"


@dataclass(frozen=True)
class LedgerPolicy:
	xp_per_level: int = 100
	consolation_ratio: float = 0.1
	level_up: str = LEVEL_UP_SINGLE
	completion: str = COMPLETION_LATEST

	def __post_init__(self) -> None:
		if self.level_up not in (LEVEL_UP_SINGLE, LEVEL_UP_CASCADE):
			raise ValueError(f"unknown level-up policy: {self.level_up!r}")
		if self.completion not in (COMPLETION_LATEST, COMPLETION_STICKY):
			raise ValueError(f"unknown completion policy: {self.completion!r}")
		if self.xp_per_level <= 0:
			raise ValueError("xp_per_level must be positive")

	@classmethod
	def from_settings(cls, settings: Any) -> "LedgerPolicy":
		return cls(
			xp_per_level=settings.xp_per_level,
			consolation_ratio=settings.consolation_xp_ratio,
			level_up=settings.level_up_policy,
			completion=settings.completion_policy,
		)


@dataclass
class LedgerResult:
	previous_level: int
	new_level: int
	new_xp: int
	attempt: UserActivityProgress

	@property
	def leveled_up(self) -> bool:
		return self.new_level > self.previous_level


def xp_for_result(xp_reward: int, passed: bool, ratio: float = 0.1) -> int:
	"""Full reward on a pass, otherwise the floor of ``xp_reward * ratio``."""
	if passed:
		return xp_reward
	# Decimal keeps e.g. 70 * 0.1 from flooring to 6
	return math.floor(Decimal(xp_reward) * Decimal(str(ratio)))


def next_level(level: int, new_xp: int, xp_per_level: int = 100, policy: str = LEVEL_UP_SINGLE) -> int:
	"""Level after reaching ``new_xp``.

	Leaving level ``L`` needs ``L * xp_per_level`` XP, checked against the
	level held before the update. ``single`` grants at most one level per call;
	``cascade`` keeps going while the next threshold is also met.
	"""
	if new_xp < level * xp_per_level:
		return level
	if policy == LEVEL_UP_SINGLE:
		return level + 1
	while new_xp >= level * xp_per_level:
		level += 1
	return level


def apply_result(
	db: Session,
	user_id: str,
	activity_id: str,
	xp_gained: int,
	score: int,
	passed: bool,
	policy: Optional[LedgerPolicy] = None,
) -> LedgerResult:
	"""Credit XP and record the attempt, inside the caller's transaction.

	Nothing is committed here; the caller commits the profile and attempt
	changes together or rolls both back.
	"""
	policy = policy or LedgerPolicy()
	if xp_gained < 0:
		raise ValueError("xp_gained must not be negative")
	if not 0 <= score <= 100:
		raise ValueError("score must be within 0..100")

	# The increment is the first write of the transaction, so it takes the
	# write lock before anything below is read.
	credited = db.execute(
		update(UserProfile)
		.where(UserProfile.user_id == user_id)
		.values(xp=UserProfile.xp + xp_gained)
		.execution_options(synchronize_session=False)
	)
	if credited.rowcount == 0:
		raise ProfileNotFound()
	profile = db.execute(
		select(UserProfile)
		.where(UserProfile.user_id == user_id)
		.execution_options(populate_existing=True)
	).scalar_one()

	previous_level = profile.level
	new_xp = profile.xp
	new_level = next_level(previous_level, new_xp, policy.xp_per_level, policy.level_up)
	profile.level = new_level

	now = datetime.utcnow()
	attempt = db.execute(
		select(UserActivityProgress)
		.where(UserActivityProgress.user_id == user_id, UserActivityProgress.activity_id == activity_id)
		.with_for_update()
	).scalar_one_or_none()
	if attempt is None:
		attempt = UserActivityProgress(
			user_id=user_id,
			activity_id=activity_id,
			score=score,
			completed=passed,
			ever_completed=passed,
			attempts=1,
			last_attempt=now,
		)
		db.add(attempt)
	else:
		attempt.attempts += 1
		attempt.score = score
		if policy.completion == COMPLETION_STICKY:
			attempt.completed = attempt.completed or passed
		else:
			attempt.completed = passed
		attempt.ever_completed = attempt.ever_completed or passed
		attempt.last_attempt = now
	db.flush()

	if new_level > previous_level:
		logger.info("User %s reached level %s (xp=%s)", user_id, new_level, new_xp)
	return LedgerResult(previous_level=previous_level, new_level=new_level, new_xp=new_xp, attempt=attempt)
