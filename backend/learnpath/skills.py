from __future__ import annotations
import logging
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from .enums import ActivityType, ProficiencyLevel
from .errors import ProfileNotFound
from .models import Activity, UserProfile, UserSkillProficiency

logger = logging.getLogger(__name__)

PROFICIENCY_BASELINE = 10
PROFICIENCY_MAX = 100
# A perfect score closes a quarter of the remaining gap to PROFICIENCY_MAX
GAIN_DIVISOR = 400

# Lowest proficiency at which each tier starts, highest first
TIER_FLOORS = [
	(80, ProficiencyLevel.MASTER),
	(50, ProficiencyLevel.JOURNEYMAN),
	(25, ProficiencyLevel.APPRENTICE),
]

# Highest tier an activity type can grant; only assessments reach MASTER
TYPE_TIER_CAPS = {
	ActivityType.LEARN_QUIZ: ProficiencyLevel.APPRENTICE,
	ActivityType.PRACTICE_DRILL: ProficiencyLevel.JOURNEYMAN,
	ActivityType.APPLY_CHALLENGE: ProficiencyLevel.JOURNEYMAN,
	ActivityType.ASSESS_TEST: ProficiencyLevel.MASTER,
}


def proficiency_gain(current: int, score: int) -> int:
	"""Diminishing-returns increase, monotonic in ``score``.

	Never takes the proficiency past ``PROFICIENCY_MAX``.
	"""
	remaining = PROFICIENCY_MAX - current
	if remaining <= 0 or score <= 0:
		return 0
	return min(remaining, -(-(remaining * min(score, 100)) // GAIN_DIVISOR))


def tier_for(proficiency: int) -> ProficiencyLevel:
	for floor, tier in TIER_FLOORS:
		if proficiency >= floor:
			return tier
	return ProficiencyLevel.NOVICE


def _capped_tier(proficiency: int, activity_type: ActivityType, current: ProficiencyLevel) -> ProficiencyLevel:
	tier = tier_for(proficiency)
	cap = TYPE_TIER_CAPS.get(activity_type, ProficiencyLevel.APPRENTICE)
	if tier.rank > cap.rank:
		tier = cap
	# Tiers are never lowered
	return tier if tier.rank > current.rank else current


def update_proficiency(db: Session, user_id: str, activity_id: str, passed: bool, score: int) -> None:
	"""Raise proficiency on every skill tagged to the activity.

	Meant for passing submissions only; a failing one changes nothing. The
	caller owns the transaction.
	"""
	if not passed:
		return
	activity = db.execute(
		select(Activity).where(Activity.id == activity_id).options(selectinload(Activity.skills))
	).scalar_one_or_none()
	if activity is None or not activity.skills:
		return
	profile = db.execute(select(UserProfile).where(UserProfile.user_id == user_id)).scalar_one_or_none()
	if profile is None:
		raise ProfileNotFound()

	existing = {
		row.skill_id: row
		for row in db.execute(
			select(UserSkillProficiency)
			.where(UserSkillProficiency.profile_id == profile.id)
			.with_for_update()
		).scalars()
	}
	for skill in activity.skills:
		row = existing.get(skill.id)
		if row is None:
			row = UserSkillProficiency(
				profile_id=profile.id,
				skill_id=skill.id,
				proficiency=PROFICIENCY_BASELINE,
				proficiency_level=ProficiencyLevel.NOVICE,
				passes=1,
			)
			db.add(row)
		else:
			row.proficiency = min(PROFICIENCY_MAX, row.proficiency + proficiency_gain(row.proficiency, score))
			row.passes += 1
		row.proficiency_level = _capped_tier(row.proficiency, activity.type, row.proficiency_level)
		logger.debug("Skill %s for profile %s now at %s", skill.name, profile.id, row.proficiency)
	db.flush()


def proficiency_summary(db: Session, user_id: str) -> Dict[str, Any]:
	counts = {level.value: 0 for level in ProficiencyLevel}
	by_category: Dict[str, List[Dict[str, Any]]] = {}
	profile = db.execute(select(UserProfile).where(UserProfile.user_id == user_id)).scalar_one_or_none()
	if profile is None:
		return {"totalSkills": 0, "proficiencyLevels": counts, "skillsByCategory": by_category}

	rows = db.execute(
		select(UserSkillProficiency)
		.where(UserSkillProficiency.profile_id == profile.id)
		.options(selectinload(UserSkillProficiency.skill))
	).scalars().all()
	for row in rows:
		counts[row.proficiency_level.value] += 1
		by_category.setdefault(row.skill.category, []).append({
			"name": row.skill.name,
			"proficiency": row.proficiency,
			"proficiencyLevel": row.proficiency_level.value,
		})
	return {"totalSkills": len(rows), "proficiencyLevels": counts, "skillsByCategory": by_category}
