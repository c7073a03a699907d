from __future__ import annotations
import logging
from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from .models import UserProfile
from .skills import proficiency_summary

logger = logging.getLogger(__name__)


def get_or_create_profile(db: Session, user_id: str) -> UserProfile:
	"""Profile of ``user_id``, created at level 1 with 0 XP on first access."""
	profile = db.execute(
		select(UserProfile).where(UserProfile.user_id == user_id).options(selectinload(UserProfile.current_module))
	).scalar_one_or_none()
	if profile is None:
		profile = UserProfile(user_id=user_id, level=1, xp=0)
		db.add(profile)
		db.flush()
		logger.info("Created profile for user %s", user_id)
	return profile


def profile_payload(db: Session, profile: UserProfile) -> Dict[str, Any]:
	module = profile.current_module
	return {
		"id": profile.id,
		"userId": profile.user_id,
		"level": profile.level,
		"xp": profile.xp,
		"currentModule": {"id": module.id, "title": module.title} if module else None,
		"skills": proficiency_summary(db, profile.user_id),
	}
