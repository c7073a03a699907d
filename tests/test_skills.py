"""Tests for skill proficiency updates."""

from __future__ import annotations

import pytest
from sqlalchemy import select

from learnpath.enums import ProficiencyLevel
from learnpath.models import UserProfile, UserSkillProficiency
from learnpath.skills import (
	PROFICIENCY_BASELINE,
	PROFICIENCY_MAX,
	proficiency_gain,
	proficiency_summary,
	tier_for,
	update_proficiency,
)
from learnpath.errors import ProfileNotFound
from learnpath.submission import submit_activity


def _rows(store, user_id):
	with store.session_scope() as db:
		profile_id = db.execute(select(UserProfile.id).where(UserProfile.user_id == user_id)).scalar_one()
		rows = db.execute(
			select(UserSkillProficiency).where(UserSkillProficiency.profile_id == profile_id)
		).scalars().all()
		return {row.skill_id: row for row in rows}


class TestGain:
	def test_perfect_score_closes_a_quarter_of_the_gap(self):
		assert proficiency_gain(10, 100) == 23

	def test_monotonic_in_score(self):
		gains = [proficiency_gain(40, score) for score in range(0, 101, 10)]
		assert gains == sorted(gains)

	def test_never_exceeds_max(self):
		current = PROFICIENCY_BASELINE
		for _ in range(200):
			current += proficiency_gain(current, 100)
			assert current <= PROFICIENCY_MAX
		assert current == PROFICIENCY_MAX

	def test_zero_at_max(self):
		assert proficiency_gain(PROFICIENCY_MAX, 100) == 0


@pytest.mark.parametrize("value, tier", [
	(0, ProficiencyLevel.NOVICE),
	(24, ProficiencyLevel.NOVICE),
	(25, ProficiencyLevel.APPRENTICE),
	(50, ProficiencyLevel.JOURNEYMAN),
	(79, ProficiencyLevel.JOURNEYMAN),
	(80, ProficiencyLevel.MASTER),
])
def test_tier_for(value, tier):
	assert tier_for(value) is tier


class TestUpdateProficiency:
	def test_creates_rows_at_baseline(self, store, seed):
		with store.session_scope() as db:
			update_proficiency(db, seed.user_id, seed.drill_id, True, 100)
		rows = _rows(store, seed.user_id)
		assert set(rows) == {seed.skill_ids[0], seed.skill_ids[1]}
		assert all(row.proficiency == PROFICIENCY_BASELINE for row in rows.values())
		assert all(row.passes == 1 for row in rows.values())

	def test_second_pass_adds_gain(self, store, seed):
		for _ in range(2):
			with store.session_scope() as db:
				update_proficiency(db, seed.user_id, seed.quiz_id, True, 100)
		row = _rows(store, seed.user_id)[seed.skill_ids[0]]
		assert row.proficiency == PROFICIENCY_BASELINE + proficiency_gain(PROFICIENCY_BASELINE, 100)
		assert row.passes == 2
		assert row.proficiency_level is ProficiencyLevel.APPRENTICE

	def test_failing_result_changes_nothing(self, store, seed):
		with store.session_scope() as db:
			update_proficiency(db, seed.user_id, seed.quiz_id, False, 20)
		assert _rows(store, seed.user_id) == {}

	def test_quiz_tier_is_capped(self, store, seed):
		for _ in range(30):
			with store.session_scope() as db:
				update_proficiency(db, seed.user_id, seed.quiz_id, True, 100)
		row = _rows(store, seed.user_id)[seed.skill_ids[0]]
		assert row.proficiency >= 80
		assert row.proficiency_level is ProficiencyLevel.APPRENTICE

	def test_assessment_reaches_master(self, store, seed):
		for _ in range(30):
			with store.session_scope() as db:
				update_proficiency(db, seed.user_id, seed.assessment_id, True, 100)
		assert _rows(store, seed.user_id)[seed.skill_ids[2]].proficiency_level is ProficiencyLevel.MASTER

	def test_missing_profile(self, store, seed):
		with pytest.raises(ProfileNotFound):
			with store.session_scope() as db:
				update_proficiency(db, seed.stranger_id, seed.quiz_id, True, 100)


def test_submission_updates_skills_only_on_pass(store, seed):
	submit_activity(store, seed.user_id, seed.quiz_id, {"answers": {"q1": "z"}})
	assert _rows(store, seed.user_id) == {}
	submit_activity(store, seed.user_id, seed.quiz_id, {"answers": {"q1": "a", "q2": "b", "q3": "c"}})
	assert seed.skill_ids[0] in _rows(store, seed.user_id)


def test_proficiency_summary(store, seed):
	with store.session_scope() as db:
		update_proficiency(db, seed.user_id, seed.drill_id, True, 100)
		update_proficiency(db, seed.user_id, seed.assessment_id, True, 100)
	with store.session_scope() as db:
		summary = proficiency_summary(db, seed.user_id)
	assert summary["totalSkills"] == 3
	assert summary["proficiencyLevels"]["NOVICE"] == 3
	assert sorted(summary["skillsByCategory"]) == ["pandas", "python-basics"]
