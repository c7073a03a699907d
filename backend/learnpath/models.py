from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import (
	JSON,
	Boolean,
	CheckConstraint,
	Column,
	DateTime,
	Enum,
	ForeignKey,
	Integer,
	String,
	Table,
	Text,
	UniqueConstraint,
)
from sqlalchemy.orm import relationship
from .db import Base
from .enums import ActivityType, ProficiencyLevel


def _new_id() -> str:
	return uuid.uuid4().hex


class User(Base):
	__tablename__ = "users"
	id = Column(String(32), primary_key=True, default=_new_id)
	username = Column(String(128), unique=True, nullable=False, index=True)
	password_hash = Column(String(256), nullable=False)
	is_admin = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	profile = relationship("UserProfile", back_populates="user", uselist=False)


class Module(Base):
	__tablename__ = "modules"
	id = Column(String(32), primary_key=True, default=_new_id)
	title = Column(String(256), nullable=False)
	description = Column(Text, nullable=True)
	order = Column(Integer, default=0, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	activities = relationship("Activity", back_populates="module", order_by="Activity.order")


activity_skills = Table(
	"activity_skills",
	Base.metadata,
	Column("activity_id", String(32), ForeignKey("activities.id", ondelete="CASCADE"), primary_key=True),
	Column("skill_id", String(32), ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
)


class Skill(Base):
	__tablename__ = "skills"
	id = Column(String(32), primary_key=True, default=_new_id)
	name = Column(String(128), unique=True, nullable=False)
	category = Column(String(128), default="general", nullable=False)
	description = Column(Text, nullable=True)


class Activity(Base):
	__tablename__ = "activities"
	id = Column(String(32), primary_key=True, default=_new_id)
	module_id = Column(String(32), ForeignKey("modules.id"), nullable=True, index=True)
	title = Column(String(256), nullable=False)
	description = Column(Text, nullable=True)
	type = Column(Enum(ActivityType, native_enum=False), nullable=False)
	# Structured per activity type, see grading.py
	content = Column(JSON, nullable=False, default=dict)
	xp_reward = Column(Integer, nullable=False)
	order = Column(Integer, default=0, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	module = relationship("Module", back_populates="activities")
	skills = relationship("Skill", secondary=activity_skills, lazy="selectin")

	__table_args__ = (CheckConstraint("xp_reward > 0", name="ck_activity_xp_reward_positive"),)


class UserProfile(Base):
	__tablename__ = "user_profiles"
	id = Column(String(32), primary_key=True, default=_new_id)
	user_id = Column(String(32), ForeignKey("users.id"), unique=True, nullable=False, index=True)
	level = Column(Integer, default=1, nullable=False)
	xp = Column(Integer, default=0, nullable=False)
	current_module_id = Column(String(32), ForeignKey("modules.id"), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	user = relationship("User", back_populates="profile")
	current_module = relationship("Module")
	skill_proficiencies = relationship("UserSkillProficiency", back_populates="profile")

	__table_args__ = (
		CheckConstraint("level >= 1", name="ck_profile_level_min"),
		CheckConstraint("xp >= 0", name="ck_profile_xp_min"),
	)


class UserSkillProficiency(Base):
	__tablename__ = "user_skill_proficiencies"
	id = Column(String(32), primary_key=True, default=_new_id)
	profile_id = Column(String(32), ForeignKey("user_profiles.id"), nullable=False, index=True)
	skill_id = Column(String(32), ForeignKey("skills.id"), nullable=False)
	proficiency = Column(Integer, default=0, nullable=False)
	proficiency_level = Column(
		Enum(ProficiencyLevel, native_enum=False), default=ProficiencyLevel.NOVICE, nullable=False
	)
	# Passing submissions that counted towards this skill
	passes = Column(Integer, default=0, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	profile = relationship("UserProfile", back_populates="skill_proficiencies")
	skill = relationship("Skill")

	__table_args__ = (UniqueConstraint("profile_id", "skill_id", name="uq_profile_skill"),)


class UserActivityProgress(Base):
	__tablename__ = "user_activity_progress"
	id = Column(String(32), primary_key=True, default=_new_id)
	user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
	activity_id = Column(String(32), ForeignKey("activities.id"), nullable=False)
	score = Column(Integer, default=0, nullable=False)
	completed = Column(Boolean, default=False, nullable=False)
	# Sticky: true once any attempt has passed
	ever_completed = Column(Boolean, default=False, nullable=False)
	attempts = Column(Integer, default=0, nullable=False)
	last_attempt = Column(DateTime, default=datetime.utcnow, nullable=False)

	__table_args__ = (UniqueConstraint("user_id", "activity_id", name="uq_user_activity"),)


class Resource(Base):
	__tablename__ = "resources"
	id = Column(String(32), primary_key=True, default=_new_id)
	title = Column(String(256), nullable=False)
	description = Column(Text, nullable=True)
	category = Column(String(64), default="GENERAL", nullable=False)
	# Relative to settings.upload_root
	file_path = Column(String(512), nullable=True)
	uploaded_by_id = Column(String(32), ForeignKey("users.id"), nullable=False)
	ai_processed = Column(Boolean, default=False, nullable=False)
	ai_explanation = Column(Text, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class UserApiKey(Base):
	__tablename__ = "user_api_keys"
	id = Column(String(32), primary_key=True, default=_new_id)
	profile_id = Column(String(32), ForeignKey("user_profiles.id"), nullable=False, index=True)
	service = Column(String(64), nullable=False)
	encrypted_key = Column(Text, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	__table_args__ = (UniqueConstraint("profile_id", "service", name="uq_profile_service"),)


class ConceptExplanation(Base):
	__tablename__ = "concept_explanations"
	id = Column(String(32), primary_key=True, default=_new_id)
	concept_id = Column(String(64), nullable=False)
	user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
	explanation = Column(Text, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

	__table_args__ = (UniqueConstraint("concept_id", "user_id", name="uq_concept_user"),)
