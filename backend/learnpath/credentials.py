from __future__ import annotations
import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from .crypto import CredentialCipher
from .errors import ProfileNotFound
from .models import UserApiKey, UserProfile

logger = logging.getLogger(__name__)


def _profile_id(db: Session, user_id: str) -> Optional[str]:
	return db.execute(select(UserProfile.id).where(UserProfile.user_id == user_id)).scalar_one_or_none()


def _require_profile_id(db: Session, user_id: str) -> str:
	profile_id = _profile_id(db, user_id)
	if profile_id is None:
		raise ProfileNotFound()
	return profile_id


def save_api_key(db: Session, cipher: CredentialCipher, user_id: str, service: str, api_key: str) -> UserApiKey:
	"""Upsert the encrypted key; one row per (profile, service)."""
	profile_id = _require_profile_id(db, user_id)
	encrypted = cipher.encrypt(api_key)
	row = db.execute(
		select(UserApiKey).where(UserApiKey.profile_id == profile_id, UserApiKey.service == service).with_for_update()
	).scalar_one_or_none()
	if row is None:
		row = UserApiKey(profile_id=profile_id, service=service, encrypted_key=encrypted)
		db.add(row)
	else:
		row.encrypted_key = encrypted
	db.flush()
	logger.info("Stored %s API key for profile %s", service, profile_id)
	return row


def has_api_key(db: Session, user_id: str, service: str) -> bool:
	profile_id = _require_profile_id(db, user_id)
	row = db.execute(
		select(UserApiKey.id).where(UserApiKey.profile_id == profile_id, UserApiKey.service == service)
	).scalar_one_or_none()
	return row is not None


def delete_api_key(db: Session, user_id: str, service: str) -> bool:
	profile_id = _require_profile_id(db, user_id)
	res = db.execute(
		delete(UserApiKey).where(UserApiKey.profile_id == profile_id, UserApiKey.service == service)
	)
	return bool(res.rowcount)


def load_api_key(db: Session, cipher: CredentialCipher, user_id: str, service: str = "gemini") -> Optional[str]:
	"""Plaintext key for immediate use, or None. Never persist the result."""
	profile_id = _profile_id(db, user_id)
	if profile_id is None:
		return None
	encrypted = db.execute(
		select(UserApiKey.encrypted_key).where(UserApiKey.profile_id == profile_id, UserApiKey.service == service)
	).scalar_one_or_none()
	if encrypted is None:
		return None
	return cipher.decrypt(encrypted)
