from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..annotation import ClientFactory
from ..credentials import delete_api_key, has_api_key, save_api_key
from ..crypto import CredentialCipher
from ..db import get_db
from ..deps import get_cipher, get_client_factory
from ..enums import SUPPORTED_SERVICES
from ..gemini_client import validate_key
from ..profiles import get_or_create_profile, profile_payload
from .auth import get_current_user, User

router = APIRouter(prefix="/user", tags=["user"])


class ApiKeyRequest(BaseModel):
	service: Optional[str] = None
	api_key: Optional[str] = Field(default=None, alias="apiKey")


def _checked_service(service: Optional[str]) -> str:
	if service not in SUPPORTED_SERVICES:
		raise HTTPException(status_code=400, detail="Unsupported service")
	return service


@router.get("/profile")
def get_profile(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	profile = get_or_create_profile(db, user.id)
	payload = profile_payload(db, profile)
	db.commit()
	return payload


@router.get("/apikey")
def check_api_key(
	service: str = "gemini",
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	service = _checked_service(service)
	return {"hasKey": has_api_key(db, user.id, service)}


@router.post("/apikey")
def store_api_key(
	req: ApiKeyRequest,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
	cipher: CredentialCipher = Depends(get_cipher),
):
	if not req.service or not req.api_key:
		raise HTTPException(status_code=400, detail="Service and API key are required")
	service = _checked_service(req.service)
	# Saving a key is the first thing many users do; make sure a profile exists
	get_or_create_profile(db, user.id)
	save_api_key(db, cipher, user.id, service, req.api_key)
	db.commit()
	return {"success": True}


@router.delete("/apikey")
def remove_api_key(
	service: str = "gemini",
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	service = _checked_service(service)
	deleted = delete_api_key(db, user.id, service)
	db.commit()
	return {"success": True, "deleted": deleted}


@router.post("/validate-apikey")
async def validate_api_key(
	req: ApiKeyRequest,
	user: User = Depends(get_current_user),
	factory: ClientFactory = Depends(get_client_factory),
):
	if not req.service or not req.api_key:
		raise HTTPException(status_code=400, detail="Service and API key are required")
	_checked_service(req.service)
	result = await validate_key(req.api_key, client_factory=factory)
	return result.as_dict()
