from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..annotation import ClientFactory
from ..credentials import load_api_key
from ..crypto import CredentialCipher
from ..db import get_db
from ..deps import get_cipher, get_client_factory
from ..errors import ApiKeyNotFound, ProfileNotFound
from ..gemini_client import GeminiClient
from ..models import UserProfile
from ..prompts import DYNAMIC_CONTENT_TYPES
from .auth import get_current_user, User

router = APIRouter(prefix="/ai", tags=["ai"])


class CodeRequest(BaseModel):
	code_snippet: Optional[str] = None
	context: Optional[str] = None


class ConceptRequest(BaseModel):
	concept_name: Optional[str] = None
	context: Optional[str] = None


class DynamicContentRequest(BaseModel):
	concept_name: Optional[str] = Field(default=None, alias="conceptName")
	content_type: Optional[str] = Field(default=None, alias="contentType")
	context: Optional[str] = None
	user_question: Optional[str] = Field(default=None, alias="userQuestion")


async def user_client(
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
	cipher: CredentialCipher = Depends(get_cipher),
	factory: ClientFactory = Depends(get_client_factory),
):
	"""Gemini client bound to the caller's stored key."""
	if db.execute(select(UserProfile.id).where(UserProfile.user_id == user.id)).scalar_one_or_none() is None:
		raise ProfileNotFound()
	api_key = load_api_key(db, cipher, user.id)
	if not api_key:
		raise ApiKeyNotFound()
	client = factory(api_key)
	try:
		yield client
	finally:
		await client.aclose()


@router.post("/explain-code")
async def explain_code(req: CodeRequest, client: GeminiClient = Depends(user_client)):
	if not req.code_snippet:
		raise HTTPException(status_code=400, detail="Code snippet is required")
	explanation = await client.explain_code(req.code_snippet, req.context or "data analysis")
	return {"explanation": explanation}


@router.post("/explain-concept")
async def explain_concept(req: ConceptRequest, client: GeminiClient = Depends(user_client)):
	if not req.concept_name:
		raise HTTPException(status_code=400, detail="Concept name is required")
	explanation = await client.elaborate_concept(req.concept_name, req.context or "data analysis")
	return {"explanation": explanation}


@router.post("/suggest-alternative")
async def suggest_alternative(req: CodeRequest, client: GeminiClient = Depends(user_client)):
	if not req.code_snippet:
		raise HTTPException(status_code=400, detail="Code snippet is required")
	suggestion = await client.suggest_alternative(req.code_snippet, req.context or "data analysis")
	return {"suggestion": suggestion}


@router.post("/dynamic-content")
async def dynamic_content(req: DynamicContentRequest, client: GeminiClient = Depends(user_client)):
	if not req.concept_name or not req.content_type:
		raise HTTPException(status_code=400, detail="Concept name and content type are required")
	if req.content_type not in DYNAMIC_CONTENT_TYPES:
		raise HTTPException(status_code=400, detail=f"Unsupported content type: {req.content_type}")
	if req.content_type == "question" and not req.user_question:
		raise HTTPException(status_code=400, detail="User question is required for question content type")
	content = await client.dynamic_content(
		req.concept_name, req.content_type, context=req.context, user_question=req.user_question
	)
	return {
		"content": content,
		"source": "gemini",
		"timestamp": datetime.now(timezone.utc).isoformat(),
	}
