from __future__ import annotations
import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .credentials import load_api_key
from .crypto import CredentialCipher
from .db import Store
from .errors import ExtractionFailure, InvalidCredential, ResourceNotFound
from .gemini_client import GeminiClient
from .models import Resource
from .pdf_text import extract_text
from .settings import Settings

logger = logging.getLogger(__name__)

EXTRACTION_PLACEHOLDER = (
	"This PDF contains content that could not be extracted as text. It may contain images, "
	"scanned text, or be in a format that's not easily parsed. Please review the original PDF "
	"file for its contents."
)

ClientFactory = Callable[[str], GeminiClient]


def resource_payload(resource: Resource) -> Dict[str, Any]:
	return {
		"id": resource.id,
		"title": resource.title,
		"description": resource.description,
		"category": resource.category,
		"filePath": resource.file_path,
		"uploadedById": resource.uploaded_by_id,
		"aiProcessed": resource.ai_processed,
		"aiExplanation": resource.ai_explanation,
		"createdAt": resource.created_at.isoformat() if resource.created_at else None,
		"updatedAt": resource.updated_at.isoformat() if resource.updated_at else None,
	}


class AnnotationPipeline:
	"""Turns an uploaded PDF into a stored AI explanation.

	A processed resource with an explanation is returned as is unless
	``force`` is set. Text extraction problems never fail the pipeline: they
	store ``EXTRACTION_PLACEHOLDER`` instead. Generation errors propagate and
	leave the resource unprocessed.
	"""

	def __init__(
		self,
		store: Store,
		cipher: CredentialCipher,
		settings: Settings,
		client_factory: Optional[ClientFactory] = None,
	) -> None:
		self.store = store
		self.cipher = cipher
		self.settings = settings
		self.client_factory = client_factory or (lambda key: GeminiClient(key, settings=settings))
		self.upload_root = Path(settings.upload_root)

	def resolve_path(self, file_path: Optional[str]) -> Path:
		if not file_path:
			raise ExtractionFailure("Resource file path is missing")
		root = self.upload_root.resolve()
		path = (root / file_path.lstrip("/")).resolve()
		if root != path and root not in path.parents:
			raise ExtractionFailure("Resource file path points outside the upload root")
		return path

	async def annotate(self, resource_id: str, force: bool = False) -> Resource:
		with self.store.session_scope() as db:
			resource = db.get(Resource, resource_id)
			if resource is None:
				raise ResourceNotFound()
			if resource.ai_processed and resource.ai_explanation is not None and not force:
				logger.debug("Resource %s already explained, returning cached text", resource_id)
				return resource
			owner_id = resource.uploaded_by_id
			file_path = resource.file_path
			category = resource.category

		try:
			text = await asyncio.to_thread(extract_text, self.resolve_path(file_path))
		except ExtractionFailure as exc:
			logger.warning("No usable text in resource %s: %s", resource_id, exc)
			explanation = EXTRACTION_PLACEHOLDER
		else:
			explanation = await self._generate(owner_id, text, category)

		with self.store.session_scope() as db:
			resource = db.get(Resource, resource_id)
			if resource is None:
				raise ResourceNotFound()
			resource.ai_explanation = explanation
			resource.ai_processed = True
			db.flush()
			db.refresh(resource)
		logger.info("Stored explanation for resource %s (%s chars)", resource_id, len(explanation))
		return resource

	async def _generate(self, owner_id: str, text: str, category: str) -> str:
		with self.store.session_scope() as db:
			api_key = load_api_key(db, self.cipher, owner_id)
		api_key = api_key or self.settings.gemini_api_key
		if not api_key:
			raise InvalidCredential("No Gemini API key is available to explain this resource")
		client = self.client_factory(api_key)
		try:
			return await client.summarize_document(text[: self.settings.annotation_max_chars], category)
		finally:
			await client.aclose()
