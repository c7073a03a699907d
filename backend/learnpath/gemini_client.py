from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx

from . import prompts
from .errors import GenerationError, InvalidCredential, RateLimited, UpstreamError
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

INVALID_KEY_MESSAGE = "Invalid API key. Please check your Gemini API key and try again."
RATE_LIMIT_MESSAGE = "API rate limit exceeded. Please try again later."
VALIDATION_FAILED_MESSAGE = "Failed to validate API key. Please check your API key and try again."
VALIDATION_PROMPT = 'Hello, please respond with "valid" if you can read this message.'


class GeminiClient:
	"""One user's view of the Gemini ``generateContent`` endpoint.

	Every call is independent. Failures come out as ``InvalidCredential``,
	``RateLimited`` or ``UpstreamError``; nothing is retried here.
	"""

	def __init__(
		self,
		api_key: str,
		*,
		settings: Optional[Settings] = None,
		model: Optional[str] = None,
		base_url: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		if not api_key:
			raise InvalidCredential("Gemini API key is required")
		self.settings = settings or default_settings
		self.api_key = api_key
		self.model = model or self.settings.gemini_model
		self.provider = self.settings.gemini_provider
		if self.provider == "vertex":
			region = self.settings.vertex_region
			project = self.settings.vertex_project or "placeholder-project"
			# Vertex AI Generative REST endpoint (API key via header)
			self.base_url = base_url or (
				f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{self.model}:generateContent"
			)
			self._auth_in_query = False
		else:
			# Google AI Studio (Generative Language API)
			self.base_url = base_url or f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
			self._auth_in_query = True
		self._client = httpx.AsyncClient(timeout=self.settings.gemini_timeout_seconds, transport=transport)

	async def __aenter__(self) -> "GeminiClient":
		return self

	async def __aexit__(self, *exc_info: Any) -> None:
		await self.aclose()

	async def generate(self, prompt: str) -> str:
		payload: Dict[str, Any] = {
			"contents": [{"parts": [{"text": prompt}]}],
			"generationConfig": {
				"temperature": self.settings.gemini_temperature,
				"topP": 0.95,
				"topK": 40,
				"maxOutputTokens": self.settings.gemini_max_output_tokens,
			},
		}
		return await self._post_payload(payload)

	async def _post_payload(self, payload: Dict[str, Any]) -> str:
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		try:
			r = await self._client.post(self.base_url, params=params, headers=headers, json=payload)
		except httpx.RequestError as net_err:
			logger.warning("Gemini request failed: %s", net_err.__class__.__name__)
			raise UpstreamError() from net_err
		if r.status_code >= 400:
			raise classify_response(r)
		try:
			data = r.json()
			text = data["candidates"][0]["content"]["parts"][0]["text"]
		except (ValueError, KeyError, IndexError, TypeError) as parse_err:
			logger.warning("Unexpected Gemini response (status %s)", r.status_code)
			raise UpstreamError() from parse_err
		if not isinstance(text, str) or not text.strip():
			raise UpstreamError("Gemini returned an empty response")
		return text.strip()

	async def aclose(self) -> None:
		await self._client.aclose()

	# Domain helpers. Each returns the raw generated text.

	async def explain_code(self, code_snippet: str, context: str) -> str:
		return await self.generate(prompts.explain_code(code_snippet, context))

	async def elaborate_concept(self, concept_name: str, context: str) -> str:
		return await self.generate(prompts.elaborate_concept(concept_name, context))

	async def suggest_alternative(self, code_snippet: str, context: str) -> str:
		return await self.generate(prompts.suggest_alternative(code_snippet, context))

	async def dynamic_content(
		self,
		concept_name: str,
		content_type: str,
		context: Optional[str] = None,
		user_question: Optional[str] = None,
	) -> str:
		prompt = prompts.dynamic_content(concept_name, content_type, context=context, user_question=user_question)
		return await self.generate(prompt)

	async def explain_book_concept(self, name: str, description: str, tags: list[str]) -> str:
		return await self.generate(prompts.book_concept(name, description, tags))

	async def summarize_document(self, text: str, category: str) -> str:
		return await self.generate(prompts.summarize_document(text, category))


def _error_message(r: httpx.Response) -> str:
	try:
		body = r.json()
	except ValueError:
		return r.text or ""
	err = body.get("error") if isinstance(body, dict) else None
	if isinstance(err, dict):
		return f"{err.get('status', '')} {err.get('message', '')}".strip()
	return str(body)


def classify_response(r: httpx.Response) -> GenerationError:
	message = _error_message(r)
	lowered = message.lower()
	if r.status_code in (401, 403) or (r.status_code == 400 and "api key" in lowered):
		logger.info("Gemini rejected the credential (status %s)", r.status_code)
		return InvalidCredential()
	if r.status_code == 429 or "resource_exhausted" in lowered or "rate limit" in lowered:
		logger.info("Gemini rate limited the request")
		return RateLimited()
	logger.warning("Gemini call failed with status %s: %s", r.status_code, message[:200])
	return UpstreamError()


@dataclass
class KeyValidation:
	valid: bool
	error: Optional[str] = None

	def as_dict(self) -> Dict[str, Any]:
		out: Dict[str, Any] = {"valid": self.valid}
		if self.error:
			out["error"] = self.error
		return out


async def validate_key(
	api_key: str,
	*,
	settings: Optional[Settings] = None,
	transport: Optional[httpx.AsyncBaseTransport] = None,
	client_factory: Optional[Callable[[str], "GeminiClient"]] = None,
) -> KeyValidation:
	"""Classify a key with one throwaway request. Never raises."""
	try:
		if client_factory is not None:
			client = client_factory(api_key)
		else:
			client = GeminiClient(api_key, settings=settings, transport=transport)
	except InvalidCredential:
		return KeyValidation(valid=False, error=INVALID_KEY_MESSAGE)
	try:
		await client.generate(VALIDATION_PROMPT)
		return KeyValidation(valid=True)
	except InvalidCredential:
		return KeyValidation(valid=False, error=INVALID_KEY_MESSAGE)
	except RateLimited:
		return KeyValidation(valid=False, error=RATE_LIMIT_MESSAGE)
	except Exception:
		logger.exception("Error validating Gemini API key")
		return KeyValidation(valid=False, error=VALIDATION_FAILED_MESSAGE)
	finally:
		await client.aclose()
