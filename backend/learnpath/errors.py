from __future__ import annotations


class LearnPathError(Exception):
	"""Base for errors surfaced at the HTTP boundary as ``{"error": message}``."""

	status_code = 500
	default_message = "Internal server error"

	def __init__(self, message: str | None = None) -> None:
		self.message = message or self.default_message
		super().__init__(self.message)


class UnsupportedActivityType(LearnPathError):
	status_code = 400
	default_message = "Unsupported activity type"


class ActivityNotFound(LearnPathError):
	status_code = 404
	default_message = "Activity not found"


class ProfileNotFound(LearnPathError):
	status_code = 404
	default_message = "User profile not found"


class ResourceNotFound(LearnPathError):
	status_code = 404
	default_message = "Resource not found"


class ConceptNotFound(LearnPathError):
	status_code = 404
	default_message = "Concept not found"


class ApiKeyNotFound(LearnPathError):
	status_code = 400
	default_message = "Gemini API key not found. Please add your API key in settings."


class GenerationError(LearnPathError):
	"""Failure reported by the generative content API."""


class InvalidCredential(GenerationError):
	status_code = 401
	default_message = "Invalid Gemini API key. Please check your API key in settings."


class RateLimited(GenerationError):
	status_code = 429
	default_message = "Gemini API rate limit exceeded. Please try again later."


class UpstreamError(GenerationError):
	status_code = 500
	default_message = "Failed to generate content. Please try again later."


class CredentialDecryptError(LearnPathError):
	default_message = "Failed to decrypt data"


class ExtractionFailure(Exception):
	"""No usable text could be pulled out of a PDF. Recovered by the pipeline."""
