from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Default/admin key, used when a resource owner has no stored key
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.0-flash", validation_alias="GEMINI_MODEL")
	# None means no client-side timeout; the HTTP layer in front of us enforces one
	gemini_timeout_seconds: float | None = Field(default=None, validation_alias="GEMINI_TIMEOUT_SECONDS")
	gemini_temperature: float = Field(default=0.7, validation_alias="GEMINI_TEMPERATURE")
	gemini_max_output_tokens: int = Field(default=2048, validation_alias="GEMINI_MAX_OUTPUT_TOKENS")
	# Vertex configuration
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")

	# Credential encryption
	encryption_key: str = Field(default="default-encryption-key-change-in-production", validation_alias="ENCRYPTION_KEY")
	encryption_iv: str = Field(default="default-iv-16-byt", validation_alias="ENCRYPTION_IV")
	# "legacy" keeps the fixed IV, "random-iv" writes a fresh IV per value
	encryption_mode: Literal["legacy", "random-iv"] = Field(default="legacy", validation_alias="ENCRYPTION_MODE")

	# Auth configuration
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	access_token_expire_minutes: int = Field(default=120, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")

	# Grading and progression
	quiz_pass_threshold: int = Field(default=70, ge=1, le=100, validation_alias="QUIZ_PASS_THRESHOLD")
	code_pass_threshold: int = Field(default=70, ge=1, le=100, validation_alias="CODE_PASS_THRESHOLD")
	consolation_xp_ratio: float = Field(default=0.1, ge=0, le=1, validation_alias="CONSOLATION_XP_RATIO")
	xp_per_level: int = Field(default=100, gt=0, validation_alias="XP_PER_LEVEL")
	# "single" grants at most one level per submission, "cascade" keeps promoting
	level_up_policy: Literal["single", "cascade"] = Field(default="single", validation_alias="LEVEL_UP_POLICY")
	# "latest" mirrors the latest verdict, "sticky" keeps completed once passed
	completion_policy: Literal["latest", "sticky"] = Field(default="latest", validation_alias="COMPLETION_POLICY")

	# Resource annotation
	upload_root: str = Field(default="./public", validation_alias="UPLOAD_ROOT")
	annotation_workers: int = Field(default=1, ge=1, validation_alias="ANNOTATION_WORKERS")
	annotation_max_retries: int = Field(default=3, ge=0, validation_alias="ANNOTATION_MAX_RETRIES")
	annotation_retry_base_seconds: float = Field(default=2.0, ge=0, validation_alias="ANNOTATION_RETRY_BASE_SECONDS")
	annotation_max_chars: int = Field(default=30000, gt=0, validation_alias="ANNOTATION_MAX_CHARS")

	# Logging
	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
	log_format: Literal["text", "json"] = Field(default="text", validation_alias="LOG_FORMAT")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

settings = Settings()
