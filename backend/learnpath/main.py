import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .annotation import AnnotationPipeline, ClientFactory
from .annotation_queue import AnnotationQueue
from .crypto import CredentialCipher
from .db import Store
from .errors import LearnPathError
from .gemini_client import GeminiClient
from .logging_config import init_logging, install_request_logging
from .settings import Settings, settings as default_settings
from .routers import activities, ai, auth, book, resources, user

logger = logging.getLogger(__name__)


def create_app(
	settings: Optional[Settings] = None,
	store: Optional[Store] = None,
	client_factory: Optional[ClientFactory] = None,
) -> FastAPI:
	"""Build the API. Everything stateful is created in the lifespan and hung off ``app.state``."""
	settings = settings or default_settings
	client_factory = client_factory or (lambda key: GeminiClient(key, settings=settings))

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		init_logging(settings)
		app_store = store or Store(settings.database_url)
		app_store.create_all()
		cipher = CredentialCipher.from_settings(settings)
		pipeline = AnnotationPipeline(app_store, cipher, settings, client_factory=client_factory)
		queue = AnnotationQueue(
			pipeline,
			workers=settings.annotation_workers,
			max_retries=settings.annotation_max_retries,
			retry_base_seconds=settings.annotation_retry_base_seconds,
		)
		app.state.store = app_store
		app.state.cipher = cipher
		app.state.pipeline = pipeline
		app.state.annotation_queue = queue
		await queue.start()
		logger.info("LearnPath API started (database %s)", app_store.engine.url.render_as_string(hide_password=True))
		try:
			yield
		finally:
			await queue.stop()
			# A store handed in by the caller is theirs to dispose
			if store is None:
				app_store.dispose()

	app = FastAPI(title="LearnPath API", lifespan=lifespan)
	app.state.settings = settings
	app.state.client_factory = client_factory

	@app.exception_handler(LearnPathError)
	async def _domain_error(request: Request, exc: LearnPathError):
		if exc.status_code >= 500:
			logger.error("%s on %s: %s", exc.__class__.__name__, request.url.path, exc.message)
		return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

	@app.exception_handler(StarletteHTTPException)
	async def _http_error(request: Request, exc: StarletteHTTPException):
		return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)

	@app.exception_handler(RequestValidationError)
	async def _validation_error(request: Request, exc: RequestValidationError):
		errors = exc.errors()
		first = errors[0] if errors else {}
		field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
		message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
		return JSONResponse(status_code=400, content={"error": message})

	@app.exception_handler(Exception)
	async def _unexpected_error(request: Request, exc: Exception):
		logger.exception("Unhandled error on %s %s", request.method, request.url.path)
		return JSONResponse(status_code=500, content={"error": "Internal server error"})

	install_request_logging(app)

	app.include_router(auth.router)
	app.include_router(activities.router)
	app.include_router(user.router)
	app.include_router(resources.router)
	app.include_router(ai.router)
	app.include_router(book.router)

	@app.get("/health")
	def health():
		return {"status": "ok"}

	@app.get("/info")
	def info():
		return {
			"status": "ok",
			"gemini_configured": bool(settings.gemini_api_key),
			"gemini_model": settings.gemini_model,
		}

	return app


app = create_app()
