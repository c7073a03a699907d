"""
Logging configuration.

- Human-readable text by default, single-line JSON when LOG_FORMAT=json
- Request id middleware so every access line can be traced
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from contextvars import ContextVar

from fastapi import FastAPI, Request

from .settings import Settings

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

access_logger = logging.getLogger("learnpath.access")


class RequestIdFilter(logging.Filter):
	def filter(self, record: logging.LogRecord) -> bool:
		if not hasattr(record, "request_id"):
			record.request_id = request_id_var.get() or "-"
		return True


class JSONFormatter(logging.Formatter):
	"""Emit log records as single-line JSON."""

	def format(self, record: logging.LogRecord) -> str:
		entry = {
			"timestamp": self.formatTime(record, self.datefmt),
			"level": record.levelname,
			"logger": record.name,
			"message": record.getMessage(),
			"request_id": getattr(record, "request_id", "-"),
		}
		if record.exc_info and record.exc_info[0]:
			entry["exception"] = self.formatException(record.exc_info)
		return json.dumps(entry, default=str)


def init_logging(settings: Settings) -> None:
	root = logging.getLogger()
	root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

	# Remove default handlers
	root.handlers.clear()

	handler = logging.StreamHandler()
	handler.addFilter(RequestIdFilter())
	if settings.log_format == "json":
		handler.setFormatter(JSONFormatter())
	else:
		handler.setFormatter(logging.Formatter(
			"%(asctime)s [%(levelname)s] %(name)s (%(request_id)s): %(message)s",
			datefmt="%Y-%m-%d %H:%M:%S",
		))
	root.addHandler(handler)

	# Quiet noisy libraries; httpx logs full URLs, which carry the API key
	logging.getLogger("httpx").setLevel(logging.WARNING)
	logging.getLogger("passlib").setLevel(logging.ERROR)


def install_request_logging(app: FastAPI) -> None:
	@app.middleware("http")
	async def _request_context(request: Request, call_next):
		rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
		token = request_id_var.set(rid)
		start = time.perf_counter()
		try:
			response = await call_next(request)
		finally:
			request_id_var.reset(token)
		elapsed_ms = (time.perf_counter() - start) * 1000
		response.headers["X-Request-ID"] = rid
		access_logger.info(
			"%s %s -> %s (%.1fms)", request.method, request.url.path, response.status_code, elapsed_ms,
			extra={"request_id": rid},
		)
		return response
