from __future__ import annotations
from fastapi import Request

from .annotation import AnnotationPipeline
from .annotation_queue import AnnotationQueue
from .crypto import CredentialCipher
from .settings import Settings


def get_settings(request: Request) -> Settings:
	return request.app.state.settings


def get_cipher(request: Request) -> CredentialCipher:
	return request.app.state.cipher


def get_pipeline(request: Request) -> AnnotationPipeline:
	return request.app.state.pipeline


def get_queue(request: Request) -> AnnotationQueue:
	return request.app.state.annotation_queue


def get_client_factory(request: Request):
	return request.app.state.client_factory
