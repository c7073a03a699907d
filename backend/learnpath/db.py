from __future__ import annotations
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base


DEFAULT_DATABASE_URL = "sqlite:///./learnpath.db"

Base = declarative_base()


class Store:
	"""Handle on the backing database.

	Built once per process (see ``main.create_app``) and passed to whatever
	needs it. ``dispose`` releases the connection pool on shutdown.
	"""

	def __init__(self, url: Optional[str] = None, *, echo: bool = False) -> None:
		self.url = url or DEFAULT_DATABASE_URL
		connect_args = {"check_same_thread": False} if self.url.startswith("sqlite") else {}
		self.engine: Engine = create_engine(self.url, connect_args=connect_args, echo=echo, future=True)
		self._sessionmaker = sessionmaker(
			autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine, future=True
		)

	def create_all(self) -> None:
		# Import for side effect: registers every table on Base.metadata
		from . import models  # noqa: F401
		Base.metadata.create_all(bind=self.engine)

	def session(self) -> Session:
		return self._sessionmaker()

	@contextmanager
	def session_scope(self) -> Iterator[Session]:
		"""One transaction: commit on success, roll back on any error."""
		db = self.session()
		try:
			yield db
			db.commit()
		except Exception:
			db.rollback()
			raise
		finally:
			db.close()

	def dispose(self) -> None:
		self.engine.dispose()


def get_store(request: Request) -> Store:
	return request.app.state.store


def get_db(request: Request):
	db = get_store(request).session()
	try:
		yield db
	finally:
		db.close()
