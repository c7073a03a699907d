"""
Test fixtures for the LearnPath API.

Provides settings, a file-based SQLite store, seeded learners and activities,
and a TestClient with the identity dependency overridden. Gemini is faked with
``httpx.MockTransport`` so no call leaves the process.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List

import httpx
import pytest
from fastapi.testclient import TestClient

from learnpath.db import Store
from learnpath.enums import ActivityType
from learnpath.gemini_client import GeminiClient
from learnpath.main import create_app
from learnpath.models import Activity, Module, Skill, User, UserProfile
from learnpath.routers.auth import User as CurrentUser, get_current_user, hash_password
from learnpath.settings import Settings


def gemini_reply(text: str) -> dict:
	return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@dataclass
class FakeGemini:
	"""Programmable stand-in for the generateContent endpoint."""

	text: str = "Generated explanation"
	status_code: int = 200
	error: dict | None = None
	requests: List[httpx.Request] = field(default_factory=list)

	def handler(self, request: httpx.Request) -> httpx.Response:
		self.requests.append(request)
		if self.status_code >= 400:
			return httpx.Response(self.status_code, json={"error": self.error or {"message": "failure"}})
		return httpx.Response(200, json=gemini_reply(self.text))

	@property
	def calls(self) -> int:
		return len(self.requests)

	def factory(self, settings: Settings) -> Callable[[str], GeminiClient]:
		transport = httpx.MockTransport(self.handler)
		return lambda key: GeminiClient(key, settings=settings, transport=transport)


def make_pdf(path: Path, lines: List[str]) -> Path:
	"""Write a one-page PDF showing ``lines`` in Helvetica."""
	stream = "BT /F1 12 Tf 72 720 Td 14 TL\n"
	for line in lines:
		escaped = line.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
		stream += f"({escaped}) Tj T*\n"
	stream += "ET"
	objects = [
		"<< /Type /Catalog /Pages 2 0 R >>",
		"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
		"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
		"/Resources << /Font << /F1 5 0 R >> >> /Contents 4 0 R >>",
		f"<< /Length {len(stream.encode('latin-1'))} >>\nstream\n{stream}\nendstream",
		"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
	]
	out = b"%PDF-1.4\n"
	offsets = []
	for number, body in enumerate(objects, start=1):
		offsets.append(len(out))
		out += f"{number} 0 obj\n{body}\nendobj\n".encode("latin-1")
	xref_at = len(out)
	out += f"xref\n0 {len(objects) + 1}\n0000000000 65535 f \n".encode("latin-1")
	for offset in offsets:
		out += f"{offset:010d} 00000 n \n".encode("latin-1")
	out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n".encode("latin-1")
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_bytes(out)
	return path


@dataclass
class Seed:
	user_id: str
	admin_id: str
	stranger_id: str
	module_id: str
	quiz_id: str
	drill_id: str
	assessment_id: str
	skill_ids: List[str]


@pytest.fixture
def settings(tmp_path):
	return Settings(
		_env_file=None,
		database_url=f"sqlite:///{tmp_path / 'test.db'}",
		gemini_api_key=None,
		encryption_key="test-encryption-key",
		encryption_iv="test-iv-16-bytes",
		encryption_mode="legacy",
		jwt_secret_key="test-secret",
		upload_root=str(tmp_path / "public"),
		annotation_retry_base_seconds=0,
		annotation_max_retries=1,
		log_level="WARNING",
	)


@pytest.fixture
def store(settings):
	store = Store(settings.database_url)
	store.create_all()
	yield store
	store.dispose()


@pytest.fixture
def seed(store):
	with store.session_scope() as db:
		learner = User(username="learner", password_hash=hash_password("secret123"))
		admin = User(username="admin", password_hash=hash_password("admin123"), is_admin=True)
		stranger = User(username="stranger", password_hash=hash_password("nope1234"))
		db.add_all([learner, admin, stranger])
		db.flush()

		module = Module(title="Python Quick Review", order=1)
		db.add(module)
		db.flush()
		db.add(UserProfile(user_id=learner.id, level=1, xp=0, current_module_id=module.id))
		db.add(UserProfile(user_id=admin.id, level=1, xp=0))

		lists = Skill(name="Python Lists", category="python-basics")
		loops = Skill(name="Loops", category="python-basics")
		pandas = Skill(name="DataFrames", category="pandas")
		db.add_all([lists, loops, pandas])
		db.flush()

		quiz = Activity(
			module_id=module.id,
			title="Lists quiz",
			type=ActivityType.LEARN_QUIZ,
			xp_reward=50,
			order=1,
			content={"correctAnswers": {"q1": "a", "q2": "b", "q3": "c", "q4": "d"}},
			skills=[lists],
		)
		drill = Activity(
			module_id=module.id,
			title="Loop drill",
			type=ActivityType.PRACTICE_DRILL,
			xp_reward=30,
			order=2,
			content={"testCases": [
				{"name": "uses a for loop", "pattern": r"for\s+\w+\s+in"},
				{"name": "prints the total", "expectedOutput": "15"},
			]},
			skills=[loops, lists],
		)
		assessment = Activity(
			module_id=module.id,
			title="DataFrame assessment",
			type=ActivityType.ASSESS_TEST,
			xp_reward=70,
			order=3,
			content={"assessmentCriteria": [{"contains": "pd.DataFrame"}]},
			skills=[pandas],
		)
		db.add_all([quiz, drill, assessment])
		db.flush()
		return Seed(
			user_id=learner.id,
			admin_id=admin.id,
			stranger_id=stranger.id,
			module_id=module.id,
			quiz_id=quiz.id,
			drill_id=drill.id,
			assessment_id=assessment.id,
			skill_ids=[lists.id, loops.id, pandas.id],
		)


@pytest.fixture
def fake_gemini():
	return FakeGemini()


@pytest.fixture
def app(settings, store, seed, fake_gemini):
	return create_app(settings, store=store, client_factory=fake_gemini.factory(settings))


def _login_as(app, user_id: str, username: str, is_admin: bool = False) -> None:
	app.dependency_overrides[get_current_user] = lambda: CurrentUser(id=user_id, username=username, is_admin=is_admin)


@pytest.fixture
def client(app, seed):
	"""Client signed in as the seeded learner."""
	_login_as(app, seed.user_id, "learner")
	with TestClient(app) as c:
		yield c
	app.dependency_overrides.clear()


@pytest.fixture
def login(app):
	"""Switch the signed-in user: ``login(user_id, username, is_admin=False)``."""
	return lambda user_id, username, is_admin=False: _login_as(app, user_id, username, is_admin)
