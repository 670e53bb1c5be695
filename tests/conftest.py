"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Dict, List

import httpx
import pytest
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure backend/ is on the import path (for local runs without installing the package)
BACKEND_PATH = Path(__file__).resolve().parent.parent / "backend"
if str(BACKEND_PATH) not in sys.path:
	sys.path.insert(0, str(BACKEND_PATH))

from feedback_hub.db import Base  # noqa: E402
from feedback_hub.models import Teacher  # noqa: E402
from feedback_hub.settings import settings  # noqa: E402


@pytest.fixture
def engine():
	eng = create_engine(
		"sqlite://",
		connect_args={"check_same_thread": False},
		poolclass=StaticPool,
		future=True,
	)
	Base.metadata.create_all(bind=eng)
	yield eng
	eng.dispose()


@pytest.fixture
def session_factory(engine):
	return sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


@pytest.fixture
def db(session_factory):
	session = session_factory()
	try:
		yield session
	finally:
		session.close()


@pytest.fixture
def teachers(db) -> Dict[str, Teacher]:
	rows = [
		Teacher(name="Jane Doe", email="jane.doe@stpauls.br", department="Science", is_admin=False),
		Teacher(name="Sam Bishop", email="sb8@stpauls.br", department="Leadership", is_admin=True, admin_role="admin"),
		Teacher(name="Samantha Oliveira", email="s.oliveira@stpauls.br", department="Languages"),
		Teacher(name="José Araújo", email="j.araujo@stpauls.br", department="Maths"),
	]
	db.add_all(rows)
	db.commit()
	return {row.email: row for row in rows}


@pytest.fixture
def make_token() -> Callable[[str], str]:
	def _make(email: str) -> str:
		return jwt.encode({"sub": email, "email": email}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
	return _make


class RecordingTransport(httpx.MockTransport):
	"""MockTransport that keeps every request it served."""

	def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
		self.requests: List[httpx.Request] = []

		def _record(request: httpx.Request) -> httpx.Response:
			self.requests.append(request)
			return handler(request)

		super().__init__(_record)

	def paths(self) -> List[str]:
		return [r.url.path for r in self.requests]


@pytest.fixture
def recording_transport():
	return RecordingTransport


class FakeSecrets:
	"""Secret lookup double that counts queries per name."""

	def __init__(self, values: Dict[str, object]) -> None:
		self.values = values
		self.calls: List[str] = []

	def __call__(self, name: str):
		self.calls.append(name)
		value = self.values.get(name)
		if isinstance(value, Exception):
			raise value
		return value


@pytest.fixture
def fake_secrets():
	return FakeSecrets
