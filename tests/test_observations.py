from __future__ import annotations

import json
from datetime import datetime, timezone
from types import SimpleNamespace

import httpx
import pytest

from feedback_hub import store
from feedback_hub.errors import ObservationCreateFailed, TeacherNotFound
from feedback_hub.functions_client import FunctionsClient
from feedback_hub.models import Feedback, Teacher
from feedback_hub.observations import ObservationCreator, best_match, normalize_name
from feedback_hub.schemas import CreateObservationAction


def _creator(db, transport) -> ObservationCreator:
	functions = FunctionsClient("https://functions.test/functions/v1", "anon", retry_delay=0, client=httpx.AsyncClient(transport=transport))
	return ObservationCreator(db, functions)


def test_normalize_name_strips_diacritics_and_symbols():
	assert normalize_name("  José   Araújo!! ") == "jose araujo"
	assert normalize_name("Mr. O'Neill-Smith") == "mr. o'neill-smith"
	assert normalize_name(None) == ""


def test_exact_normalised_match_beats_partial_overlap():
	candidates = [SimpleNamespace(name="Samantha Oliveira"), SimpleNamespace(name="Sam Bishop")]

	assert best_match("sam bishop", candidates).name == "Sam Bishop"


def test_first_candidate_wins_a_tie():
	candidates = [SimpleNamespace(name="Sam Brown"), SimpleNamespace(name="Sam Green")]

	assert best_match("sam", candidates).name == "Sam Brown"


def test_no_overlap_means_no_match():
	assert best_match("zed", [SimpleNamespace(name="Sam Bishop")]) is None


def test_resolve_teacher_partial_then_fuzzy(db, teachers):
	creator = ObservationCreator(db, functions=None)

	assert creator.resolve_teacher("bishop").name == "Sam Bishop"
	# Accents and word order defeat the ilike lookup; token scoring still finds her
	assert creator.resolve_teacher("araujo jose").name == "José Araújo"
	with pytest.raises(TeacherNotFound, match="Teacher not found: nobody"):
		creator.resolve_teacher("nobody")


@pytest.mark.parametrize("name", ["%", "_", "%%", "\\"])
def test_like_wildcards_in_names_match_nobody(db, teachers, name):
	with pytest.raises(TeacherNotFound):
		ObservationCreator(db, functions=None).resolve_teacher(name)


def test_wildcards_are_literal_in_partial_lookup(db, teachers):
	db.add(Teacher(name="Ana_Maria Costa", email="a.costa@stpauls.br"))
	db.commit()

	assert store.find_teacher_by_partial_name(db, "ana_maria").name == "Ana_Maria Costa"
	# An underscore must not stand in for the space in "Jane Doe"
	assert store.find_teacher_by_partial_name(db, "jane_doe") is None


@pytest.mark.asyncio
async def test_create_observation_uses_privileged_function(db, teachers, recording_transport):
	transport = recording_transport(lambda request: httpx.Response(200, json={"feedback": {"id": "fb1"}}))
	creator = _creator(db, transport)
	action = CreateObservationAction(teacher_name="sam bishop", subject="maths", date=datetime(2024, 12, 25, tzinfo=timezone.utc))

	result = await creator.create_observation(action, observer_id="observer-1")

	assert result.teacher_name == "Sam Bishop"
	assert result.date == datetime(2024, 12, 25, tzinfo=timezone.utc)
	body = json.loads(transport.requests[0].content)
	assert transport.paths() == ["/functions/v1/create-feedback"]
	assert body["teacher_id"] == teachers["sb8@stpauls.br"].id
	assert body["observer_id"] == "observer-1"
	assert body["status"] == "draft"
	assert body["lesson_subject"] == "maths"
	assert body["observation_date"].startswith("2024-12-25T00:00:00")
	assert body["teaching_delivery"] == {}
	# The function did the insert, not us
	assert db.query(Feedback).count() == 0


@pytest.mark.asyncio
async def test_function_failure_falls_back_to_procedure_once(db, teachers, recording_transport):
	transport = recording_transport(lambda request: httpx.Response(500, json={"error": "service role missing"}))
	creator = _creator(db, transport)

	result = await creator.create_observation(CreateObservationAction(teacher_name="Jane Doe"), observer_id=None)

	assert result.teacher_name == "Jane Doe"
	assert result.date.tzinfo is not None
	# Single shot: no retry of the privileged function
	assert len(transport.requests) == 1
	row = db.query(Feedback).one()
	assert row.teacher_id == teachers["jane.doe@stpauls.br"].id
	assert row.status == "draft"
	assert row.is_confidential is False


@pytest.mark.asyncio
async def test_both_create_paths_failing(db, teachers, recording_transport, monkeypatch):
	def broken(*args, **kwargs):
		raise ValueError("permission denied for function create_feedback_draft")

	monkeypatch.setattr("feedback_hub.store.create_feedback_draft", broken)
	transport = recording_transport(lambda request: httpx.Response(500, json={"error": "down"}))

	with pytest.raises(ObservationCreateFailed, match="permission denied"):
		await _creator(db, transport).create_observation(CreateObservationAction(teacher_name="Jane Doe"))


@pytest.mark.asyncio
async def test_unknown_teacher_creates_nothing(db, teachers, recording_transport):
	transport = recording_transport(lambda request: httpx.Response(200, json={"feedback": {}}))

	with pytest.raises(TeacherNotFound):
		await _creator(db, transport).create_observation(CreateObservationAction(teacher_name="Xavier"))
	assert transport.requests == []
