from __future__ import annotations
import logging
import re
import unicodedata
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import store
from .errors import ObservationCreateFailed, TeacherNotFound, UpstreamError
from .functions_client import FunctionsClient
from .models import Teacher
from .schemas import CreateObservationAction, ObservationCreated

logger = logging.getLogger(__name__)

CREATE_FEEDBACK_ENDPOINT = "create-feedback"

_NON_NAME_CHARS = re.compile(r"[^a-z\s.\-']")
_WHITESPACE = re.compile(r"\s+")


def normalize_name(value: Optional[str]) -> str:
	decomposed = unicodedata.normalize("NFD", value or "")
	stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
	return _WHITESPACE.sub(" ", _NON_NAME_CHARS.sub(" ", stripped.lower())).strip()


def score_candidate(target: str, candidate_name: str) -> int:
	"""+1 per target token found in the candidate, +2 when the names match exactly."""
	normalized = normalize_name(candidate_name)
	score = sum(1 for token in target.split(" ") if token and token in normalized)
	if normalized == target:
		score += 2
	return score


def best_match(target_name: str, candidates: Iterable[Teacher]) -> Optional[Teacher]:
	target = normalize_name(target_name)
	best: Optional[Teacher] = None
	best_score = 0
	for candidate in candidates:
		score = score_candidate(target, candidate.name)
		# Strictly greater: the first candidate seen wins a tie
		if score > best_score:
			best, best_score = candidate, score
	return best


def _to_utc(value: datetime) -> datetime:
	if value.tzinfo is None:
		value = value.astimezone()
	return value.astimezone(timezone.utc)


class ObservationCreator:
	"""Turns a create_observation action into a draft feedback record."""

	def __init__(self, db: Session, functions: FunctionsClient) -> None:
		self.db = db
		self.functions = functions

	def resolve_teacher(self, name: str) -> Teacher:
		teacher = store.find_teacher_by_partial_name(self.db, name)
		if teacher is None:
			teacher = best_match(name, store.list_teachers(self.db))
		if teacher is None:
			raise TeacherNotFound(f"Teacher not found: {name}")
		return teacher

	async def create_observation(self, action: CreateObservationAction, observer_id: Optional[str] = None) -> ObservationCreated:
		teacher = self.resolve_teacher(action.teacher_name)
		observation_date = _to_utc(action.date or datetime.now(timezone.utc))
		body = {
			"teacher_id": teacher.id,
			"observer_id": observer_id,
			"observation_date": observation_date.isoformat(),
			"status": "draft",
			"lesson_subject": action.subject,
			"is_confidential": False,
			"planning_preparation": {},
			"teaching_delivery": {},
			"student_engagement": {},
			"classroom_management": {},
			"assessment_feedback": {},
		}
		try:
			await self.functions.call(CREATE_FEEDBACK_ENDPOINT, body)
		except UpstreamError as err:
			logger.warning("%s failed, using create_feedback_draft: %s", CREATE_FEEDBACK_ENDPOINT, err)
			try:
				store.create_feedback_draft(
					self.db,
					p_teacher_id=teacher.id,
					p_observer_id=observer_id,
					p_observation_date=observation_date.replace(tzinfo=None),
					p_status="draft",
					p_lesson_subject=action.subject,
					p_lesson_topic=None,
					p_class_year=None,
					p_is_confidential=False,
				)
			except (SQLAlchemyError, ValueError) as rpc_err:
				raise ObservationCreateFailed(str(rpc_err) or "Failed to create feedback") from rpc_err
		return ObservationCreated(teacher_name=teacher.name, date=observation_date)
