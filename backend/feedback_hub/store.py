from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .db import SessionLocal
from .models import AppSecret, Feedback, ObservationType, Subject, Teacher
from .schemas import CreateFeedbackRequest


def create_subject(db: Session, name: str, description: Optional[str] = None) -> Subject:
	row = Subject(name=name, description=description, is_active=True)
	db.add(row)
	db.commit()
	db.refresh(row)
	return row


def create_observation_type(db: Session, name: str, description: Optional[str] = None) -> ObservationType:
	row = ObservationType(name=name, description=description, is_active=True)
	db.add(row)
	db.commit()
	db.refresh(row)
	return row


def get_teacher_by_email(db: Session, email: str) -> Optional[Teacher]:
	return db.execute(select(Teacher).where(Teacher.email == email)).scalar_one_or_none()


def get_teacher(db: Session, teacher_id: str) -> Optional[Teacher]:
	return db.get(Teacher, teacher_id)


def _escape_like(value: str) -> str:
	return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def find_teacher_by_partial_name(db: Session, name: str) -> Optional[Teacher]:
	pattern = f"%{_escape_like(name)}%"
	stmt = select(Teacher).where(Teacher.name.ilike(pattern, escape="\\")).order_by(Teacher.name).limit(1)
	return db.execute(stmt).scalars().first()


def list_teachers(db: Session) -> List[Teacher]:
	# Ordered by name so fuzzy tie-breaks are stable
	return list(db.execute(select(Teacher).order_by(Teacher.name, Teacher.id)).scalars())


def get_secret(db: Session, name: str) -> Optional[str]:
	row = db.get(AppSecret, name)
	return row.value if row else None


def lookup_secret(name: str) -> Optional[str]:
	"""Secret lookup with its own short-lived session, for process-wide callers."""
	db = SessionLocal()
	try:
		return get_secret(db, name)
	finally:
		db.close()


def insert_feedback(db: Session, req: CreateFeedbackRequest, observation_date: datetime) -> Feedback:
	if db.get(Teacher, req.teacher_id) is None:
		raise ValueError(f"teacher {req.teacher_id} does not exist")
	row = Feedback(
		teacher_id=req.teacher_id,
		observer_id=req.observer_id,
		observation_date=observation_date,
		status=req.status,
		lesson_subject=req.lesson_subject,
		lesson_topic=req.lesson_topic,
		class_year=req.class_year,
		strengths=req.strengths,
		areas_for_development=req.areas_for_development,
		action_points=req.action_points,
		overall_rating=req.overall_rating,
		is_confidential=req.is_confidential,
		planning_preparation=req.planning_preparation,
		teaching_delivery=req.teaching_delivery,
		student_engagement=req.student_engagement,
		classroom_management=req.classroom_management,
		assessment_feedback=req.assessment_feedback,
	)
	db.add(row)
	try:
		db.commit()
	except Exception:
		db.rollback()
		raise
	db.refresh(row)
	return row


def create_feedback_draft(
	db: Session,
	*,
	p_teacher_id: str,
	p_observer_id: Optional[str],
	p_observation_date: datetime,
	p_status: str = "draft",
	p_lesson_subject: Optional[str] = None,
	p_lesson_topic: Optional[str] = None,
	p_class_year: Optional[str] = None,
	p_is_confidential: bool = False,
) -> str:
	"""Privileged insert path; bypasses the create-feedback function entirely.

	Refuses unknown teachers the way the database-side procedure does, then
	returns the new feedback id.
	"""
	if db.get(Teacher, p_teacher_id) is None:
		raise ValueError(f"teacher {p_teacher_id} does not exist")
	row = Feedback(
		teacher_id=p_teacher_id,
		observer_id=p_observer_id,
		observation_date=p_observation_date,
		status=p_status,
		lesson_subject=p_lesson_subject,
		lesson_topic=p_lesson_topic,
		class_year=p_class_year,
		is_confidential=p_is_confidential,
		planning_preparation={},
		teaching_delivery={},
		student_engagement={},
		classroom_management={},
		assessment_feedback={},
	)
	db.add(row)
	try:
		db.commit()
	except Exception:
		db.rollback()
		raise
	return row.id
