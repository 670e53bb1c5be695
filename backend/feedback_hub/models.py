from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Boolean, Text, JSON, ForeignKey
from .db import Base


def _new_id() -> str:
	return uuid.uuid4().hex


class Teacher(Base):
	__tablename__ = "teachers"
	id = Column(String(64), primary_key=True, default=_new_id)
	name = Column(String(256), nullable=False, index=True)
	email = Column(String(256), nullable=False, unique=True, index=True)
	department = Column(String(128), nullable=True)
	title = Column(String(64), nullable=True)
	# "teacher", "admin" or "super_admin"; is_admin mirrors the last two
	admin_role = Column(String(32), default="teacher", nullable=False)
	is_admin = Column(Boolean, default=False, nullable=False)
	active = Column(Boolean, default=True, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Subject(Base):
	__tablename__ = "subjects"
	id = Column(String(64), primary_key=True, default=_new_id)
	name = Column(String(256), nullable=False)
	description = Column(Text, nullable=True)
	is_active = Column(Boolean, default=True, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class ObservationType(Base):
	__tablename__ = "observation_types"
	id = Column(String(64), primary_key=True, default=_new_id)
	name = Column(String(256), nullable=False)
	description = Column(Text, nullable=True)
	is_active = Column(Boolean, default=True, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Feedback(Base):
	__tablename__ = "feedback"
	id = Column(String(64), primary_key=True, default=_new_id)
	teacher_id = Column(String(64), ForeignKey("teachers.id"), nullable=False, index=True)
	observer_id = Column(String(64), nullable=True)
	observation_date = Column(DateTime, nullable=False)
	status = Column(String(32), default="draft", nullable=False)
	lesson_subject = Column(String(256), nullable=True)
	lesson_topic = Column(String(256), nullable=True)
	class_year = Column(String(64), nullable=True)
	strengths = Column(Text, nullable=True)
	areas_for_development = Column(Text, nullable=True)
	action_points = Column(Text, nullable=True)
	overall_rating = Column(String(32), nullable=True)
	is_confidential = Column(Boolean, default=False, nullable=False)
	# Rubric sections, free-form JSON
	planning_preparation = Column(JSON, default=dict, nullable=False)
	teaching_delivery = Column(JSON, default=dict, nullable=False)
	student_engagement = Column(JSON, default=dict, nullable=False)
	classroom_management = Column(JSON, default=dict, nullable=False)
	assessment_feedback = Column(JSON, default=dict, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class AppSecret(Base):
	__tablename__ = "app_secrets"
	name = Column(String(128), primary_key=True)
	value = Column(Text, nullable=True)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
