from __future__ import annotations
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker, declarative_base
from .settings import settings


DATABASE_URL = settings.database_url or "sqlite:///./feedback_hub.db"

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=_connect_args, future=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


# Lightweight dev migrations for databases created before these columns existed (SQLite-friendly)
def ensure_schema(bind=None) -> None:
	bind = bind or engine
	inspector = inspect(bind)
	tables = set(inspector.get_table_names())
	if "teachers" in tables:
		cols = {c["name"] for c in inspector.get_columns("teachers")}
		with bind.begin() as conn:
			if "admin_role" not in cols:
				conn.exec_driver_sql("ALTER TABLE teachers ADD COLUMN admin_role VARCHAR(32) DEFAULT 'teacher' NOT NULL")
			if "active" not in cols:
				conn.exec_driver_sql("ALTER TABLE teachers ADD COLUMN active BOOLEAN DEFAULT 1 NOT NULL")
	if "feedback" in tables:
		cols = {c["name"] for c in inspector.get_columns("feedback")}
		with bind.begin() as conn:
			if "is_confidential" not in cols:
				conn.exec_driver_sql("ALTER TABLE feedback ADD COLUMN is_confidential BOOLEAN DEFAULT 0 NOT NULL")
