from __future__ import annotations
import re

from sqlalchemy.orm import Session

from . import store

HELP_TEXT = (
	"I can help with admin tasks. Try: “create subject Physics”, "
	"“create observation type Learning Walk”, or “grant admin to sb8@stpauls.br”."
)

_CREATE_SUBJECT = re.compile(r"^create\s+subject\s+(.{2,})$")
_CREATE_OBSERVATION_TYPE = re.compile(r"^create\s+observation\s+type\s+(.{2,})$")
_GRANT_ADMIN = re.compile(r"^(?:make\s+admin|grant\s+admin\s+to)\s+([^\s]+@[^\s]+)$")


def _normalise(text: str) -> str:
	return (text or "").strip().lower()


def capitalise(text: str) -> str:
	return " ".join(part[:1].upper() + part[1:] for part in text.split(" "))


class AdminAssistant:
	"""Fixed-grammar admin commands. Database errors propagate to the caller."""

	def __init__(self, db: Session) -> None:
		self.db = db

	def process(self, text: str) -> str:
		t = _normalise(text)

		m = _CREATE_SUBJECT.match(t)
		if m:
			created = store.create_subject(self.db, capitalise(m.group(1)))
			return f"Created subject “{created.name}”."

		m = _CREATE_OBSERVATION_TYPE.match(t)
		if m:
			created = store.create_observation_type(self.db, capitalise(m.group(1)))
			return f"Created observation type “{created.name}”."

		m = _GRANT_ADMIN.match(t)
		if m:
			email = m.group(1)
			teacher = store.get_teacher_by_email(self.db, email)
			if teacher is None:
				return f"No teacher found with email {email}."
			# Role changes stay in the user management screen; this command never elevates
			return (
				f"Please use the Admin → User Management to set admin for {teacher.name}. "
				"(Automated elevation is not available from the assistant.)"
			)

		return HELP_TEXT
