from __future__ import annotations
from typing import AsyncIterator, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from . import store
from .admin_assistant import AdminAssistant
from .conversations import ConversationStore
from .credentials import CredentialResolver
from .db import get_db
from .functions_client import FunctionsClient
from .observations import ObservationCreator
from .settings import settings
from .teacher_assistant import TeacherAssistant

_credential_resolver: Optional[CredentialResolver] = None

admin_conversations = ConversationStore()
teacher_conversations = ConversationStore()


def get_credential_resolver() -> CredentialResolver:
	# One resolver per process; the key it caches is never re-queried
	global _credential_resolver
	if _credential_resolver is None:
		_credential_resolver = CredentialResolver(
			store.lookup_secret,
			[settings.secret_primary_name, settings.secret_legacy_name],
		)
	return _credential_resolver


async def get_functions_client() -> AsyncIterator[FunctionsClient]:
	client = FunctionsClient()
	try:
		yield client
	finally:
		await client.aclose()


def get_admin_assistant(db: Session = Depends(get_db)) -> AdminAssistant:
	return AdminAssistant(db)


def get_teacher_assistant(
	credentials: CredentialResolver = Depends(get_credential_resolver),
	functions: FunctionsClient = Depends(get_functions_client),
) -> TeacherAssistant:
	return TeacherAssistant(credentials, functions)


def get_observation_creator(
	db: Session = Depends(get_db),
	functions: FunctionsClient = Depends(get_functions_client),
) -> ObservationCreator:
	return ObservationCreator(db, functions)


def get_admin_conversations() -> ConversationStore:
	return admin_conversations


def get_teacher_conversations() -> ConversationStore:
	return teacher_conversations
