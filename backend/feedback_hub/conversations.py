from __future__ import annotations
import uuid
from typing import Dict, List, Optional

from .schemas import ChatMessage, ParsedAction


class Conversation:
	def __init__(self, session_id: str, owner_id: str) -> None:
		self.session_id = session_id
		self.owner_id = owner_id
		self._messages: List[ChatMessage] = []
		self._pending: Optional[ParsedAction] = None

	@property
	def messages(self) -> List[ChatMessage]:
		return list(self._messages)

	def append(self, role: str, content: str) -> ChatMessage:
		message = ChatMessage(role=role, content=content)
		self._messages.append(message)
		return message

	def set_pending_action(self, action: ParsedAction) -> None:
		self._pending = action

	def take_pending_action(self) -> Optional[ParsedAction]:
		# Popped, so a planned action can only be executed once
		action, self._pending = self._pending, None
		return action


class ConversationStore:
	"""In-memory chat sessions; nothing survives a restart."""

	def __init__(self) -> None:
		self._sessions: Dict[str, Conversation] = {}

	def get(self, session_id: str, owner_id: str) -> Optional[Conversation]:
		conversation = self._sessions.get(session_id)
		if conversation is None or conversation.owner_id != owner_id:
			return None
		return conversation

	def open(self, owner_id: str, session_id: Optional[str] = None) -> Conversation:
		if session_id:
			existing = self.get(session_id, owner_id)
			if existing is not None:
				return existing
		# Unknown or foreign ids get a fresh session rather than someone else's history
		conversation = Conversation(uuid.uuid4().hex, owner_id)
		self._sessions[conversation.session_id] = conversation
		return conversation
