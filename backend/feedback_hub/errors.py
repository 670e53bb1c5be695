from __future__ import annotations
from typing import Optional


class AssistantError(Exception):
	"""Base class for failures scoped to a single assistant request."""


class CredentialUnavailable(AssistantError):
	pass


class UpstreamUnavailable(AssistantError):
	"""Every proxy attempt failed."""


class UpstreamError(AssistantError):
	def __init__(self, message: str, status_code: Optional[int] = None, detail: Optional[str] = None) -> None:
		super().__init__(message)
		self.status_code = status_code
		# Provider's own error.message, when the body carried one
		self.detail = detail


class TranscriptionFailed(AssistantError):
	pass


class TeacherNotFound(AssistantError):
	pass


class ObservationCreateFailed(AssistantError):
	pass


class MalformedIntent(AssistantError):
	"""Model reply was not a usable action; callers treat this as "no action"."""


class BadRequest(AssistantError):
	pass
