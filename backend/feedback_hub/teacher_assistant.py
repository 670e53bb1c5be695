from __future__ import annotations
import json
import logging
import re
from datetime import datetime, timedelta
from typing import Optional

import httpx
from pydantic import ValidationError

from .credentials import CredentialResolver
from .errors import BadRequest, MalformedIntent, TranscriptionFailed, UpstreamError, UpstreamUnavailable
from .functions_client import FunctionsClient
from .openai_client import OpenAIClient, completion_content, decode_audio_base64
from .schemas import CreateObservationAction, ParsedAction, parsed_action_adapter
from .settings import settings

logger = logging.getLogger(__name__)

HELPER_ENDPOINT = "teacher-helper"

_SELF_REFERENCE = re.compile(r"(self\s*assessment|selfassessment|self-assessment|my\s+assessment|for\s+me|about\s+me)")
_NAME_CLAUSE = re.compile(r"(?:for|of|about)\s+([a-zà-ÿ.'\-\s]+)", re.IGNORECASE)
_IN_SUBJECT_CLAUSE = re.compile(r"\bin\s+([a-zà-ÿ][a-zà-ÿ\s&-]{2,})(?![a-zà-ÿ])")
_SUBJECT_CLAUSE = re.compile(r"\b(?:in|of|for)\s+([a-zà-ÿ][a-zà-ÿ\s&-]{2,})(?![a-zà-ÿ])")
_DATE_TOKEN = re.compile(r"\b(\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}|today|tomorrow)\b", re.IGNORECASE)
_NAME_STRIP = re.compile(r"[^a-zà-ÿ.'\-\s]", re.IGNORECASE)
# Trailing clauses that belong to the subject or the date, not the captured value
_NAME_TAIL = re.compile(r"\s+(?:in|on|at|today|tomorrow)\b.*$")
_SUBJECT_TAIL = re.compile(r"\s*\b(?:on|at|today|tomorrow)\b.*$")
_CREATE = re.compile(r"create")
_OBSERVATION = re.compile(r"observation|assessment")


def parse_date_token(token: str, now: Optional[datetime] = None) -> Optional[datetime]:
	"""DD/MM/YYYY (or -), two-digit years mean 20YY; today/tomorrow keep the current time."""
	now = now or datetime.now()
	d = token.lower()
	if d == "today":
		return now
	if d == "tomorrow":
		return now + timedelta(days=1)
	parts = d.replace("-", "/").split("/")
	if len(parts) != 3:
		return None
	dd, mm, yyyy = parts
	if len(yyyy) == 2:
		yyyy = "20" + yyyy
	try:
		return datetime(int(yyyy), int(mm), int(dd))
	except ValueError:
		return None


def _clean_subject(raw: str) -> Optional[str]:
	subject = _SUBJECT_TAIL.sub("", raw).strip()
	return subject or None


def local_parse_action(raw: str, current_user_name: Optional[str] = None, now: Optional[datetime] = None) -> Optional[ParsedAction]:
	text = (raw or "").lower().strip()
	if not text:
		return None
	is_self = _SELF_REFERENCE.search(text) is not None
	name_match = _NAME_CLAUSE.search(text)

	date: Optional[datetime] = None
	date_match = _DATE_TOKEN.search(text)
	if date_match:
		date = parse_date_token(date_match.group(1), now)

	subject: Optional[str] = None
	subject_match = _IN_SUBJECT_CLAUSE.search(text)
	if subject_match is None and (is_self or name_match is None):
		subject_match = _SUBJECT_CLAUSE.search(text)
	if subject_match:
		subject = _clean_subject(subject_match.group(1))

	if is_self and current_user_name:
		return CreateObservationAction(teacher_name=current_user_name, subject=subject, date=date)
	if name_match:
		name = _NAME_TAIL.sub("", _NAME_STRIP.sub("", name_match.group(1))).strip()
		if name:
			return CreateObservationAction(teacher_name=name, subject=subject, date=date)
	if _CREATE.search(text) and _OBSERVATION.search(text) and current_user_name:
		return CreateObservationAction(teacher_name=current_user_name, subject=subject, date=date)
	return None


def build_system_prompt(current_user_name: Optional[str]) -> str:
	return (
		"You are Mr Bishop, a helpful school assistant. Reply with JSON only.\n"
		'Schema: { "type": "create_observation", "teacher_name": string, "subject"?: string, "date"?: string }\n'
		"Rules: Use British English. If the request is about a self assessment, "
		f'set teacher_name to "{current_user_name or ""}". If no action is requested reply with null.'
	)


def parse_action_reply(content: Optional[str]) -> ParsedAction:
	try:
		data = json.loads(content or "null")
	except ValueError as err:
		raise MalformedIntent(f"reply is not JSON: {err}") from err
	if data is None:
		raise MalformedIntent("model found no action")
	try:
		return parsed_action_adapter.validate_python(data)
	except ValidationError as err:
		raise MalformedIntent(f"reply does not match the action schema: {err.errors()[0].get('msg')}") from err


class TeacherAssistant:
	def __init__(self, credentials: CredentialResolver, functions: FunctionsClient, *, openai_base_url: Optional[str] = None, http_client: Optional[httpx.AsyncClient] = None) -> None:
		self.credentials = credentials
		self.functions = functions
		self._openai_base_url = openai_base_url
		self._http_client = http_client

	def _direct_client(self, api_key: str) -> OpenAIClient:
		return OpenAIClient(api_key, base_url=self._openai_base_url, client=self._http_client)

	async def plan_action(self, prompt: str, current_user_name: Optional[str] = None) -> Optional[ParsedAction]:
		local = local_parse_action(prompt, current_user_name)
		if local is not None:
			return local

		api_key = await self.credentials.ensure_credential()
		payload = {
			"mode": "chat",
			"api_key": api_key,
			"model": settings.openai_chat_model,
			"messages": [
				{"role": "system", "content": build_system_prompt(current_user_name)},
				{"role": "user", "content": prompt},
			],
		}
		try:
			data = await self.functions.invoke(HELPER_ENDPOINT, payload)
		except UpstreamUnavailable as err:
			logger.warning("planning unavailable, no action taken: %s", err)
			return None
		try:
			return parse_action_reply(completion_content(data))
		except MalformedIntent as err:
			logger.debug("no actionable intent: %s", err)
			return None

	async def transcribe_audio(self, audio_base64: str) -> str:
		api_key = await self.credentials.ensure_credential()
		try:
			data = await self.functions.invoke(HELPER_ENDPOINT, {"mode": "transcribe", "audio_base64": audio_base64, "api_key": api_key})
		except UpstreamUnavailable as err:
			logger.warning("transcription proxy failed, calling upstream directly: %s", err)
		else:
			if isinstance(data, dict) and isinstance(data.get("text"), str):
				return data["text"]
			logger.warning("%s returned no text, calling upstream directly", HELPER_ENDPOINT)

		client = self._direct_client(api_key)
		try:
			return await client.transcribe(decode_audio_base64(audio_base64))
		except (UpstreamError, BadRequest) as err:
			raise TranscriptionFailed(str(err)) from err
		finally:
			await client.aclose()
