from __future__ import annotations
import base64
import binascii
from typing import Any, Dict, List, Optional

import httpx

from .errors import BadRequest, UpstreamError
from .settings import settings


def decode_audio_base64(audio_base64: str) -> bytes:
	# Browsers send data URLs ("data:audio/webm;base64,....")
	comma = audio_base64.find(",")
	raw = audio_base64[comma + 1:] if comma >= 0 else audio_base64
	try:
		return base64.b64decode(raw, validate=True)
	except (binascii.Error, ValueError) as err:
		raise BadRequest("audio_base64 is not valid base64") from err


def completion_content(data: Any) -> Optional[str]:
	try:
		return data["choices"][0]["message"]["content"]
	except (KeyError, IndexError, TypeError):
		return None


def _error_message(r: httpx.Response) -> Optional[str]:
	try:
		return r.json()["error"]["message"]
	except (KeyError, TypeError, ValueError):
		return None


class OpenAIClient:
	"""Direct calls to the upstream chat and transcription endpoints."""

	def __init__(self, api_key: Optional[str], *, base_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None) -> None:
		if not api_key:
			raise ValueError("OpenAI API key is not configured")
		self.api_key = api_key
		self.base_url = (base_url or settings.openai_base_url).rstrip("/")
		self._client = client or httpx.AsyncClient(timeout=settings.http_timeout)
		self._owns_client = client is None

	def _headers(self) -> Dict[str, str]:
		return {"Authorization": f"Bearer {self.api_key}"}

	async def chat(
		self,
		messages: List[Dict[str, str]],
		*,
		model: Optional[str] = None,
		temperature: Optional[float] = None,
		max_tokens: Optional[int] = None,
	) -> Dict[str, Any]:
		payload: Dict[str, Any] = {
			"model": model or settings.openai_chat_model,
			"messages": messages,
			"temperature": settings.openai_temperature if temperature is None else temperature,
		}
		if max_tokens is not None:
			payload["max_tokens"] = max_tokens
		try:
			r = await self._client.post(f"{self.base_url}/chat/completions", headers=self._headers(), json=payload)
		except httpx.RequestError as net_err:
			raise UpstreamError(f"chat request failed: {net_err}") from net_err
		if r.is_error:
			raise UpstreamError(r.text or f"chat request failed with status {r.status_code}", r.status_code, _error_message(r))
		return r.json()

	async def transcribe(self, audio: bytes, *, filename: str = "audio.webm", model: Optional[str] = None) -> str:
		files = {"file": (filename, audio, "audio/webm")}
		data = {"model": model or settings.openai_transcribe_model}
		try:
			r = await self._client.post(f"{self.base_url}/audio/transcriptions", headers=self._headers(), files=files, data=data)
		except httpx.RequestError as net_err:
			raise UpstreamError(f"transcription request failed: {net_err}") from net_err
		if r.is_error:
			raise UpstreamError(r.text or f"transcription failed with status {r.status_code}", r.status_code)
		try:
			return str(r.json()["text"])
		except (KeyError, TypeError, ValueError) as err:
			raise UpstreamError(f"Unexpected transcription response: {r.text}") from err

	async def aclose(self) -> None:
		if self._owns_client:
			await self._client.aclose()
