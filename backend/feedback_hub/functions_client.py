from __future__ import annotations
import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from .errors import UpstreamError, UpstreamUnavailable
from .settings import settings

logger = logging.getLogger(__name__)


class FunctionsClient:
	"""Calls the proxy functions (teacher-helper, create-feedback)."""

	def __init__(
		self,
		base_url: Optional[str] = None,
		anon_key: Optional[str] = None,
		*,
		attempts: Optional[int] = None,
		retry_delay: Optional[float] = None,
		client: Optional[httpx.AsyncClient] = None,
	) -> None:
		self.base_url = (base_url or settings.functions_base_url).rstrip("/")
		self.anon_key = anon_key if anon_key is not None else settings.functions_anon_key
		self.attempts = max(1, attempts if attempts is not None else settings.invoke_attempts)
		self.retry_delay = settings.invoke_retry_delay if retry_delay is None else retry_delay
		self._client = client or httpx.AsyncClient(timeout=settings.http_timeout)
		self._owns_client = client is None

	def _headers(self) -> Dict[str, str]:
		headers = {"Content-Type": "application/json"}
		if self.anon_key:
			headers["Authorization"] = f"Bearer {self.anon_key}"
			headers["apikey"] = self.anon_key
		return headers

	async def call(self, endpoint: str, payload: Dict[str, Any]) -> Any:
		"""Single attempt; raises UpstreamError on transport or function failure."""
		try:
			r = await self._client.post(f"{self.base_url}/{endpoint}", headers=self._headers(), json=payload)
		except httpx.RequestError as net_err:
			raise UpstreamError(f"{endpoint} unreachable: {net_err}") from net_err
		try:
			data = r.json()
		except ValueError:
			data = None
		if r.is_error:
			detail = data.get("error") if isinstance(data, dict) else None
			raise UpstreamError(detail or f"{endpoint} returned status {r.status_code}", r.status_code)
		if isinstance(data, dict) and data.get("error"):
			raise UpstreamError(str(data["error"]), r.status_code)
		return data

	async def invoke(self, endpoint: str, payload: Dict[str, Any]) -> Any:
		last_error: Optional[Exception] = None
		for attempt in range(1, self.attempts + 1):
			try:
				return await self.call(endpoint, payload)
			except UpstreamError as err:
				last_error = err
				logger.warning("%s attempt %d/%d failed: %s", endpoint, attempt, self.attempts, err)
				if attempt < self.attempts:
					await asyncio.sleep(attempt * self.retry_delay)
		raise UpstreamUnavailable(f"{endpoint} unavailable: {last_error}") from last_error

	async def aclose(self) -> None:
		if self._owns_client:
			await self._client.aclose()
