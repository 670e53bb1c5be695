from __future__ import annotations
import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Union

from .errors import CredentialUnavailable

logger = logging.getLogger(__name__)

SecretLookup = Callable[[str], Union[Optional[str], Awaitable[Optional[str]]]]


class CredentialResolver:
	"""Resolves the upstream API key once and keeps it for the life of the process.

	Names are tried in order; a lookup that errors or yields a blank value moves on
	to the next name. There is no refresh: a rejected key stays cached until restart.
	"""

	def __init__(self, lookup: SecretLookup, names: List[str]) -> None:
		if not names:
			raise ValueError("at least one secret name is required")
		self._lookup = lookup
		self._names = list(names)
		self._credential: Optional[str] = None

	@property
	def cached(self) -> Optional[str]:
		return self._credential

	async def _query(self, name: str) -> Optional[str]:
		value = self._lookup(name)
		if inspect.isawaitable(value):
			value = await value
		return value

	async def ensure_credential(self) -> str:
		if self._credential:
			return self._credential
		for index, name in enumerate(self._names):
			try:
				value = await self._query(name)
			except Exception as err:
				logger.warning("secret lookup for %s failed: %s", name, err)
				continue
			if isinstance(value, str) and value.strip():
				if index > 0:
					logger.info("using legacy secret name %s", name)
				self._credential = value
				return value
		raise CredentialUnavailable("Unable to load AI credentials")
