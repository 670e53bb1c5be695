from __future__ import annotations

import pytest

from feedback_hub.credentials import CredentialResolver
from feedback_hub.errors import CredentialUnavailable

NAMES = ["OPENAI_CREATE", "OPENAI_FEEDBACK"]


@pytest.mark.asyncio
async def test_primary_secret_is_cached_after_first_lookup(fake_secrets):
	secrets = fake_secrets({"OPENAI_CREATE": "sk-primary"})
	resolver = CredentialResolver(secrets, NAMES)

	assert await resolver.ensure_credential() == "sk-primary"
	assert await resolver.ensure_credential() == "sk-primary"
	assert secrets.calls == ["OPENAI_CREATE"]


@pytest.mark.asyncio
async def test_blank_primary_falls_back_to_legacy_name(fake_secrets):
	secrets = fake_secrets({"OPENAI_CREATE": "   ", "OPENAI_FEEDBACK": "sk-legacy"})
	resolver = CredentialResolver(secrets, NAMES)

	assert await resolver.ensure_credential() == "sk-legacy"
	assert await resolver.ensure_credential() == "sk-legacy"
	# One query per name, and none after the key is cached
	assert secrets.calls == ["OPENAI_CREATE", "OPENAI_FEEDBACK"]


@pytest.mark.asyncio
async def test_erroring_primary_falls_back_to_legacy_name(fake_secrets):
	secrets = fake_secrets({"OPENAI_CREATE": RuntimeError("permission denied"), "OPENAI_FEEDBACK": "sk-legacy"})
	resolver = CredentialResolver(secrets, NAMES)

	assert await resolver.ensure_credential() == "sk-legacy"


@pytest.mark.asyncio
async def test_no_secret_raises_credential_unavailable(fake_secrets):
	secrets = fake_secrets({"OPENAI_FEEDBACK": RuntimeError("boom")})
	resolver = CredentialResolver(secrets, NAMES)

	with pytest.raises(CredentialUnavailable):
		await resolver.ensure_credential()
	assert resolver.cached is None


@pytest.mark.asyncio
async def test_async_lookup_is_awaited():
	async def lookup(name: str):
		return "sk-async" if name == "OPENAI_CREATE" else None

	resolver = CredentialResolver(lookup, NAMES)
	assert await resolver.ensure_credential() == "sk-async"


def test_secret_lookup_reads_app_secrets(db):
	from feedback_hub import store
	from feedback_hub.models import AppSecret

	db.add(AppSecret(name="OPENAI_CREATE", value="sk-db"))
	db.commit()

	assert store.get_secret(db, "OPENAI_CREATE") == "sk-db"
	assert store.get_secret(db, "OPENAI_FEEDBACK") is None
