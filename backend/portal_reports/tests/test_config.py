import asyncio

import pytest

from portal_reports.core.config import Settings
from portal_reports.core.exceptions import TokenProviderError
from portal_reports.services.fetcher import build_fetcher


def test_portal_tokens_from_pairs():
    settings = Settings(portal_tokens="acme=tok-1, other = tok-2,broken")
    assert settings.portal_tokens == {"acme": "tok-1", "other": "tok-2"}


def test_portal_tokens_from_json():
    settings = Settings(portal_tokens='{"acme": "tok-1"}')
    assert settings.portal_tokens == {"acme": "tok-1"}


def test_portal_tokens_from_environment(monkeypatch):
    monkeypatch.setenv("PORTAL_TOKENS", "acme=env-token")
    monkeypatch.setenv("BASE_URL", "https://portal.example.org/")
    settings = Settings()
    assert settings.portal_tokens == {"acme": "env-token"}
    assert settings.base_url == "https://portal.example.org"


def test_build_fetcher_uses_settings():
    settings = Settings(portal_tokens={"acme": "tok"}, cache_ttl_seconds=60, max_retries=5, account_id_header="hdr")
    fetcher = build_fetcher(settings)
    try:
        assert fetcher.cache.ttl == 60
        assert fetcher.max_retries == 5
        assert fetcher.account_id_header == "hdr"
        assert asyncio.run(fetcher.token_provider.get_portal_token("acme")) == "tok"
        with pytest.raises(TokenProviderError):
            asyncio.run(fetcher.token_provider.get_portal_token("unknown"))
    finally:
        asyncio.run(fetcher.client.aclose())
