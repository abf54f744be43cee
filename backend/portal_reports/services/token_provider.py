from typing import Dict, Optional, Protocol

from portal_reports.core.exceptions import TokenProviderError


class TokenProvider(Protocol):
    async def get_portal_token(self, tenant: str) -> str:
        ...


class StaticTokenProvider:
    """Serves pre-issued portal bearer tokens from configuration."""

    def __init__(self, tokens: Optional[Dict[str, str]] = None, default_token: Optional[str] = None) -> None:
        self.tokens = dict(tokens or {})
        self.default_token = default_token

    async def get_portal_token(self, tenant: str) -> str:
        token = self.tokens.get(tenant) or self.default_token
        if not token:
            raise TokenProviderError(tenant)
        return token
