"""Google identity-token auth for Gate behind an identity-aware proxy."""

from __future__ import annotations

import threading
from collections.abc import Generator
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
from google.auth import exceptions as google_exceptions
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from .config import AuthConfig, ConfigurationError


class IdTokenAuth(httpx.Auth):
    """Attach an ID token minted for ``audience`` to every request."""

    def __init__(self, credentials: Any, *, request_factory: Callable[[], Any] = Request) -> None:
        self._credentials = credentials
        self._request_factory = request_factory
        self._lock = threading.Lock()

    @classmethod
    def from_service_account_file(cls, key_path: Path, audience: str) -> "IdTokenAuth":
        try:
            credentials = service_account.IDTokenCredentials.from_service_account_file(
                str(key_path), target_audience=audience
            )
        except (OSError, ValueError) as exc:
            raise ConfigurationError(f"cannot load service account key {key_path}: {exc}") from exc
        return cls(credentials)

    def token(self) -> str:
        with self._lock:
            if not self._credentials.valid:
                self._credentials.refresh(self._request_factory())
            return self._credentials.token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        try:
            token = self.token()
        except google_exceptions.GoogleAuthError as exc:
            raise httpx.RequestError(f"identity token refresh failed: {exc}", request=request) from exc
        request.headers["Authorization"] = f"Bearer {token}"
        yield request


def build_auth(config: AuthConfig) -> Optional[IdTokenAuth]:
    """Return token auth when credentials are configured, else ``None``."""
    if config.service_account_key_path is None or not config.oauth_client_id:
        return None
    return IdTokenAuth.from_service_account_file(config.service_account_key_path, config.oauth_client_id)
