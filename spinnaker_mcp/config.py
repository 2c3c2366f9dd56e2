"""Configuration loader for the Spinnaker MCP server."""

from __future__ import annotations

from os import getenv
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class ConfigurationError(RuntimeError):
    """Raised when the server cannot be configured; fatal at startup."""


class GateConfig(BaseModel):
    """Gate endpoint settings."""

    model_config = ConfigDict(populate_by_name=True)

    endpoint: str = Field(min_length=1)
    retry_timeout: float = Field(default=0.0, ge=0, alias="retryTimeout")

    @field_validator("endpoint")
    @classmethod
    def _strip_endpoint(cls, value: str) -> str:
        return value.strip().rstrip("/")


class AuthConfig(BaseModel):
    """Identity-aware proxy credentials; both fields are needed for token auth."""

    model_config = ConfigDict(populate_by_name=True)

    oauth_client_id: Optional[str] = Field(default=None, alias="oauthClientId")
    service_account_key_path: Optional[Path] = Field(default=None, alias="serviceAccountKeyPath")


class ServerConfig(BaseModel):
    """Resolved server configuration with environment overrides applied."""

    gate: GateConfig
    auth: AuthConfig = Field(default_factory=AuthConfig)
    log_level: str = Field(default="INFO")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        up = value.upper()
        if up not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            return "INFO"
        return up

    @classmethod
    def load(cls, *, base_dir: Path | None = None, config_path: Path | None = None) -> "ServerConfig":
        """Load configuration from YAML file + environment overrides."""

        base = base_dir or Path.cwd()
        config_file = config_path or (base / "config.yaml")
        if not config_file.is_absolute():
            config_file = (base / config_file).resolve()

        raw: Dict[str, Any] = {}
        if config_file.exists():
            try:
                parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
            except (OSError, yaml.YAMLError) as exc:
                raise ConfigurationError(f"cannot read {config_file}: {exc}") from exc
            if parsed is not None and not isinstance(parsed, dict):
                raise ConfigurationError(f"{config_file} must contain a mapping")
            raw = parsed or {}

        gate: Dict[str, Any] = dict(raw.get("gate") or {})
        auth: Dict[str, Any] = dict(raw.get("auth") or {})
        if endpoint := getenv("SPINNAKER_GATE_ENDPOINT"):
            gate["endpoint"] = endpoint
        if retry_timeout := getenv("SPINNAKER_RETRY_TIMEOUT"):
            gate["retryTimeout"] = retry_timeout
        if client_id := getenv("SPINNAKER_OAUTH_CLIENT_ID"):
            auth["oauthClientId"] = client_id
        if key_path := getenv("SPINNAKER_SERVICE_ACCOUNT_KEY"):
            auth["serviceAccountKeyPath"] = key_path

        merged = {key: value for key, value in raw.items() if key not in {"gate", "auth"}}
        if lvl := getenv("LOG_LEVEL"):
            merged["log_level"] = lvl
        if not gate.get("endpoint"):
            raise ConfigurationError(
                f"gate.endpoint is not set (looked in {config_file} and SPINNAKER_GATE_ENDPOINT)"
            )
        merged["gate"] = gate
        merged["auth"] = auth

        try:
            config = cls.model_validate(merged)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid configuration: {exc}") from exc

        key_path = config.auth.service_account_key_path
        if key_path is not None and not key_path.is_absolute():
            config.auth.service_account_key_path = (base / key_path).resolve()
        return config
