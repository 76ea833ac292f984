"""Runtime configuration loaded from ``MIW_``-prefixed environment variables.

Example
-------
::

    MIW_AGENT_ADMIN_URL=http://acapy:11000
    MIW_NETWORK_IDENTIFIER=local:test
    MIW_BASE_WALLET_BPN=BPNL000000000000
    MIW_SERVICE_UPDATE_DISABLED_BPNS='["BPNL000000000099"]'
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the agent connection, wallet policy and local storage."""

    model_config = SettingsConfigDict(
        env_prefix="MIW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Identity agent
    agent_admin_url: str = Field(
        default="http://localhost:11000", description="Admin API base URL of the agent"
    )
    agent_api_key: str | None = Field(default=None, description="Admin API key")
    agent_timeout_seconds: float = Field(default=30.0, gt=0)

    # Ledger and wallet policy
    network_identifier: str = Field(
        default="", description="Ledger network, e.g. 'local:test'; empty for did:sov"
    )
    base_wallet_bpn: str = Field(
        default="", description="BPN of the network/root issuer wallet"
    )
    service_update_disabled_bpns: list[str] = Field(default_factory=list)
    publish_wallet_dids: bool = False

    # Local state
    wallet_store_path: Path | None = None
    audit_log_path: Path | None = None
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level {value!r}.")
        return level

    def service_updates_enabled_for(self, bpn: str) -> bool:
        """Return False for the base wallet and explicitly disabled BPNs."""
        if self.base_wallet_bpn and bpn == self.base_wallet_bpn:
            return False
        return bpn not in self.service_update_disabled_bpns


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
