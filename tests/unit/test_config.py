"""Tests for managed_identity_wallets.config — Settings."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from managed_identity_wallets.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MIW_AGENT_ADMIN_URL", raising=False)
        settings = Settings(_env_file=None)
        assert settings.agent_admin_url == "http://localhost:11000"
        assert settings.network_identifier == ""
        assert settings.publish_wallet_dids is False
        assert settings.wallet_store_path is None

    def test_reads_prefixed_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MIW_AGENT_ADMIN_URL", "http://acapy:8031")
        monkeypatch.setenv("MIW_BASE_WALLET_BPN", "BPNL000000000000")
        monkeypatch.setenv("MIW_SERVICE_UPDATE_DISABLED_BPNS", '["BPNL0000000000FF"]')
        settings = Settings(_env_file=None)
        assert settings.agent_admin_url == "http://acapy:8031"
        assert settings.base_wallet_bpn == "BPNL000000000000"
        assert settings.service_update_disabled_bpns == ["BPNL0000000000FF"]

    def test_log_level_is_upper_cased(self) -> None:
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(log_level="chatty")

    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(agent_timeout_seconds=0)


class TestServiceUpdatePolicy:
    def test_base_wallet_disabled(self) -> None:
        settings = Settings(base_wallet_bpn="BPN0")
        assert settings.service_updates_enabled_for("BPN0") is False

    def test_listed_bpn_disabled(self) -> None:
        settings = Settings(service_update_disabled_bpns=["BPN9"])
        assert settings.service_updates_enabled_for("BPN9") is False

    def test_other_bpn_enabled(self) -> None:
        settings = Settings(base_wallet_bpn="BPN0", service_update_disabled_bpns=["BPN9"])
        assert settings.service_updates_enabled_for("BPN1") is True

    def test_empty_base_bpn_disables_nothing(self) -> None:
        assert Settings(base_wallet_bpn="").service_updates_enabled_for("") is True
