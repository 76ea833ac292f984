"""Tests for managed_identity_wallets.wallets.manager — WalletLifecycleManager."""
from __future__ import annotations

import pytest

from managed_identity_wallets.audit import WalletAuditLogger
from managed_identity_wallets.config import Settings
from managed_identity_wallets.errors import (
    ConflictError,
    NotFoundError,
    SyntacticallyInvalidInputError,
    UpstreamError,
)
from managed_identity_wallets.wallets.manager import WalletLifecycleManager, qualify_did
from managed_identity_wallets.wallets.models import Wallet
from managed_identity_wallets.wallets.store import (
    DuplicateWalletError,
    FilesystemWalletStore,
    InMemoryWalletStore,
    WalletStoreError,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def manager(agent, store, settings, audit) -> WalletLifecycleManager:
    return WalletLifecycleManager(agent, store, settings=settings, audit=audit)


class _FailingInsertStore(InMemoryWalletStore):
    def __init__(self, error: Exception) -> None:
        super().__init__()
        self._error = error

    def insert(self, wallet: Wallet) -> None:
        raise self._error


class _FailingDeleteStore(InMemoryWalletStore):
    def delete(self, identifier: str) -> bool:
        raise WalletStoreError("disk full")


def _event_types(audit: WalletAuditLogger) -> list[object]:
    return [event["event_type"] for event in audit.events()]


# ---------------------------------------------------------------------------
# qualify_did
# ---------------------------------------------------------------------------


class TestQualifyDid:
    def test_indy_with_network(self) -> None:
        assert qualify_did("abc", "local:test") == "did:indy:local:test:abc"

    def test_sov_without_network(self) -> None:
        assert qualify_did("abc") == "did:sov:abc"

    def test_already_qualified_unchanged(self) -> None:
        assert qualify_did("did:web:example.com", "local:test") == "did:web:example.com"


# ---------------------------------------------------------------------------
# create_wallet
# ---------------------------------------------------------------------------


class TestCreateWallet:
    def test_returns_projection_with_qualified_did(self, manager, agent) -> None:
        wallet = manager.create_wallet("BPN1", "Company One")
        assert wallet.bpn == "BPN1"
        assert wallet.name == "Company One"
        assert wallet.did.startswith("did:indy:local:test:")
        assert wallet.public_key
        assert wallet.credentials is None
        assert len(agent.sub_wallets) == 1

    def test_projection_hides_secrets(self, manager) -> None:
        dumped = manager.create_wallet("BPN1", "Company One").model_dump()
        assert "wallet_token" not in dumped
        assert "wallet_key" not in dumped

    def test_record_keeps_agent_token(self, manager, store) -> None:
        manager.create_wallet("BPN1", "Company One")
        record = store.find_by_bpn_or_did("BPN1")
        assert record is not None
        assert record.wallet_token.startswith("token-")

    def test_duplicate_bpn_conflicts_and_keeps_one_record(self, manager, store, agent) -> None:
        manager.create_wallet("BPN1", "Company One")
        with pytest.raises(ConflictError):
            manager.create_wallet("BPN1", "Company One again")
        assert len(store) == 1
        assert len(agent.sub_wallets) == 1

    @pytest.mark.parametrize(("bpn", "name"), [("", "Name"), ("   ", "Name"), ("BPN1", " ")])
    def test_blank_input_rejected(self, manager, agent, bpn: str, name: str) -> None:
        with pytest.raises(SyntacticallyInvalidInputError):
            manager.create_wallet(bpn, name)
        assert agent.calls == []

    def test_service_update_flag_follows_settings(self, manager, store, base_bpn, disabled_bpn) -> None:
        manager.create_wallet(base_bpn, "Base")
        manager.create_wallet(disabled_bpn, "Disabled")
        manager.create_wallet("BPN1", "Regular")
        assert store.find_by_bpn_or_did(base_bpn).service_updates_enabled is False
        assert store.find_by_bpn_or_did(disabled_bpn).service_updates_enabled is False
        assert store.find_by_bpn_or_did("BPN1").service_updates_enabled is True

    def test_audit_event(self, manager, audit) -> None:
        manager.create_wallet("BPN1", "Company One")
        assert _event_types(audit) == ["wallet_created"]

    def test_similar_bpns_in_filesystem_store(self, agent, settings, tmp_path) -> None:
        store = FilesystemWalletStore(tmp_path)
        manager = WalletLifecycleManager(agent, store, settings=settings)
        slash = manager.create_wallet("BPN/1", "Slash")
        underscore = manager.create_wallet("BPN_1", "Underscore")
        assert manager.get_wallet("BPN_1").did == underscore.did
        assert manager.get_wallet("BPN/1").did == slash.did


class TestCreateWalletFailures:
    def test_sub_wallet_failure_writes_nothing(self, manager, agent, store) -> None:
        agent.failures.add("create_sub_wallet")
        with pytest.raises(UpstreamError):
            manager.create_wallet("BPN1", "Company One")
        assert len(store) == 0

    def test_did_failure_discards_sub_wallet(self, manager, agent, store) -> None:
        agent.failures.add("create_local_did")
        with pytest.raises(UpstreamError):
            manager.create_wallet("BPN1", "Company One")
        assert len(store) == 0
        assert agent.sub_wallets == {}

    def test_failed_cleanup_is_audited_as_inconsistency(self, manager, agent, audit) -> None:
        agent.failures.update({"get_token", "delete_sub_wallet"})
        with pytest.raises(UpstreamError):
            manager.create_wallet("BPN1", "Company One")
        events = audit.events()
        assert events[-1]["event_type"] == "wallet_inconsistency"
        assert events[-1]["identifier"] == "BPN1"
        assert len(agent.sub_wallets) == 1

    def test_concurrent_duplicate_insert_is_conflict(self, agent, settings, audit) -> None:
        store = _FailingInsertStore(DuplicateWalletError("BPN1"))
        manager = WalletLifecycleManager(agent, store, settings=settings, audit=audit)
        with pytest.raises(ConflictError):
            manager.create_wallet("BPN1", "Company One")
        assert agent.sub_wallets == {}

    def test_store_failure_is_upstream_error(self, agent, settings, audit) -> None:
        store = _FailingInsertStore(WalletStoreError("disk full"))
        manager = WalletLifecycleManager(agent, store, settings=settings, audit=audit)
        with pytest.raises(UpstreamError):
            manager.create_wallet("BPN1", "Company One")
        assert agent.sub_wallets == {}


class TestLedgerPublication:
    def test_disabled_by_default(self, manager, agent) -> None:
        manager.create_wallet("BPN1", "Company One")
        assert agent.registrations == []
        assert agent.public_dids == []

    def test_registers_and_assigns_public(self, agent, store, base_bpn) -> None:
        settings = Settings(base_wallet_bpn=base_bpn, publish_wallet_dids=True)
        manager = WalletLifecycleManager(agent, store, settings=settings)
        manager.create_wallet("BPN1", "Company One")
        assert len(agent.registrations) == 1
        assert agent.registrations[0].alias == "Company One"
        assert agent.public_dids == [agent.registrations[0].did]

    def test_base_wallet_is_not_published(self, agent, store, base_bpn) -> None:
        settings = Settings(base_wallet_bpn=base_bpn, publish_wallet_dids=True)
        manager = WalletLifecycleManager(agent, store, settings=settings)
        manager.create_wallet(base_bpn, "Base")
        assert agent.registrations == []

    def test_ledger_failure_discards_sub_wallet(self, agent, store, base_bpn) -> None:
        settings = Settings(base_wallet_bpn=base_bpn, publish_wallet_dids=True)
        manager = WalletLifecycleManager(agent, store, settings=settings)
        agent.failures.add("register_did_on_ledger")
        with pytest.raises(UpstreamError):
            manager.create_wallet("BPN1", "Company One")
        assert agent.sub_wallets == {}
        assert len(store) == 0


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


class TestLookup:
    def test_get_by_bpn_and_did_agree(self, manager) -> None:
        created = manager.create_wallet("BPN1", "Company One")
        assert manager.get_wallet("BPN1") == manager.get_wallet(created.did)

    def test_unknown_identifier(self, manager) -> None:
        with pytest.raises(NotFoundError, match="BPN9"):
            manager.get_wallet("BPN9")

    def test_blank_identifier(self, manager) -> None:
        with pytest.raises(SyntacticallyInvalidInputError):
            manager.get_wallet("  ")

    def test_with_credentials_projection(self, manager) -> None:
        manager.create_wallet("BPN1", "Company One")
        assert manager.get_wallet("BPN1").credentials is None
        assert manager.get_wallet("BPN1", with_credentials=True).credentials == []

    def test_get_all(self, manager) -> None:
        manager.create_wallet("BPN2", "Two")
        manager.create_wallet("BPN1", "One")
        wallets = manager.get_all()
        assert [w.bpn for w in wallets] == ["BPN1", "BPN2"]
        assert all(w.credentials is None for w in wallets)


# ---------------------------------------------------------------------------
# delete_wallet
# ---------------------------------------------------------------------------


class TestDeleteWallet:
    def test_removes_agent_and_local_state(self, manager, agent, audit) -> None:
        created = manager.create_wallet("BPN1", "Company One")
        assert manager.delete_wallet(created.did) is True
        assert manager.get_all() == []
        assert agent.sub_wallets == {}
        assert _event_types(audit)[-1] == "wallet_deleted"

    def test_unknown_identifier(self, manager) -> None:
        with pytest.raises(NotFoundError):
            manager.delete_wallet("BPN9")

    def test_agent_refusal_keeps_local_record(self, manager, agent) -> None:
        manager.create_wallet("BPN1", "Company One")
        agent.refuse_delete = True
        assert manager.delete_wallet("BPN1") is False
        assert manager.get_wallet("BPN1").bpn == "BPN1"

    def test_agent_failure_keeps_local_record(self, manager, agent) -> None:
        manager.create_wallet("BPN1", "Company One")
        agent.failures.add("delete_sub_wallet")
        with pytest.raises(UpstreamError):
            manager.delete_wallet("BPN1")
        assert manager.get_wallet("BPN1").bpn == "BPN1"

    def test_store_failure_after_agent_delete(self, agent, settings, audit) -> None:
        manager = WalletLifecycleManager(
            agent, _FailingDeleteStore(), settings=settings, audit=audit
        )
        manager.create_wallet("BPN1", "Company One")
        with pytest.raises(UpstreamError):
            manager.delete_wallet("BPN1")
        assert _event_types(audit)[-1] == "wallet_inconsistency"
