"""Wiring of the orchestration components around one agent and one store."""
from __future__ import annotations

from dataclasses import dataclass

from managed_identity_wallets.agent.acapy import AcaPyClient
from managed_identity_wallets.agent.client import AgentClient
from managed_identity_wallets.audit import WalletAuditLogger
from managed_identity_wallets.config import Settings
from managed_identity_wallets.credentials.service import CredentialService
from managed_identity_wallets.did.services import DidDocumentServiceManager
from managed_identity_wallets.signing import MessageSigningService
from managed_identity_wallets.wallets.manager import WalletLifecycleManager
from managed_identity_wallets.wallets.store import (
    FilesystemWalletStore,
    InMemoryWalletStore,
    WalletStore,
)


@dataclass
class WalletServices:
    """The orchestration components sharing one agent, store and audit log."""

    agent: AgentClient
    store: WalletStore
    audit: WalletAuditLogger
    wallets: WalletLifecycleManager
    did_documents: DidDocumentServiceManager
    credentials: CredentialService
    signing: MessageSigningService


def build_services(
    settings: Settings,
    agent: AgentClient | None = None,
    store: WalletStore | None = None,
    audit: WalletAuditLogger | None = None,
) -> WalletServices:
    """Build all components from *settings*.

    Any collaborator passed explicitly replaces the one *settings* describes:
    an :class:`AcaPyClient` for the agent, a filesystem store when
    ``wallet_store_path`` is set (in-memory otherwise) and a JSONL audit log
    at ``audit_log_path``.
    """
    if agent is None:
        agent = AcaPyClient(
            admin_url=settings.agent_admin_url,
            api_key=settings.agent_api_key,
            network_identifier=settings.network_identifier,
            timeout=settings.agent_timeout_seconds,
        )
    if store is None:
        if settings.wallet_store_path is not None:
            store = FilesystemWalletStore(settings.wallet_store_path)
        else:
            store = InMemoryWalletStore()
    if audit is None:
        audit = WalletAuditLogger(settings.audit_log_path)

    wallets = WalletLifecycleManager(agent, store, settings=settings, audit=audit)
    return WalletServices(
        agent=agent,
        store=store,
        audit=audit,
        wallets=wallets,
        did_documents=DidDocumentServiceManager(wallets, agent, audit=audit),
        credentials=CredentialService(wallets, store, agent, audit=audit),
        signing=MessageSigningService(wallets, agent, audit=audit),
    )
