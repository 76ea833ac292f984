"""WalletLifecycleManager — creation, lookup and deletion of managed wallets.

Composite operations touch the agent first and the local store second:

* create: sub wallet, token, DID (and optionally ledger publication) on the
  agent, then the local record;
* delete: sub wallet removal on the agent, then the local record.

An agent failure therefore never leaves a local record behind. When the local
step fails after the agent step succeeded, the manager tries to undo the
agent step, logs and audits the divergence, and raises.
"""
from __future__ import annotations

import logging
import secrets

from managed_identity_wallets.agent.client import (
    AgentClient,
    CreateSubWallet,
    DidCreate,
    DidRegistration,
    DidResult,
    SubWalletRef,
)
from managed_identity_wallets.audit import WalletAuditLogger
from managed_identity_wallets.config import Settings
from managed_identity_wallets.errors import (
    SyntacticallyInvalidInputError,
    UpstreamError,
    WalletAlreadyExistsError,
    WalletNotFoundError,
)
from managed_identity_wallets.wallets.models import Wallet, WalletDto
from managed_identity_wallets.wallets.store import (
    DuplicateWalletError,
    WalletStore,
    WalletStoreError,
)

logger = logging.getLogger(__name__)


def qualify_did(did: str, network_identifier: str = "") -> str:
    """Return the fully qualified form of an agent-local DID.

    Example
    -------
    >>> qualify_did("WgWxqztrNooG92RXvxSTWv", "local:test")
    'did:indy:local:test:WgWxqztrNooG92RXvxSTWv'
    >>> qualify_did("WgWxqztrNooG92RXvxSTWv")
    'did:sov:WgWxqztrNooG92RXvxSTWv'
    """
    if did.startswith("did:"):
        return did
    if network_identifier:
        return f"did:indy:{network_identifier}:{did}"
    return f"did:sov:{did}"


class WalletLifecycleManager:
    """Creates, resolves and deletes wallets.

    Parameters
    ----------
    agent:
        Client of the identity agent.
    store:
        Local wallet storage.
    settings:
        Wallet policy (base wallet, service update policy, ledger publishing).
    audit:
        Optional audit logger.

    Example
    -------
    ::

        manager = WalletLifecycleManager(agent, InMemoryWalletStore())
        wallet = manager.create_wallet("BPNL000000000001", "Supplier A")
        assert manager.get_wallet(wallet.did).bpn == wallet.bpn
    """

    def __init__(
        self,
        agent: AgentClient,
        store: WalletStore,
        settings: Settings | None = None,
        audit: WalletAuditLogger | None = None,
    ) -> None:
        self._agent = agent
        self._store = store
        self._settings = settings or Settings()
        self._audit = audit or WalletAuditLogger()

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_wallet(self, bpn: str, name: str) -> WalletDto:
        """Provision a wallet for *bpn* on the agent and persist it.

        Raises
        ------
        SyntacticallyInvalidInputError
            If *bpn* or *name* is blank.
        WalletAlreadyExistsError
            If a wallet for *bpn* exists, including one inserted concurrently.
        UpstreamError
            If an agent call fails or the record cannot be stored.
        """
        bpn = bpn.strip()
        name = name.strip()
        if not bpn:
            raise SyntacticallyInvalidInputError("bpn must not be empty.")
        if not name:
            raise SyntacticallyInvalidInputError("name must not be empty.", bpn=bpn)
        if self._store.find_by_bpn_or_did(bpn) is not None:
            raise WalletAlreadyExistsError(bpn)

        wallet_key = secrets.token_urlsafe(32)
        created = self._agent.create_sub_wallet(
            CreateSubWallet(wallet_name=bpn, wallet_key=wallet_key, label=name)
        )
        ref = SubWalletRef(wallet_id=created.wallet_id, wallet_key=wallet_key)
        logger.debug("sub wallet %s created for %s", created.wallet_id, bpn)

        try:
            token = self._agent.get_token(created.wallet_id, wallet_key)
            did_result = self._agent.create_local_did(DidCreate(), token)
            if self._publishes(bpn):
                self._publish(did_result, name, token)
        except UpstreamError as exc:
            self._discard_sub_wallet(bpn, ref, f"provisioning failed: {exc.message}")
            raise

        wallet = Wallet(
            bpn=bpn,
            name=name,
            did=qualify_did(did_result.did, self._agent.network_identifier),
            verkey=did_result.verkey,
            wallet_id=created.wallet_id,
            wallet_key=wallet_key,
            wallet_token=token,
            service_updates_enabled=self._settings.service_updates_enabled_for(bpn),
        )
        try:
            self._store.insert(wallet)
        except DuplicateWalletError as exc:
            self._discard_sub_wallet(bpn, ref, "duplicate wallet on insert")
            raise WalletAlreadyExistsError(bpn) from exc
        except WalletStoreError as exc:
            self._discard_sub_wallet(bpn, ref, f"local insert failed: {exc}")
            raise UpstreamError(
                f"Wallet {bpn} was provisioned on the agent but could not be stored.",
                bpn=bpn,
                operation="create_wallet",
            ) from exc

        logger.info("wallet created for %s with DID %s", bpn, wallet.did)
        self._audit.log_event("wallet_created", bpn, did=wallet.did, name=name)
        return WalletDto.from_wallet(wallet)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def resolve(self, identifier: str) -> Wallet:
        """Return the full wallet record for a BPN or DID.

        This is the internal lookup used by the other orchestration
        components; the result includes the agent token and must not be
        handed to callers outside the package.

        Raises
        ------
        SyntacticallyInvalidInputError
            If *identifier* is blank.
        WalletNotFoundError
            If *identifier* matches neither a BPN nor a DID.
        """
        identifier = identifier.strip()
        if not identifier:
            raise SyntacticallyInvalidInputError("Missing or malformed identifier")
        wallet = self._store.find_by_bpn_or_did(identifier)
        if wallet is None:
            raise WalletNotFoundError(identifier)
        return wallet

    def get_wallet(self, identifier: str, with_credentials: bool = False) -> WalletDto:
        """Return the wallet for a BPN or DID, with or without its credentials."""
        return WalletDto.from_wallet(self.resolve(identifier), with_credentials)

    def get_all(self) -> list[WalletDto]:
        """Return all wallets without their stored credentials."""
        return [
            WalletDto.from_wallet(wallet)
            for wallet in self._store.list_all(with_credentials=False)
        ]

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete_wallet(self, identifier: str) -> bool:
        """Delete the sub wallet on the agent, then the local record.

        Returns
        -------
        bool
            False if the agent refused to delete the sub wallet; the local
            record is kept in that case.

        Raises
        ------
        WalletNotFoundError
            If *identifier* is unknown.
        UpstreamError
            If the agent call fails, or the local delete fails after the
            sub wallet was removed.
        """
        wallet = self.resolve(identifier)
        if not self._agent.delete_sub_wallet(wallet.agent_ref):
            logger.warning("agent refused to delete sub wallet of %s", wallet.bpn)
            return False

        try:
            deleted = self._store.delete(wallet.bpn)
        except WalletStoreError as exc:
            logger.error(
                "sub wallet of %s deleted on the agent but the local record remains: %s",
                wallet.bpn,
                exc,
            )
            self._audit.log_inconsistency(wallet.bpn, "delete_wallet", str(exc))
            raise UpstreamError(
                f"Wallet {wallet.bpn} was removed from the agent but not from the store.",
                bpn=wallet.bpn,
                operation="delete_wallet",
            ) from exc

        if not deleted:
            logger.warning("wallet %s disappeared from the store during deletion", wallet.bpn)
        logger.info("wallet %s deleted", wallet.bpn)
        self._audit.log_event("wallet_deleted", wallet.bpn, did=wallet.did)
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _publishes(self, bpn: str) -> bool:
        base_bpn = self._settings.base_wallet_bpn
        return bool(self._settings.publish_wallet_dids and base_bpn and bpn != base_bpn)

    def _publish(self, did_result: DidResult, alias: str, token: str) -> None:
        registered = self._agent.register_did_on_ledger(
            DidRegistration(did=did_result.did, verkey=did_result.verkey, alias=alias)
        )
        if not registered:
            raise UpstreamError(
                f"Ledger registration of {did_result.did} was rejected.",
                operation="register_did_on_ledger",
            )
        if not self._agent.assign_did_to_public(did_result.did, token):
            raise UpstreamError(
                f"Could not assign {did_result.did} as public DID.",
                operation="assign_did_to_public",
            )

    def _discard_sub_wallet(self, bpn: str, ref: SubWalletRef, reason: str) -> None:
        """Best-effort removal of a sub wallet that has no local record."""
        logger.warning("discarding sub wallet %s of %s: %s", ref.wallet_id, bpn, reason)
        try:
            removed = self._agent.delete_sub_wallet(ref)
        except UpstreamError as exc:
            removed = False
            reason = f"{reason}; cleanup failed: {exc.message}"
        if not removed:
            logger.error("orphaned sub wallet %s left on the agent for %s", ref.wallet_id, bpn)
            self._audit.log_inconsistency(bpn, "create_wallet", reason)
