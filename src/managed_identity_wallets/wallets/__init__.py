"""Managed wallets: records, storage and lifecycle.

Quick start
-----------
::

    from managed_identity_wallets.wallets import (
        InMemoryWalletStore,
        WalletLifecycleManager,
    )

    manager = WalletLifecycleManager(agent, InMemoryWalletStore())
    wallet = manager.create_wallet("BPNL000000000001", "Supplier A")
"""
from __future__ import annotations

from managed_identity_wallets.wallets.manager import WalletLifecycleManager, qualify_did
from managed_identity_wallets.wallets.models import Wallet, WalletDto
from managed_identity_wallets.wallets.store import (
    DuplicateWalletError,
    FilesystemWalletStore,
    InMemoryWalletStore,
    WalletStore,
    WalletStoreError,
)

__all__ = [
    "DuplicateWalletError",
    "FilesystemWalletStore",
    "InMemoryWalletStore",
    "Wallet",
    "WalletDto",
    "WalletLifecycleManager",
    "WalletStore",
    "WalletStoreError",
    "qualify_did",
]
