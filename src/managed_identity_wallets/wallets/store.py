"""Wallet storage — abstract interface, in-memory and filesystem backends.

Each backend treats a single wallet record as the unit of consistency. A
duplicate BPN or DID on insert is reported as :class:`DuplicateWalletError`,
the storage-level counterpart of a unique constraint violation.
"""
from __future__ import annotations

import dataclasses
import json
import threading
import urllib.parse
from abc import ABC, abstractmethod
from pathlib import Path

from managed_identity_wallets.credentials.models import VerifiableCredential
from managed_identity_wallets.wallets.models import Wallet


class WalletStoreError(Exception):
    """Raised when the storage backend fails."""


class DuplicateWalletError(WalletStoreError):
    """Raised when inserting a wallet whose BPN or DID is already stored."""

    def __init__(self, key: str) -> None:
        super().__init__(f"A wallet with key {key!r} is already stored.")
        self.key = key


def _copy(wallet: Wallet, with_credentials: bool = True) -> Wallet:
    credentials = list(wallet.credentials) if with_credentials else []
    return dataclasses.replace(wallet, credentials=credentials)


class WalletStore(ABC):
    """Abstract base class for wallet storage backends."""

    @abstractmethod
    def find_by_bpn_or_did(self, identifier: str) -> Wallet | None:
        """Return the wallet whose BPN, or else whose DID, equals *identifier*."""

    @abstractmethod
    def insert(self, wallet: Wallet) -> None:
        """Persist a new wallet.

        Raises
        ------
        DuplicateWalletError
            If a wallet with the same BPN or DID is already stored.
        """

    @abstractmethod
    def delete(self, identifier: str) -> bool:
        """Remove the wallet matching *identifier*. Returns False if absent."""

    @abstractmethod
    def list_all(self, with_credentials: bool = False) -> list[Wallet]:
        """Return all wallets sorted by BPN."""

    @abstractmethod
    def append_credential(self, identifier: str, credential: VerifiableCredential) -> None:
        """Append *credential* to the wallet matching *identifier*.

        Raises
        ------
        KeyError
            If no wallet matches *identifier*.
        """


class InMemoryWalletStore(WalletStore):
    """Dictionary-backed store keyed by BPN. Thread-safe."""

    def __init__(self) -> None:
        self._wallets: dict[str, Wallet] = {}
        self._lock = threading.Lock()

    def find_by_bpn_or_did(self, identifier: str) -> Wallet | None:
        with self._lock:
            wallet = self._lookup(identifier)
            return _copy(wallet) if wallet is not None else None

    def insert(self, wallet: Wallet) -> None:
        with self._lock:
            if wallet.bpn in self._wallets:
                raise DuplicateWalletError(wallet.bpn)
            if any(w.did == wallet.did for w in self._wallets.values()):
                raise DuplicateWalletError(wallet.did)
            self._wallets[wallet.bpn] = _copy(wallet)

    def delete(self, identifier: str) -> bool:
        with self._lock:
            wallet = self._lookup(identifier)
            if wallet is None:
                return False
            del self._wallets[wallet.bpn]
            return True

    def list_all(self, with_credentials: bool = False) -> list[Wallet]:
        with self._lock:
            wallets = [_copy(w, with_credentials) for w in self._wallets.values()]
        return sorted(wallets, key=lambda w: w.bpn)

    def append_credential(self, identifier: str, credential: VerifiableCredential) -> None:
        with self._lock:
            wallet = self._lookup(identifier)
            if wallet is None:
                raise KeyError(identifier)
            wallet.credentials.append(credential)

    def __len__(self) -> int:
        with self._lock:
            return len(self._wallets)

    def _lookup(self, identifier: str) -> Wallet | None:
        wallet = self._wallets.get(identifier)
        if wallet is not None:
            return wallet
        for candidate in self._wallets.values():
            if candidate.did == identifier:
                return candidate
        return None


class FilesystemWalletStore(WalletStore):
    """Filesystem-backed store with one JSON document per wallet.

    Wallets are stored as ``<base_dir>/<bpn>.json`` with the BPN percent-encoded,
    so distinct BPNs never share a file. The files contain the
    agent token and wallet key; the directory must be protected accordingly.

    Parameters
    ----------
    base_dir:
        Directory holding the wallet files. Created if missing.
    """

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = base_dir
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def find_by_bpn_or_did(self, identifier: str) -> Wallet | None:
        with self._lock:
            return self._lookup(identifier)

    def insert(self, wallet: Wallet) -> None:
        with self._lock:
            if self._path(wallet.bpn).exists():
                raise DuplicateWalletError(wallet.bpn)
            if any(w.did == wallet.did for w in self._load_all()):
                raise DuplicateWalletError(wallet.did)
            self._write(wallet)

    def delete(self, identifier: str) -> bool:
        with self._lock:
            wallet = self._lookup(identifier)
            if wallet is None:
                return False
            try:
                self._path(wallet.bpn).unlink()
            except OSError as exc:
                raise WalletStoreError(f"Could not delete wallet {wallet.bpn}: {exc}") from exc
            return True

    def list_all(self, with_credentials: bool = False) -> list[Wallet]:
        with self._lock:
            wallets = self._load_all()
        return sorted(
            (_copy(w, with_credentials) for w in wallets), key=lambda w: w.bpn
        )

    def append_credential(self, identifier: str, credential: VerifiableCredential) -> None:
        with self._lock:
            wallet = self._lookup(identifier)
            if wallet is None:
                raise KeyError(identifier)
            wallet.credentials.append(credential)
            self._write(wallet)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _path(self, bpn: str) -> Path:
        return self._base_dir / f"{urllib.parse.quote(bpn, safe='')}.json"

    def _read(self, path: Path) -> Wallet:
        try:
            return Wallet.from_dict(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, KeyError) as exc:
            raise WalletStoreError(f"Corrupt wallet file {path}: {exc}") from exc

    def _write(self, wallet: Wallet) -> None:
        try:
            self._path(wallet.bpn).write_text(
                json.dumps(wallet.to_dict(), indent=2), encoding="utf-8"
            )
        except OSError as exc:
            raise WalletStoreError(f"Could not write wallet {wallet.bpn}: {exc}") from exc

    def _load_all(self) -> list[Wallet]:
        return [self._read(path) for path in sorted(self._base_dir.glob("*.json"))]

    def _lookup(self, identifier: str) -> Wallet | None:
        path = self._path(identifier)
        if path.exists():
            wallet = self._read(path)
            if wallet.bpn == identifier:
                return wallet
        for wallet in self._load_all():
            if wallet.did == identifier:
                return wallet
        return None
