"""AgentClient — the contract of the external identity agent.

The agent owns every private key. This package only ever holds the opaque
per-wallet token the agent hands out, and passes it back on each call that
acts on behalf of a sub wallet. Each method is a single blocking remote call;
any transport or remote failure surfaces as
:class:`~managed_identity_wallets.errors.UpstreamError`.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CreateSubWallet:
    """Parameters for provisioning a sub wallet on the agent."""

    wallet_name: str
    wallet_key: str
    label: str
    wallet_type: str = "askar"
    key_management_mode: str = "managed"


@dataclass(frozen=True)
class CreatedSubWallet:
    """Agent answer to a sub wallet creation."""

    wallet_id: str
    wallet_name: str = ""


@dataclass(frozen=True)
class SubWalletRef:
    """Reference to an existing sub wallet, sufficient to delete or unlock it."""

    wallet_id: str
    wallet_key: str


@dataclass(frozen=True)
class DidCreate:
    """Parameters for creating a local DID with a fresh key pair."""

    method: str = "sov"
    key_type: str = "ed25519"


@dataclass(frozen=True)
class DidResult:
    """A local DID and its base58 verkey as created by the agent."""

    did: str
    verkey: str


@dataclass(frozen=True)
class DidRegistration:
    """A NYM registration request for the ledger."""

    did: str
    verkey: str
    alias: str = ""
    role: str | None = None


@dataclass(frozen=True)
class SignRequest:
    """A JSON-LD document to sign with the key behind ``verkey``."""

    doc: dict[str, Any]
    verkey: str
    verification_method: str
    proof_purpose: str = "assertionMethod"


@dataclass(frozen=True)
class VerifyRequest:
    """A signed JSON-LD document and the verkey expected to have signed it."""

    doc: dict[str, Any]
    verkey: str


@dataclass(frozen=True)
class VerifyResult:
    """Outcome of a JSON-LD proof verification."""

    valid: bool
    error: str | None = None


@dataclass(frozen=True)
class DidEndpointWithType:
    """A service endpoint write for a DID document.

    ``endpoint_type`` is the agent's own endpoint type name (``Endpoint``,
    ``LinkedDomains``, ``Profile``), not the service type slug.
    """

    did: str
    endpoint: str
    endpoint_type: str
    service_id: str = ""


@dataclass(frozen=True)
class SubWalletRecord:
    """A sub wallet as listed by the agent."""

    wallet_id: str
    wallet_name: str
    settings: dict[str, Any] = field(default_factory=dict)


class AgentClient(ABC):
    """Abstract interface to the identity agent."""

    @property
    @abstractmethod
    def network_identifier(self) -> str:
        """Ledger network the agent writes to (empty if unqualified)."""

    @abstractmethod
    def get_wallets(self) -> list[SubWalletRecord]:
        """Return all sub wallets known to the agent."""

    @abstractmethod
    def create_sub_wallet(self, sub_wallet: CreateSubWallet) -> CreatedSubWallet:
        """Provision a new sub wallet."""

    @abstractmethod
    def delete_sub_wallet(self, wallet: SubWalletRef) -> bool:
        """Delete a sub wallet. Returns False if the agent refused."""

    @abstractmethod
    def get_token(self, wallet_id: str, wallet_key: str) -> str:
        """Issue an access token for a sub wallet."""

    @abstractmethod
    def create_local_did(self, did_create: DidCreate, token: str) -> DidResult:
        """Create a DID and key pair inside the sub wallet behind *token*."""

    @abstractmethod
    def register_did_on_ledger(self, registration: DidRegistration) -> bool:
        """Write a NYM for the DID to the ledger using the base wallet."""

    @abstractmethod
    def assign_did_to_public(self, did: str, token: str) -> bool:
        """Make *did* the public DID of the sub wallet behind *token*."""

    @abstractmethod
    def sign_json_ld(self, sign_request: SignRequest, token: str) -> dict[str, Any]:
        """Sign a JSON-LD document; returns the document with its ``proof``."""

    @abstractmethod
    def verify_json_ld(self, verify_request: VerifyRequest, token: str) -> VerifyResult:
        """Verify the proof of a signed JSON-LD document."""

    @abstractmethod
    def resolve_did_document(self, did: str, token: str) -> dict[str, Any] | None:
        """Resolve a DID document, or return None if the DID is unknown."""

    @abstractmethod
    def update_service_endpoint(self, endpoint: DidEndpointWithType, token: str) -> bool:
        """Write a service endpoint into the DID document of ``endpoint.did``."""
