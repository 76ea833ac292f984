"""Shared fixtures: an in-memory stand-in for the identity agent."""
from __future__ import annotations

import base64
import hashlib
import json
import secrets
from typing import Any

import pytest

from managed_identity_wallets.agent.client import (
    AgentClient,
    CreatedSubWallet,
    CreateSubWallet,
    DidCreate,
    DidEndpointWithType,
    DidRegistration,
    DidResult,
    SignRequest,
    SubWalletRecord,
    SubWalletRef,
    VerifyRequest,
    VerifyResult,
)
from managed_identity_wallets.audit import WalletAuditLogger
from managed_identity_wallets.config import Settings
from managed_identity_wallets.credentials.models import utc_timestamp
from managed_identity_wallets.errors import UpstreamError
from managed_identity_wallets.services import WalletServices, build_services
from managed_identity_wallets.wallets.manager import qualify_did
from managed_identity_wallets.wallets.store import InMemoryWalletStore

BASE_BPN = "BPNL000000000000"
DISABLED_BPN = "BPNL0000000000FF"
NETWORK = "local:test"


def _digest(verkey: str, doc: dict[str, Any]) -> bytes:
    payload = json.dumps(doc, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256((verkey + payload).encode("utf-8")).digest()


class FakeAgentClient(AgentClient):
    """Keeps sub wallets, DIDs and DID documents in dictionaries.

    Method names listed in ``failures`` raise :class:`UpstreamError`;
    ``refuse_delete`` makes sub wallet deletion answer False.
    """

    def __init__(self, network_identifier: str = NETWORK) -> None:
        self._network_identifier = network_identifier
        self.sub_wallets: dict[str, CreateSubWallet] = {}
        self.tokens: dict[str, str] = {}
        self.documents: dict[str, dict[str, Any]] = {}
        self.registrations: list[DidRegistration] = []
        self.public_dids: list[str] = []
        self.failures: set[str] = set()
        self.refuse_delete = False
        self.calls: list[str] = []

    @property
    def network_identifier(self) -> str:
        return self._network_identifier

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.failures:
            raise UpstreamError(f"fake agent failure in {operation}", operation=operation)

    def _check_token(self, token: str) -> None:
        if token not in self.tokens:
            raise UpstreamError("unknown token", operation="auth")

    def get_wallets(self) -> list[SubWalletRecord]:
        self._enter("get_wallets")
        return [
            SubWalletRecord(wallet_id=wallet_id, wallet_name=sub.wallet_name)
            for wallet_id, sub in self.sub_wallets.items()
        ]

    def create_sub_wallet(self, sub_wallet: CreateSubWallet) -> CreatedSubWallet:
        self._enter("create_sub_wallet")
        wallet_id = secrets.token_hex(8)
        self.sub_wallets[wallet_id] = sub_wallet
        return CreatedSubWallet(wallet_id=wallet_id, wallet_name=sub_wallet.wallet_name)

    def delete_sub_wallet(self, wallet: SubWalletRef) -> bool:
        self._enter("delete_sub_wallet")
        if self.refuse_delete:
            return False
        sub = self.sub_wallets.get(wallet.wallet_id)
        if sub is None or sub.wallet_key != wallet.wallet_key:
            return False
        del self.sub_wallets[wallet.wallet_id]
        return True

    def get_token(self, wallet_id: str, wallet_key: str) -> str:
        self._enter("get_token")
        token = f"token-{wallet_id}"
        self.tokens[token] = wallet_id
        return token

    def create_local_did(self, did_create: DidCreate, token: str) -> DidResult:
        self._enter("create_local_did")
        self._check_token(token)
        did = secrets.token_hex(11)
        verkey = secrets.token_hex(16)
        qualified = qualify_did(did, self._network_identifier)
        self.documents[did] = {
            "@context": ["https://www.w3.org/ns/did/v1"],
            "id": qualified,
            "verificationMethod": [
                {
                    "id": f"{qualified}#key-1",
                    "type": "Ed25519VerificationKey2018",
                    "controller": qualified,
                    "publicKeyBase58": verkey,
                }
            ],
            "service": [],
        }
        return DidResult(did=did, verkey=verkey)

    def register_did_on_ledger(self, registration: DidRegistration) -> bool:
        self._enter("register_did_on_ledger")
        self.registrations.append(registration)
        return True

    def assign_did_to_public(self, did: str, token: str) -> bool:
        self._enter("assign_did_to_public")
        self._check_token(token)
        self.public_dids.append(did)
        return True

    def sign_json_ld(self, sign_request: SignRequest, token: str) -> dict[str, Any]:
        self._enter("sign_json_ld")
        self._check_token(token)
        signature = _digest(sign_request.verkey, sign_request.doc)
        encoded = base64.urlsafe_b64encode(signature).decode("ascii").rstrip("=")
        signed = dict(sign_request.doc)
        signed["proof"] = {
            "type": "Ed25519Signature2018",
            "created": utc_timestamp(),
            "proofPurpose": sign_request.proof_purpose,
            "verificationMethod": sign_request.verification_method,
            "jws": f"eyJhbGciOiJFZERTQSIsImI2NCI6ZmFsc2V9..{encoded}",
        }
        return signed

    def verify_json_ld(self, verify_request: VerifyRequest, token: str) -> VerifyResult:
        self._enter("verify_json_ld")
        self._check_token(token)
        doc = dict(verify_request.doc)
        proof = doc.pop("proof", None)
        if not isinstance(proof, dict):
            return VerifyResult(valid=False, error="no proof")
        signature = proof["jws"].rsplit(".", 1)[-1]
        decoded = base64.urlsafe_b64decode(signature + "=" * (-len(signature) % 4))
        if decoded != _digest(verify_request.verkey, doc):
            return VerifyResult(valid=False, error="signature mismatch")
        return VerifyResult(valid=True)

    def resolve_did_document(self, did: str, token: str) -> dict[str, Any] | None:
        self._enter("resolve_did_document")
        document = self.documents.get(did.rsplit(":", 1)[-1])
        return json.loads(json.dumps(document)) if document is not None else None

    def update_service_endpoint(self, endpoint: DidEndpointWithType, token: str) -> bool:
        self._enter("update_service_endpoint")
        self._check_token(token)
        document = self.documents[endpoint.did]
        fragment = endpoint.service_id.rsplit("#", 1)[-1]
        entry = {
            "id": f"{document['id']}#{fragment}",
            "type": endpoint.endpoint_type,
            "serviceEndpoint": endpoint.endpoint,
        }
        services = [s for s in document["service"] if s["id"] != entry["id"]]
        services.append(entry)
        document["service"] = services
        return True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        network_identifier=NETWORK,
        base_wallet_bpn=BASE_BPN,
        service_update_disabled_bpns=[DISABLED_BPN],
    )


@pytest.fixture()
def agent() -> FakeAgentClient:
    return FakeAgentClient()


@pytest.fixture()
def store() -> InMemoryWalletStore:
    return InMemoryWalletStore()


@pytest.fixture()
def audit() -> WalletAuditLogger:
    return WalletAuditLogger(log_path=None)


@pytest.fixture()
def services(
    settings: Settings,
    agent: FakeAgentClient,
    store: InMemoryWalletStore,
    audit: WalletAuditLogger,
) -> WalletServices:
    return build_services(settings, agent=agent, store=store, audit=audit)


@pytest.fixture()
def base_bpn() -> str:
    return BASE_BPN


@pytest.fixture()
def disabled_bpn() -> str:
    return DISABLED_BPN
