"""Wallet record and its read projection."""
from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

from managed_identity_wallets.agent.client import SubWalletRef
from managed_identity_wallets.credentials.models import VerifiableCredential


@dataclass
class Wallet:
    """A managed wallet as persisted locally.

    Parameters
    ----------
    bpn:
        Business partner number. Unique, stable key of the wallet.
    name:
        Display name.
    did:
        Fully qualified DID, assigned once at creation.
    verkey:
        Holder public key in base58, as created by the agent.
    wallet_id:
        Identifier of the sub wallet on the agent.
    wallet_key:
        Key that unlocks the sub wallet on the agent.
    wallet_token:
        Agent access token scoped to this wallet.
    created_at:
        UTC datetime of creation.
    service_updates_enabled:
        Whether service endpoints of the DID document may be changed.
    credentials:
        Stored verifiable credentials, in insertion order.
    """

    bpn: str
    name: str
    did: str
    verkey: str
    wallet_id: str
    wallet_key: str
    wallet_token: str
    created_at: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )
    service_updates_enabled: bool = True
    credentials: list[VerifiableCredential] = field(default_factory=list)

    @property
    def agent_ref(self) -> SubWalletRef:
        return SubWalletRef(wallet_id=self.wallet_id, wallet_key=self.wallet_key)

    @property
    def unqualified_did(self) -> str:
        """The DID as known inside the agent wallet, without method prefix."""
        return self.did.rsplit(":", 1)[-1]

    def matches(self, identifier: str) -> bool:
        return identifier in (self.bpn, self.did)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the full record, secrets included, for storage backends."""
        return {
            "bpn": self.bpn,
            "name": self.name,
            "did": self.did,
            "verkey": self.verkey,
            "wallet_id": self.wallet_id,
            "wallet_key": self.wallet_key,
            "wallet_token": self.wallet_token,
            "created_at": self.created_at.isoformat(),
            "service_updates_enabled": self.service_updates_enabled,
            "credentials": [vc.to_dict() for vc in self.credentials],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Wallet":
        return cls(
            bpn=str(data["bpn"]),
            name=str(data["name"]),
            did=str(data["did"]),
            verkey=str(data["verkey"]),
            wallet_id=str(data["wallet_id"]),
            wallet_key=str(data["wallet_key"]),
            wallet_token=str(data["wallet_token"]),
            created_at=datetime.datetime.fromisoformat(str(data["created_at"])),
            service_updates_enabled=bool(data.get("service_updates_enabled", True)),
            credentials=[
                VerifiableCredential.model_validate(vc) for vc in data.get("credentials", [])
            ],
        )


class WalletDto(BaseModel):
    """Read projection of a wallet. Never carries the token or wallet key."""

    name: str
    bpn: str
    did: str
    created_at: datetime.datetime
    public_key: str
    credentials: list[VerifiableCredential] | None = Field(default=None)

    @classmethod
    def from_wallet(cls, wallet: Wallet, with_credentials: bool = False) -> "WalletDto":
        return cls(
            name=wallet.name,
            bpn=wallet.bpn,
            did=wallet.did,
            created_at=wallet.created_at,
            public_key=wallet.verkey,
            credentials=list(wallet.credentials) if with_credentials else None,
        )
