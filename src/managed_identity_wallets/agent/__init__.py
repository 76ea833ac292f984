"""Client side of the external identity agent."""
from __future__ import annotations

from managed_identity_wallets.agent.acapy import AcaPyClient
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

__all__ = [
    "AcaPyClient",
    "AgentClient",
    "CreateSubWallet",
    "CreatedSubWallet",
    "DidCreate",
    "DidEndpointWithType",
    "DidRegistration",
    "DidResult",
    "SignRequest",
    "SubWalletRecord",
    "SubWalletRef",
    "VerifyRequest",
    "VerifyResult",
]
