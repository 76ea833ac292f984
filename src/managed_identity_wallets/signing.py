"""Signing on behalf of managed wallets.

:func:`sign_with_wallet` asks the agent to attach a linked-data proof to a
JSON-LD document using a wallet's key; :class:`MessageSigningService` builds
on it to sign free-text messages.
"""
from __future__ import annotations

import base64
import binascii
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from managed_identity_wallets.agent.client import AgentClient, SignRequest
from managed_identity_wallets.audit import WalletAuditLogger
from managed_identity_wallets.credentials.models import (
    JSONLD_CONTEXT_W3C_2018_CREDENTIALS_V1,
    LdProof,
    new_urn_uuid,
)
from managed_identity_wallets.errors import UpstreamError
from managed_identity_wallets.wallets.manager import WalletLifecycleManager
from managed_identity_wallets.wallets.models import Wallet

logger = logging.getLogger(__name__)

_MESSAGE_CONTEXT: list[Any] = [
    JSONLD_CONTEXT_W3C_2018_CREDENTIALS_V1,
    {"message": "https://schema.org/text"},
]


def sign_with_wallet(
    agent: AgentClient,
    wallet: Wallet,
    doc: dict[str, Any],
    proof_purpose: str = "assertionMethod",
) -> LdProof:
    """Have the agent sign *doc* with *wallet*'s key and return the proof.

    Raises
    ------
    UpstreamError
        If the agent fails or the signed document carries no valid proof.
    """
    signed = agent.sign_json_ld(
        SignRequest(
            doc=doc,
            verkey=wallet.verkey,
            verification_method=f"{wallet.did}#key-1",
            proof_purpose=proof_purpose,
        ),
        wallet.wallet_token,
    )
    try:
        return LdProof.model_validate(signed.get("proof"))
    except ValidationError as exc:
        raise UpstreamError(
            f"Agent returned a document without a valid proof for {wallet.did}.",
            did=wallet.did,
            operation="sign_json_ld",
        ) from exc


def detached_jws_signature(jws: str) -> bytes:
    """Decode the signature segment of a compact (possibly detached) JWS."""
    segments = jws.split(".")
    if len(segments) != 3 or not segments[2]:
        raise ValueError("JWS must have three segments and a signature.")
    signature = segments[2]
    padded = signature + "=" * (-len(signature) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"JWS signature is not base64url: {exc}") from exc


class SignMessageResponse(BaseModel):
    """A message signed by a managed wallet."""

    model_config = ConfigDict(populate_by_name=True)

    identifier: str
    message: str
    signed_message_in_hex: str = Field(alias="signedMessageInHex")
    public_key_base58: str = Field(alias="publicKeyBase58")


class MessageSigningService:
    """Signs messages with the key of a managed wallet.

    Example
    -------
    ::

        signer = MessageSigningService(wallets, agent)
        response = signer.sign("BPNL000000000001", "hello")
        print(response.signed_message_in_hex)
    """

    def __init__(
        self,
        wallets: WalletLifecycleManager,
        agent: AgentClient,
        audit: WalletAuditLogger | None = None,
    ) -> None:
        self._wallets = wallets
        self._agent = agent
        self._audit = audit or WalletAuditLogger()

    def sign(self, identifier: str, message: str) -> SignMessageResponse:
        """Sign *message* with the wallet behind *identifier*.

        Raises
        ------
        WalletNotFoundError
            If *identifier* is unknown.
        UpstreamError
            If the agent fails to sign or returns an undecodable signature.
        """
        wallet = self._wallets.resolve(identifier)
        doc = {"@context": _MESSAGE_CONTEXT, "id": new_urn_uuid(), "message": message}
        proof = sign_with_wallet(self._agent, wallet, doc)
        try:
            signature = detached_jws_signature(proof.jws)
        except ValueError as exc:
            raise UpstreamError(
                f"Agent returned a malformed signature for {wallet.did}: {exc}",
                did=wallet.did,
                operation="sign",
            ) from exc

        logger.info("message signed by %s", wallet.bpn)
        self._audit.log_event("message_signed", wallet.bpn, did=wallet.did)
        return SignMessageResponse(
            identifier=identifier,
            message=message,
            signed_message_in_hex=signature.hex(),
            public_key_base58=wallet.verkey,
        )
