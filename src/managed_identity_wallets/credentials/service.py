"""CredentialService — store, issue, present and verify credentials.

Credentials and presentations are built as plain values for the duration of
one call; only credentials explicitly stored in a wallet are persisted.
Signing and proof verification are delegated to the agent.
"""
from __future__ import annotations

import logging

from pydantic import ValidationError

from managed_identity_wallets.agent.client import AgentClient, VerifyRequest
from managed_identity_wallets.audit import WalletAuditLogger
from managed_identity_wallets.credentials.models import (
    JSONLD_CONTEXT_W3C_2018_CREDENTIALS_V1,
    VERIFIABLE_CREDENTIAL_TYPE,
    VERIFIABLE_PRESENTATION_TYPE,
    SuccessResponse,
    VerifiableCredential,
    VerifiableCredentialRequest,
    VerifiablePresentation,
    VerificationResult,
    new_urn_uuid,
    utc_timestamp,
)
from managed_identity_wallets.did.document import DidDocument
from managed_identity_wallets.errors import (
    NotFoundError,
    SemanticallyInvalidInputError,
    UpstreamError,
)
from managed_identity_wallets.signing import sign_with_wallet
from managed_identity_wallets.wallets.manager import WalletLifecycleManager
from managed_identity_wallets.wallets.models import Wallet
from managed_identity_wallets.wallets.store import WalletStore

logger = logging.getLogger(__name__)


class CredentialService:
    """Credential operations against managed wallets.

    Parameters
    ----------
    wallets:
        Lifecycle manager used to resolve wallets by BPN or DID.
    store:
        Wallet storage receiving stored credentials.
    agent:
        Client of the identity agent that signs and verifies proofs.
    audit:
        Optional audit logger.
    """

    def __init__(
        self,
        wallets: WalletLifecycleManager,
        store: WalletStore,
        agent: AgentClient,
        audit: WalletAuditLogger | None = None,
    ) -> None:
        self._wallets = wallets
        self._store = store
        self._agent = agent
        self._audit = audit or WalletAuditLogger()

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def store_credential(
        self, identifier: str, credential: VerifiableCredential
    ) -> SuccessResponse:
        """Append *credential* to the wallet behind *identifier*.

        Raises
        ------
        WalletNotFoundError
            If *identifier* is unknown.
        SemanticallyInvalidInputError
            If the credential subject names a DID other than the wallet's.
        """
        wallet = self._wallets.resolve(identifier)
        subject_id = credential.subject_id
        if subject_id is not None and subject_id != wallet.did:
            raise SemanticallyInvalidInputError(
                f"Credential subject {subject_id} does not match the DID of wallet {identifier}.",
                identifier=identifier,
                subject_id=subject_id,
            )
        try:
            self._store.append_credential(wallet.bpn, credential)
        except KeyError as exc:
            raise NotFoundError(
                f"Wallet for identifier {identifier} was removed while storing.",
                identifier=identifier,
            ) from exc

        logger.info("credential %s stored in wallet %s", credential.id, wallet.bpn)
        self._audit.log_event("credential_stored", wallet.bpn, credential_id=credential.id)
        return SuccessResponse(
            message=f"Credential with id {credential.id} has been successfully stored"
        )

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    def issue_credential(self, request: VerifiableCredentialRequest) -> VerifiableCredential:
        """Build a credential from *request* and sign it with the issuer wallet.

        Raises
        ------
        SemanticallyInvalidInputError
            If context, type or issuer identifier is missing.
        WalletNotFoundError
            If the issuer or holder wallet is unknown.
        UpstreamError
            If the agent fails to sign.
        """
        missing = [
            name
            for name, value in (
                ("@context", request.context),
                ("type", request.type),
                ("issuerIdentifier", request.issuer_identifier.strip()),
            )
            if not value
        ]
        if missing:
            raise SemanticallyInvalidInputError(
                f"Credential request is missing required fields: {', '.join(missing)}",
                missing=missing,
            )

        issuer = self._wallets.resolve(request.issuer_identifier)
        subject = dict(request.credential_subject)
        if request.holder_identifier:
            subject["id"] = self._wallets.resolve(request.holder_identifier).did

        types = list(request.type)
        if VERIFIABLE_CREDENTIAL_TYPE not in types:
            types.insert(0, VERIFIABLE_CREDENTIAL_TYPE)

        credential = VerifiableCredential(
            context=list(request.context),
            id=request.id or new_urn_uuid(),
            type=types,
            issuer=issuer.did,
            issuance_date=request.issuance_date or utc_timestamp(),
            expiration_date=request.expiration_date,
            credential_subject=subject,
        )
        proof = sign_with_wallet(self._agent, issuer, credential.to_dict())
        signed = credential.model_copy(update={"proof": proof})

        logger.info("credential %s issued by %s", signed.id, issuer.bpn)
        self._audit.log_event("credential_issued", issuer.bpn, credential_id=signed.id)
        return signed

    # ------------------------------------------------------------------
    # Presentations
    # ------------------------------------------------------------------

    def create_presentation(
        self, holder_identifier: str, credentials: list[VerifiableCredential]
    ) -> VerifiablePresentation:
        """Wrap *credentials* in a presentation signed by the holder wallet."""
        holder = self._wallets.resolve(holder_identifier)
        presentation = VerifiablePresentation(
            context=[JSONLD_CONTEXT_W3C_2018_CREDENTIALS_V1],
            id=new_urn_uuid(),
            type=[VERIFIABLE_PRESENTATION_TYPE],
            holder=holder.did,
            verifiable_credential=list(credentials),
        )
        proof = sign_with_wallet(self._agent, holder, presentation.to_dict())
        signed = presentation.model_copy(update={"proof": proof})

        logger.info("presentation %s created by %s", signed.id, holder.bpn)
        self._audit.log_event(
            "presentation_created",
            holder.bpn,
            presentation_id=signed.id,
            credential_count=len(credentials),
        )
        return signed

    def verify_presentation(
        self,
        presentation: VerifiablePresentation,
        verifier_identifier: str,
        with_date_validation: bool = False,
    ) -> VerificationResult:
        """Verify the proofs of *presentation* and of every embedded credential.

        The agent verifies each proof on behalf of the verifier wallet. Keys
        of managed wallets are taken from the store; other DIDs are resolved
        through the agent.

        Parameters
        ----------
        presentation:
            The presentation to verify.
        verifier_identifier:
            BPN or DID of the managed wallet performing the verification.
        with_date_validation:
            Also reject credentials whose expiration date has passed.

        Raises
        ------
        UpstreamError
            If the agent returns a malformed DID document for a signer.
        """
        verifier = self._wallets.resolve(verifier_identifier)
        errors: list[str] = []

        self._verify_proof(
            presentation.to_dict(),
            presentation.holder,
            presentation.proof is not None,
            f"presentation {presentation.id}",
            verifier,
            errors,
        )
        for credential in presentation.verifiable_credential:
            label = f"credential {credential.id}"
            if with_date_validation:
                try:
                    if credential.is_expired():
                        errors.append(f"{label} has expired")
                except ValueError:
                    errors.append(f"{label} has an invalid expiration date")
            self._verify_proof(
                credential.to_dict(),
                credential.issuer,
                credential.proof is not None,
                label,
                verifier,
                errors,
            )

        if errors:
            logger.info("presentation %s rejected: %s", presentation.id, "; ".join(errors))
        return VerificationResult(valid=not errors, errors=errors)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _verify_proof(
        self,
        doc: dict[str, object],
        signer_did: str | None,
        has_proof: bool,
        label: str,
        verifier: Wallet,
        errors: list[str],
    ) -> None:
        if not has_proof:
            errors.append(f"{label} has no proof")
            return
        if not signer_did:
            errors.append(f"{label} names no signer")
            return
        verkey = self._verkey_for(signer_did, verifier)
        if verkey is None:
            errors.append(f"{label}: no verification key found for {signer_did}")
            return
        result = self._agent.verify_json_ld(
            VerifyRequest(doc=doc, verkey=verkey), verifier.wallet_token
        )
        if not result.valid:
            errors.append(f"{label} has an invalid proof: {result.error or 'unknown reason'}")

    def _verkey_for(self, did: str, verifier: Wallet) -> str | None:
        managed = self._store.find_by_bpn_or_did(did)
        if managed is not None and managed.did == did:
            return managed.verkey
        raw = self._agent.resolve_did_document(did, verifier.wallet_token)
        if raw is None:
            return None
        try:
            return DidDocument.model_validate(raw).public_key_base58()
        except ValidationError as exc:
            raise UpstreamError(
                f"Agent returned a malformed DID document for {did}.",
                did=did,
                operation="resolve_did_document",
            ) from exc
