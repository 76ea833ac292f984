#!/usr/bin/env python3
"""Example: Issue, present and verify a credential

An issuer wallet issues a BPN credential to a holder wallet; the holder
stores it, presents it, and the issuer verifies the presentation.

Usage:
    MIW_AGENT_ADMIN_URL=http://localhost:11000 python examples/02_credentials.py

Requirements:
    pip install managed-identity-wallets
"""
from __future__ import annotations

from managed_identity_wallets import Settings, VerifiableCredentialRequest, build_services
from managed_identity_wallets.credentials.models import (
    JSONLD_CONTEXT_BPN_CREDENTIALS,
    JSONLD_CONTEXT_W3C_2018_CREDENTIALS_V1,
)


def main() -> None:
    services = build_services(Settings())
    issuer = services.wallets.create_wallet("BPNL000000000001", "Issuer")
    holder = services.wallets.create_wallet("BPNL000000000002", "Holder")

    try:
        # Step 1: Issue a credential to the holder
        credential = services.credentials.issue_credential(
            VerifiableCredentialRequest(
                context=[JSONLD_CONTEXT_W3C_2018_CREDENTIALS_V1, JSONLD_CONTEXT_BPN_CREDENTIALS],
                type=["BpnCredential"],
                issuer_identifier=issuer.bpn,
                holder_identifier=holder.bpn,
                credential_subject={"bpn": holder.bpn},
            )
        )
        print(f"Issued {credential.id} to {credential.subject_id}")

        # Step 2: Store it in the holder wallet
        print(services.credentials.store_credential(holder.bpn, credential).message)

        # Step 3: Present and verify
        presentation = services.credentials.create_presentation(holder.bpn, [credential])
        result = services.credentials.verify_presentation(presentation, issuer.bpn)
        print(f"Presentation valid: {result.valid} {result.errors}")
    finally:
        services.wallets.delete_wallet(holder.bpn)
        services.wallets.delete_wallet(issuer.bpn)


if __name__ == "__main__":
    main()
