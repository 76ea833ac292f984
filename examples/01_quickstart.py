#!/usr/bin/env python3
"""Example: Quickstart

Creates a wallet on a running ACA-Py agent, publishes a linked-domains
service endpoint in its DID document and signs a message with its key.

Usage:
    MIW_AGENT_ADMIN_URL=http://localhost:11000 python examples/01_quickstart.py

Requirements:
    pip install managed-identity-wallets
"""
from __future__ import annotations

import managed_identity_wallets
from managed_identity_wallets import ServiceEntry, Settings, build_services


def main() -> None:
    print(f"managed-identity-wallets version: {managed_identity_wallets.__version__}")
    services = build_services(Settings())

    # Step 1: Create a wallet
    wallet = services.wallets.create_wallet("BPNL000000000001", "Quickstart Company")
    print(f"Wallet created: bpn={wallet.bpn} did={wallet.did}")

    # Step 2: Publish a linked-domains endpoint
    document = services.did_documents.add_service(
        wallet.bpn,
        ServiceEntry(id="linked_domains", type="linked_domains", service_endpoint="https://example.com"),
    )
    print(f"Services: {[s.id for s in document.service]}")

    # Step 3: Sign a message
    signed = services.signing.sign(wallet.bpn, "hello")
    print(f"Signature: {signed.signed_message_in_hex[:32]}...")

    # Step 4: Clean up
    services.wallets.delete_wallet(wallet.bpn)
    print("\nQuickstart complete.")


if __name__ == "__main__":
    main()
