"""Verifiable credentials and presentations held by managed wallets.

The orchestration lives in :mod:`managed_identity_wallets.credentials.service`;
this package namespace exposes the value models only.
"""
from __future__ import annotations

from managed_identity_wallets.credentials.models import (
    JSONLD_CONTEXT_BPN_CREDENTIALS,
    JSONLD_CONTEXT_MEMBERSHIP_CREDENTIALS,
    JSONLD_CONTEXT_W3C_2018_CREDENTIALS_EXAMPLES_V1,
    JSONLD_CONTEXT_W3C_2018_CREDENTIALS_V1,
    LdProof,
    SuccessResponse,
    VerifiableCredential,
    VerifiableCredentialRequest,
    VerifiablePresentation,
    VerifiablePresentationRequest,
    VerificationResult,
)

__all__ = [
    "JSONLD_CONTEXT_BPN_CREDENTIALS",
    "JSONLD_CONTEXT_MEMBERSHIP_CREDENTIALS",
    "JSONLD_CONTEXT_W3C_2018_CREDENTIALS_EXAMPLES_V1",
    "JSONLD_CONTEXT_W3C_2018_CREDENTIALS_V1",
    "LdProof",
    "SuccessResponse",
    "VerifiableCredential",
    "VerifiableCredentialRequest",
    "VerifiablePresentation",
    "VerifiablePresentationRequest",
    "VerificationResult",
]
