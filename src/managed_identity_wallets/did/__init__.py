"""DID documents and the management of their service endpoints."""
from __future__ import annotations

from managed_identity_wallets.did.document import (
    SERVICE_RULES,
    DidDocument,
    DidServiceUpdateRequest,
    ServiceEntry,
    ServiceOperation,
    ServiceRule,
    ServiceType,
)
from managed_identity_wallets.did.services import DidDocumentServiceManager

__all__ = [
    "SERVICE_RULES",
    "DidDocument",
    "DidDocumentServiceManager",
    "DidServiceUpdateRequest",
    "ServiceEntry",
    "ServiceOperation",
    "ServiceRule",
    "ServiceType",
]
