"""managed-identity-wallets — SSI wallets for business partners on an identity agent.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Quick start
-----------
::

    from managed_identity_wallets import Settings, build_services, ServiceEntry

    services = build_services(Settings())
    wallet = services.wallets.create_wallet("BPNL000000000001", "Supplier A")
    services.did_documents.add_service(
        wallet.bpn,
        ServiceEntry(id="linked_domains", type="linked_domains",
                     service_endpoint="https://supplier-a.example"),
    )
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Errors and configuration
# ------------------------------------------------------------------
from managed_identity_wallets.config import Settings, get_settings
from managed_identity_wallets.errors import (
    ConflictError,
    NotFoundError,
    OperationNotSupportedError,
    SemanticallyInvalidInputError,
    SyntacticallyInvalidInputError,
    UpstreamError,
    WalletAlreadyExistsError,
    WalletNotFoundError,
    WalletServiceError,
    http_status_for,
)

# ------------------------------------------------------------------
# Agent
# ------------------------------------------------------------------
from managed_identity_wallets.agent import AcaPyClient, AgentClient

# ------------------------------------------------------------------
# Wallets
# ------------------------------------------------------------------
from managed_identity_wallets.wallets import (
    FilesystemWalletStore,
    InMemoryWalletStore,
    Wallet,
    WalletDto,
    WalletLifecycleManager,
    WalletStore,
)

# ------------------------------------------------------------------
# DID documents
# ------------------------------------------------------------------
from managed_identity_wallets.did import (
    DidDocument,
    DidDocumentServiceManager,
    DidServiceUpdateRequest,
    ServiceEntry,
    ServiceType,
)

# ------------------------------------------------------------------
# Credentials and signing
# ------------------------------------------------------------------
from managed_identity_wallets.credentials import (
    VerifiableCredential,
    VerifiableCredentialRequest,
    VerifiablePresentation,
)
from managed_identity_wallets.credentials.service import CredentialService
from managed_identity_wallets.signing import MessageSigningService, SignMessageResponse

# ------------------------------------------------------------------
# Audit and wiring
# ------------------------------------------------------------------
from managed_identity_wallets.audit import WalletAuditLogger
from managed_identity_wallets.services import WalletServices, build_services

__all__ = [
    "__version__",
    # errors and configuration
    "ConflictError",
    "NotFoundError",
    "OperationNotSupportedError",
    "SemanticallyInvalidInputError",
    "Settings",
    "SyntacticallyInvalidInputError",
    "UpstreamError",
    "WalletAlreadyExistsError",
    "WalletNotFoundError",
    "WalletServiceError",
    "get_settings",
    "http_status_for",
    # agent
    "AcaPyClient",
    "AgentClient",
    # wallets
    "FilesystemWalletStore",
    "InMemoryWalletStore",
    "Wallet",
    "WalletDto",
    "WalletLifecycleManager",
    "WalletStore",
    # did documents
    "DidDocument",
    "DidDocumentServiceManager",
    "DidServiceUpdateRequest",
    "ServiceEntry",
    "ServiceType",
    # credentials and signing
    "CredentialService",
    "MessageSigningService",
    "SignMessageResponse",
    "VerifiableCredential",
    "VerifiableCredentialRequest",
    "VerifiablePresentation",
    # audit and wiring
    "WalletAuditLogger",
    "WalletServices",
    "build_services",
]
