"""DidDocumentServiceManager — add, update and remove DID document services.

Every mutation validates in the same order and stops at the first violated
rule, so that local checks run before any agent call:

1. the wallet exists;
2. the wallet supports service mutation at all;
3. the service type permits the operation (:data:`SERVICE_RULES`);
4. the service endpoint is a well-formed URI (mutations carrying one);
5. entry existence or uniqueness in the resolved document;
6. the write is delegated to the agent.
"""
from __future__ import annotations

import logging
import urllib.parse

from pydantic import ValidationError

from managed_identity_wallets.agent.client import AgentClient, DidEndpointWithType
from managed_identity_wallets.audit import WalletAuditLogger
from managed_identity_wallets.did.document import (
    SERVICE_RULES,
    DidDocument,
    DidServiceUpdateRequest,
    ServiceEntry,
    ServiceOperation,
    ServiceType,
)
from managed_identity_wallets.errors import (
    ConflictError,
    NotFoundError,
    OperationNotSupportedError,
    SemanticallyInvalidInputError,
    SyntacticallyInvalidInputError,
    UpstreamError,
)
from managed_identity_wallets.wallets.manager import WalletLifecycleManager
from managed_identity_wallets.wallets.models import Wallet

logger = logging.getLogger(__name__)

_OPERATION_LABELS = {
    ServiceOperation.ADD: "Add",
    ServiceOperation.UPDATE: "Update",
    ServiceOperation.REMOVE: "Remove",
}


def _validate_endpoint(endpoint: str) -> None:
    parsed = urllib.parse.urlparse(endpoint)
    if not parsed.scheme or not parsed.netloc:
        raise SyntacticallyInvalidInputError(
            f"Service endpoint {endpoint!r} is not an absolute URI.",
            service_endpoint=endpoint,
        )


class DidDocumentServiceManager:
    """Manages the service entries of wallet DID documents.

    Parameters
    ----------
    wallets:
        Lifecycle manager used to resolve wallets by BPN or DID.
    agent:
        Client of the identity agent holding the DID documents.
    audit:
        Optional audit logger.
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

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_document(self, identifier: str) -> DidDocument:
        """Resolve the DID document of the wallet behind *identifier*.

        Raises
        ------
        NotFoundError
            If the wallet is unknown or the agent cannot resolve its DID.
        UpstreamError
            If the agent fails or returns a malformed document.
        """
        return self._resolve(self._wallets.resolve(identifier))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_service(self, identifier: str, entry: ServiceEntry) -> DidDocument:
        """Add *entry* to the wallet's DID document and return the new document.

        Raises
        ------
        OperationNotSupportedError
            If the wallet or the entry's type does not support adding.
        ConflictError
            If an entry with the same id exists, or the type allows one
            entry per wallet and one is present.
        """
        wallet = self._wallets.resolve(identifier)
        self._require_wallet_support(wallet, identifier, ServiceOperation.ADD)
        service_type = self._require_type_support(entry.type, ServiceOperation.ADD)
        _validate_endpoint(entry.service_endpoint)

        document = self._resolve(wallet)
        if document.find_service(entry.id) is not None:
            raise ConflictError(
                f"Service with id {entry.id} already exists in the DID document of {identifier}.",
                identifier=identifier,
                service_id=entry.id,
            )
        if SERVICE_RULES[service_type].singleton and document.services_of_type(service_type):
            raise ConflictError(
                f"The wallet {identifier} already has a service of type {service_type.value}.",
                identifier=identifier,
                service_type=service_type.value,
            )

        self._write(wallet, entry.id, service_type, entry.service_endpoint)
        self._audit.log_event(
            "service_added",
            wallet.bpn,
            service_id=entry.id,
            service_type=service_type.value,
            service_endpoint=entry.service_endpoint,
        )
        return self._resolve(wallet)

    def update_service(
        self, identifier: str, service_id: str, patch: DidServiceUpdateRequest
    ) -> DidDocument:
        """Replace the endpoint of the existing service *service_id*.

        Raises
        ------
        OperationNotSupportedError
            If the wallet or the patch type does not support updates.
        NotFoundError
            If the document has no service *service_id*.
        SemanticallyInvalidInputError
            If the existing service has a different type than the patch.
        """
        wallet = self._wallets.resolve(identifier)
        self._require_wallet_support(wallet, identifier, ServiceOperation.UPDATE)
        service_type = self._require_type_support(patch.type, ServiceOperation.UPDATE)
        _validate_endpoint(patch.service_endpoint)

        document = self._resolve(wallet)
        existing = document.find_service(service_id)
        if existing is None:
            raise NotFoundError(
                f"Service {service_id} does not exist in the DID document of {identifier}.",
                identifier=identifier,
                service_id=service_id,
            )
        if ServiceType.parse(existing.type) is not service_type:
            raise SemanticallyInvalidInputError(
                f"Service {service_id} has type {existing.type}, not {patch.type}.",
                identifier=identifier,
                service_id=service_id,
            )

        self._write(wallet, existing.fragment, service_type, patch.service_endpoint)
        self._audit.log_event(
            "service_updated",
            wallet.bpn,
            service_id=service_id,
            service_type=service_type.value,
            service_endpoint=patch.service_endpoint,
        )
        return self._resolve(wallet)

    def remove_service(self, identifier: str, service_id: str) -> DidDocument:
        """Remove the service *service_id*.

        No service type permits removal and the agent offers no endpoint
        deletion, so this always raises :class:`OperationNotSupportedError`
        once the wallet is known. The wallet is still resolved first, so an
        unknown *identifier* raises :class:`WalletNotFoundError` and a wallet
        without service support is reported before the type rule; the
        validation order is the same as for add and update.
        *service_id* doubles as the service type slug for the type rule.
        """
        wallet = self._wallets.resolve(identifier)
        self._require_wallet_support(wallet, identifier, ServiceOperation.REMOVE)
        self._require_type_support(service_id, ServiceOperation.REMOVE)
        raise OperationNotSupportedError(
            f"Removing service {service_id} is not supported by the agent.",
            identifier=identifier,
            service_id=service_id,
            operation=ServiceOperation.REMOVE.value,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _require_wallet_support(
        wallet: Wallet, identifier: str, operation: ServiceOperation
    ) -> None:
        if not wallet.service_updates_enabled:
            raise OperationNotSupportedError(
                f"{_OPERATION_LABELS[operation]} Service Endpoint is not supported "
                f"for the wallet {identifier}",
                identifier=identifier,
                operation=operation.value,
            )

    @staticmethod
    def _require_type_support(type_name: str, operation: ServiceOperation) -> ServiceType:
        # For removal the service id doubles as the type slug.
        service_type = ServiceType.parse(type_name)
        if service_type is None or not SERVICE_RULES[service_type].permits(operation):
            raise OperationNotSupportedError(
                f"{_OPERATION_LABELS[operation]} of a service of type {type_name} "
                "is not supported.",
                service_type=type_name,
                operation=operation.value,
            )
        return service_type

    def _resolve(self, wallet: Wallet) -> DidDocument:
        raw = self._agent.resolve_did_document(wallet.did, wallet.wallet_token)
        if raw is None:
            raise NotFoundError(
                f"DID document of {wallet.did} could not be resolved.",
                identifier=wallet.bpn,
                did=wallet.did,
            )
        try:
            return DidDocument.model_validate(raw)
        except ValidationError as exc:
            raise UpstreamError(
                f"Agent returned a malformed DID document for {wallet.did}.",
                did=wallet.did,
                operation="resolve_did_document",
            ) from exc

    def _write(
        self, wallet: Wallet, service_id: str, service_type: ServiceType, endpoint: str
    ) -> None:
        written = self._agent.update_service_endpoint(
            DidEndpointWithType(
                did=wallet.unqualified_did,
                endpoint=endpoint,
                endpoint_type=service_type.agent_endpoint_type,
                service_id=service_id,
            ),
            wallet.wallet_token,
        )
        if not written:
            raise UpstreamError(
                f"Agent rejected the {service_type.value} endpoint of {wallet.did}.",
                did=wallet.did,
                operation="update_service_endpoint",
            )
        logger.info(
            "service %s (%s) of %s set to %s",
            service_id,
            service_type.value,
            wallet.bpn,
            endpoint,
        )
