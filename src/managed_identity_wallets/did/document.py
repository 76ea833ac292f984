"""DID document model and the service-type rule table.

Specification reference: https://www.w3.org/TR/did-core/#services

Service types
-------------
``ServiceType`` enumerates the service entry types a wallet may manage. Each
one is bound to a :class:`ServiceRule` in :data:`SERVICE_RULES`; a type that
does not parse into ``ServiceType`` permits nothing.

==================  ==========================  ============  =======
type                add                         update        remove
==================  ==========================  ============  =======
linked_domains      yes, one per wallet         if present    no
did-communication   yes                         if present    no
profile             yes                         no            no
==================  ==========================  ============  =======
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ServiceType(str, Enum):
    """Service entry types known to the wallet."""

    LINKED_DOMAINS = "linked_domains"
    DID_COMMUNICATION = "did-communication"
    PROFILE = "profile"

    @property
    def agent_endpoint_type(self) -> str:
        """The endpoint type name the agent uses for this service type."""
        return _AGENT_ENDPOINT_TYPES[self]

    @classmethod
    def parse(cls, value: str) -> "ServiceType | None":
        """Return the matching type for a slug or agent endpoint name, else None."""
        try:
            return cls(value)
        except ValueError:
            pass
        for service_type, agent_name in _AGENT_ENDPOINT_TYPES.items():
            if value == agent_name:
                return service_type
        return None


_AGENT_ENDPOINT_TYPES: dict[ServiceType, str] = {
    ServiceType.LINKED_DOMAINS: "LinkedDomains",
    ServiceType.DID_COMMUNICATION: "Endpoint",
    ServiceType.PROFILE: "Profile",
}


class ServiceOperation(str, Enum):
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"


@dataclass(frozen=True)
class ServiceRule:
    """Operations permitted for one service type.

    Parameters
    ----------
    add, update, remove:
        Whether the operation is permitted at all.
    singleton:
        At most one entry of this type per wallet.
    """

    add: bool
    update: bool
    remove: bool
    singleton: bool = False

    def permits(self, operation: ServiceOperation) -> bool:
        return bool(getattr(self, operation.value))


SERVICE_RULES: dict[ServiceType, ServiceRule] = {
    ServiceType.LINKED_DOMAINS: ServiceRule(add=True, update=True, remove=False, singleton=True),
    ServiceType.DID_COMMUNICATION: ServiceRule(add=True, update=True, remove=False),
    ServiceType.PROFILE: ServiceRule(add=True, update=False, remove=False),
}


class ServiceEntry(BaseModel):
    """One service endpoint of a DID document.

    ``id`` is either a bare slug (``"linked_domains"``) or a DID URL with the
    slug as fragment (``"did:sov:abc#linked_domains"``).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    type: str
    service_endpoint: str = Field(alias="serviceEndpoint")

    @field_validator("service_endpoint", mode="before")
    @classmethod
    def coerce_endpoint(cls, value: Any) -> Any:
        # DID core allows a list of URIs; the wallet manages single URIs.
        if isinstance(value, list) and value:
            return value[0]
        return value

    @property
    def fragment(self) -> str:
        return self.id.rsplit("#", 1)[-1]

    def matches(self, service_id: str) -> bool:
        return service_id in (self.id, self.fragment)

    def to_dict(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)


class DidServiceUpdateRequest(BaseModel):
    """Replacement values for an existing service entry."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    service_endpoint: str = Field(alias="serviceEndpoint")


class DidDocument(BaseModel):
    """A resolved DID document. Derived from the agent, never stored locally."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    context: list[str] = Field(
        default_factory=lambda: ["https://www.w3.org/ns/did/v1"], alias="@context"
    )
    id: str
    verification_method: list[dict[str, Any]] = Field(
        default_factory=list, alias="verificationMethod"
    )
    service: list[ServiceEntry] = Field(default_factory=list)

    @field_validator("context", mode="before")
    @classmethod
    def coerce_context(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    def find_service(self, service_id: str) -> ServiceEntry | None:
        """Return the entry whose id or id fragment equals *service_id*."""
        for entry in self.service:
            if entry.matches(service_id):
                return entry
        return None

    def services_of_type(self, service_type: ServiceType) -> list[ServiceEntry]:
        return [s for s in self.service if ServiceType.parse(s.type) is service_type]

    def public_key_base58(self) -> str | None:
        """Return the first base58 verification key, if the document has one."""
        for method in self.verification_method:
            key = method.get("publicKeyBase58")
            if key:
                return str(key)
        return None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
