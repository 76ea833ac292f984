"""Verifiable credential and presentation models (W3C VC Data Model).

https://www.w3.org/TR/vc-data-model/

Models accept and emit the W3C JSON member names (``@context``,
``issuanceDate``, ``credentialSubject`` ...) through field aliases, and can
also be populated by their Python field names.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

JSONLD_CONTEXT_W3C_2018_CREDENTIALS_V1 = "https://www.w3.org/2018/credentials/v1"
JSONLD_CONTEXT_W3C_2018_CREDENTIALS_EXAMPLES_V1 = (
    "https://www.w3.org/2018/credentials/examples/v1"
)
JSONLD_CONTEXT_BPN_CREDENTIALS = (
    "https://raw.githubusercontent.com/catenax-ng/cx-core-schemas/main/bpnCredential"
)
JSONLD_CONTEXT_MEMBERSHIP_CREDENTIALS = (
    "https://raw.githubusercontent.com/catenax-ng/cx-core-schemas/main/membership"
)

VERIFIABLE_CREDENTIAL_TYPE = "VerifiableCredential"
VERIFIABLE_PRESENTATION_TYPE = "VerifiablePresentation"


def utc_timestamp() -> str:
    """Current UTC time as an RFC 3339 string with second precision."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp. A missing offset is taken as UTC.

    Raises
    ------
    ValueError
        If *value* is not an ISO 8601 date-time.
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _check_timestamp(value: str | None) -> str | None:
    if value is not None:
        try:
            parse_timestamp(value)
        except ValueError as exc:
            raise ValueError(f"{value!r} is not an RFC 3339 date-time") from exc
    return value


class _W3CModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_dict(self) -> dict[str, Any]:
        """Serialize with W3C member names, omitting unset optional members."""
        return self.model_dump(by_alias=True, exclude_none=True)


class LdProof(_W3CModel):
    """A linked-data proof as attached by the agent."""

    type: str
    created: str
    proof_purpose: str = Field(alias="proofPurpose")
    verification_method: str = Field(alias="verificationMethod")
    jws: str


class VerifiableCredential(_W3CModel):
    """A verifiable credential. Immutable once stored in a wallet."""

    context: list[str] = Field(alias="@context")
    id: str | None = None
    type: list[str]
    issuer: str
    issuance_date: str = Field(alias="issuanceDate")
    expiration_date: str | None = Field(default=None, alias="expirationDate")
    credential_subject: dict[str, Any] = Field(alias="credentialSubject")
    proof: LdProof | None = None

    @field_validator("issuance_date", "expiration_date")
    @classmethod
    def validate_dates(cls, value: str | None) -> str | None:
        return _check_timestamp(value)

    @property
    def subject_id(self) -> str | None:
        value = self.credential_subject.get("id")
        return str(value) if value else None

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return True if ``expirationDate`` lies in the past.

        A credential without an expiration date never expires.
        """
        if not self.expiration_date:
            return False
        return (now or datetime.now(timezone.utc)) > parse_timestamp(self.expiration_date)


class VerifiablePresentation(_W3CModel):
    """A presentation of credentials signed by their holder. Never persisted."""

    context: list[str] = Field(alias="@context")
    id: str | None = None
    type: list[str] = Field(default_factory=lambda: [VERIFIABLE_PRESENTATION_TYPE])
    holder: str | None = None
    verifiable_credential: list[VerifiableCredential] = Field(
        default_factory=list, alias="verifiableCredential"
    )
    proof: LdProof | None = None


class VerifiableCredentialRequest(_W3CModel):
    """Caller input for issuing a credential from a managed issuer wallet.

    ``issuer_identifier`` and ``holder_identifier`` are BPNs or DIDs of
    managed wallets. Required members default to empty so that missing ones
    are reported as a domain error rather than a parsing error.
    """

    context: list[str] = Field(default_factory=list, alias="@context")
    id: str | None = None
    type: list[str] = Field(default_factory=list)
    issuer_identifier: str = Field(default="", alias="issuerIdentifier")
    issuance_date: str | None = Field(default=None, alias="issuanceDate")
    expiration_date: str | None = Field(default=None, alias="expirationDate")
    credential_subject: dict[str, Any] = Field(default_factory=dict, alias="credentialSubject")
    holder_identifier: str | None = Field(default=None, alias="holderIdentifier")

    @field_validator("issuance_date", "expiration_date")
    @classmethod
    def validate_dates(cls, value: str | None) -> str | None:
        return _check_timestamp(value)


class VerifiablePresentationRequest(_W3CModel):
    """Caller input for creating a presentation."""

    holder_identifier: str = Field(alias="holderIdentifier")
    verifiable_credentials: list[VerifiableCredential] = Field(
        default_factory=list, alias="verifiableCredentials"
    )


class SuccessResponse(BaseModel):
    """Acknowledgement returned by operations without a richer result."""

    message: str


class VerificationResult(BaseModel):
    """Outcome of a presentation verification."""

    valid: bool
    errors: list[str] = Field(default_factory=list)


def new_urn_uuid() -> str:
    return f"urn:uuid:{uuid.uuid4()}"