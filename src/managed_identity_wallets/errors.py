"""Error taxonomy shared by every orchestration component.

Each error carries the HTTP status the routing layer is expected to answer
with, so callers can render a response without a second lookup table::

    try:
        manager.get_wallet("BPNL000000000001")
    except WalletServiceError as exc:
        status, body = http_status_for(exc), exc.to_dict()
"""
from __future__ import annotations


class WalletServiceError(Exception):
    """Base class for all domain errors raised by this package.

    Parameters
    ----------
    message:
        Human-readable description, safe to return to API clients.
    details:
        Structured context (identifier, service type, operation). Never
        contains tokens or wallet keys.
    """

    status_code: int = 500

    def __init__(self, message: str, **details: object) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, object] = dict(details)

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary suitable for a JSON error body."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": dict(self.details),
        }


class SyntacticallyInvalidInputError(WalletServiceError, ValueError):
    """Raised for a malformed identifier or request body."""

    status_code = 400


class SemanticallyInvalidInputError(WalletServiceError, ValueError):
    """Raised for well-formed input that violates a domain rule."""

    status_code = 422


class NotFoundError(WalletServiceError, LookupError):
    """Raised when a wallet, service entry or DID document is absent."""

    status_code = 404


class WalletNotFoundError(NotFoundError):
    """Raised when an identifier matches neither a BPN nor a DID."""

    def __init__(self, identifier: str) -> None:
        super().__init__(
            f"Wallet for identifier {identifier} does not exist!",
            identifier=identifier,
        )


class ConflictError(WalletServiceError):
    """Raised for a duplicate BPN or a second instance of a singleton service."""

    status_code = 409


class WalletAlreadyExistsError(ConflictError):
    """Raised when a wallet for the BPN is already registered."""

    def __init__(self, bpn: str) -> None:
        super().__init__(f"Wallet with given BPN {bpn} already exists!", bpn=bpn)


class OperationNotSupportedError(WalletServiceError, NotImplementedError):
    """Raised when an operation is not supported for a service type or wallet."""

    status_code = 501


class UpstreamError(WalletServiceError):
    """Raised when the identity agent fails or answers with an unexpected shape."""

    status_code = 502


def http_status_for(exc: BaseException) -> int:
    """Return the HTTP status code the routing layer should answer with."""
    if isinstance(exc, WalletServiceError):
        return exc.status_code
    return 500


__all__ = [
    "ConflictError",
    "NotFoundError",
    "OperationNotSupportedError",
    "SemanticallyInvalidInputError",
    "SyntacticallyInvalidInputError",
    "UpstreamError",
    "WalletAlreadyExistsError",
    "WalletNotFoundError",
    "WalletServiceError",
    "http_status_for",
]
