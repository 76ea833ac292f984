"""AcaPyClient — AgentClient over the ACA-Py admin HTTP API.

Multitenant sub wallets are managed through the base wallet's admin key
(``X-API-Key``). Calls made on behalf of a sub wallet add its bearer token.
Retries are left to the transport; this client never retries on its own.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from managed_identity_wallets.agent.client import (
    AgentClient,
    CreatedSubWallet,
    CreateSubWallet,
    DidCreate,
    DidEndpointWithType,
    DidRegistration,
    DidResult,
    SignRequest,
    SubWalletRecord,
    SubWalletRef,
    VerifyRequest,
    VerifyResult,
)
from managed_identity_wallets.errors import UpstreamError

logger = logging.getLogger(__name__)


class AcaPyClient(AgentClient):
    """HTTP implementation of :class:`AgentClient` for ACA-Py.

    Parameters
    ----------
    admin_url:
        Base URL of the agent admin API.
    api_key:
        Admin API key of the base wallet, if the agent requires one.
    network_identifier:
        Ledger network used to qualify DIDs (e.g. ``"local:test"``).
    timeout:
        Per-request timeout in seconds.
    transport:
        Optional httpx transport, used by tests to stub the agent.
    """

    def __init__(
        self,
        admin_url: str,
        api_key: str | None = None,
        network_identifier: str = "",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if api_key:
            headers["X-API-Key"] = api_key
        self._network_identifier = network_identifier
        self._client = httpx.Client(
            base_url=admin_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @property
    def network_identifier(self) -> str:
        return self._network_identifier

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "AcaPyClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Multitenancy
    # ------------------------------------------------------------------

    def get_wallets(self) -> list[SubWalletRecord]:
        data = self._request("GET", "/multitenancy/wallets")
        return [
            SubWalletRecord(
                wallet_id=str(entry["wallet_id"]),
                wallet_name=str(entry.get("settings", {}).get("wallet.name", "")),
                settings=dict(entry.get("settings", {})),
            )
            for entry in data.get("results", [])
        ]

    def create_sub_wallet(self, sub_wallet: CreateSubWallet) -> CreatedSubWallet:
        data = self._request(
            "POST",
            "/multitenancy/wallet",
            json={
                "wallet_name": sub_wallet.wallet_name,
                "wallet_key": sub_wallet.wallet_key,
                "wallet_type": sub_wallet.wallet_type,
                "label": sub_wallet.label,
                "key_management_mode": sub_wallet.key_management_mode,
            },
        )
        wallet_id = data.get("wallet_id")
        if not wallet_id:
            raise UpstreamError(
                "Agent did not return a wallet_id for the created sub wallet.",
                operation="create_sub_wallet",
            )
        return CreatedSubWallet(wallet_id=str(wallet_id), wallet_name=sub_wallet.wallet_name)

    def delete_sub_wallet(self, wallet: SubWalletRef) -> bool:
        self._request(
            "POST",
            f"/multitenancy/wallet/{wallet.wallet_id}/remove",
            json={"wallet_key": wallet.wallet_key},
        )
        return True

    def get_token(self, wallet_id: str, wallet_key: str) -> str:
        data = self._request(
            "POST",
            f"/multitenancy/wallet/{wallet_id}/token",
            json={"wallet_key": wallet_key},
        )
        token = data.get("token")
        if not token:
            raise UpstreamError(
                f"Agent did not return a token for sub wallet {wallet_id}.",
                operation="get_token",
            )
        return str(token)

    # ------------------------------------------------------------------
    # DIDs and ledger
    # ------------------------------------------------------------------

    def create_local_did(self, did_create: DidCreate, token: str) -> DidResult:
        data = self._request(
            "POST",
            "/wallet/did/create",
            token=token,
            json={"method": did_create.method, "options": {"key_type": did_create.key_type}},
        )
        result = data.get("result") or {}
        if not result.get("did") or not result.get("verkey"):
            raise UpstreamError(
                "Agent returned an incomplete DID creation result.",
                operation="create_local_did",
            )
        return DidResult(did=str(result["did"]), verkey=str(result["verkey"]))

    def register_did_on_ledger(self, registration: DidRegistration) -> bool:
        params = {"did": registration.did, "verkey": registration.verkey}
        if registration.alias:
            params["alias"] = registration.alias
        if registration.role:
            params["role"] = registration.role
        data = self._request("POST", "/ledger/register-nym", params=params)
        return bool(data.get("success", False))

    def assign_did_to_public(self, did: str, token: str) -> bool:
        data = self._request("POST", "/wallet/did/public", token=token, params={"did": did})
        return bool(data.get("result"))

    def resolve_did_document(self, did: str, token: str) -> dict[str, Any] | None:
        data = self._request(
            "GET", f"/resolver/resolve/{did}", token=token, allow_not_found=True
        )
        if data is None:
            return None
        document = data.get("did_document") or data.get("did_doc")
        if not isinstance(document, dict):
            raise UpstreamError(
                f"Agent returned no DID document for {did}.",
                operation="resolve_did_document",
                did=did,
            )
        return document

    def update_service_endpoint(self, endpoint: DidEndpointWithType, token: str) -> bool:
        self._request(
            "POST",
            "/wallet/set-did-endpoint",
            token=token,
            json={
                "did": endpoint.did,
                "endpoint": endpoint.endpoint,
                "endpoint_type": endpoint.endpoint_type,
            },
        )
        return True

    # ------------------------------------------------------------------
    # JSON-LD
    # ------------------------------------------------------------------

    def sign_json_ld(self, sign_request: SignRequest, token: str) -> dict[str, Any]:
        data = self._request(
            "POST",
            "/jsonld/sign",
            token=token,
            json={
                "verkey": sign_request.verkey,
                "doc": {
                    "credential": sign_request.doc,
                    "options": {
                        "proofPurpose": sign_request.proof_purpose,
                        "verificationMethod": sign_request.verification_method,
                    },
                },
            },
        )
        if data.get("error"):
            raise UpstreamError(
                f"Agent failed to sign the document: {data['error']}",
                operation="sign_json_ld",
            )
        signed = data.get("signed_doc")
        if not isinstance(signed, dict):
            raise UpstreamError("Agent returned no signed document.", operation="sign_json_ld")
        return signed

    def verify_json_ld(self, verify_request: VerifyRequest, token: str) -> VerifyResult:
        data = self._request(
            "POST",
            "/jsonld/verify",
            token=token,
            json={"verkey": verify_request.verkey, "doc": verify_request.doc},
        )
        return VerifyResult(valid=bool(data.get("valid", False)), error=data.get("error"))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        token: str | None = None,
        allow_not_found: bool = False,
        **kwargs: Any,
    ) -> dict[str, Any] | None:
        """Send one request and decode the JSON body.

        Raises
        ------
        UpstreamError
            On transport failures, non-2xx statuses (except 404 when
            *allow_not_found* is set) and non-object JSON bodies.
        """
        headers = {"Authorization": f"Bearer {token}"} if token else None
        logger.debug("agent request %s %s", method, path)
        try:
            response = self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("agent request %s %s failed: %s", method, path, exc)
            raise UpstreamError(
                f"Identity agent is unreachable: {exc}", operation=path
            ) from exc

        if allow_not_found and response.status_code == 404:
            return None
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "agent request %s %s answered %d", method, path, response.status_code
            )
            raise UpstreamError(
                f"Identity agent answered {response.status_code} for {method} {path}",
                operation=path,
                status=response.status_code,
            ) from exc

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"Identity agent returned invalid JSON for {method} {path}", operation=path
            ) from exc
        if not isinstance(data, dict):
            raise UpstreamError(
                f"Identity agent returned an unexpected body for {method} {path}",
                operation=path,
            )
        return data
