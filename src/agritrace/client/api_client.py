"""
HTTP API client for the AgriTrace ledger.

Provides a synchronous httpx client for the ledger's REST API. Each client
instance acts as one participant: the identity given at construction is sent
in the ``X-Participant`` header on every request.

The client is designed to be used as a context manager to ensure proper
resource cleanup:

    with LedgerAPIClient("http://localhost:8000", identity="0xfarmer") as client:
        product_id = client.register_product(digest)
        trace = client.trace_product(product_id)

Digests may be passed as raw 32-byte values or hex strings; responses are
returned as the decoded JSON dicts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from agritrace.config import config
from agritrace.core.digest import normalize_digest, to_hex

# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


@dataclass
class APIError(Exception):
    """
    Exception raised when an API request fails.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code from the response (0 for transport errors).
        detail: Detail string from the server response, if available.
        error: Error kind from the server (``"unauthorized"``, ``"not_found"``,
            ``"already_registered"``, ``"invalid_state_transition"``, ...).
    """

    message: str
    status_code: int = 0
    detail: str = ""
    error: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message


# =============================================================================
# API CLIENT
# =============================================================================


class LedgerAPIClient:
    """
    Synchronous HTTP client for the ledger API.

    Args:
        base_url: Server URL. Defaults to ``config.server.public_url``.
        identity: Participant identity sent as ``X-Participant``. Optional for
            read-only use (tracing is public).
        timeout: Request timeout in seconds.
        transport: Optional httpx transport (tests inject ``httpx.MockTransport``
            or rely on respx).
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        identity: str | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or config.server.public_url).rstrip("/")
        self.identity = identity
        headers = {"X-Participant": identity} if identity else {}
        self._client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> "LedgerAPIClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # -------------------------------------------------------------------------
    # Request plumbing
    # -------------------------------------------------------------------------

    def _request(self, method: str, path: str, json: dict | None = None) -> dict[str, Any]:
        try:
            response = self._client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            raise APIError(f"Cannot reach ledger at {self.base_url}", detail=str(exc)) from exc

        if response.is_success:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = {"detail": response.text}
        raise APIError(
            f"{method} {path} failed",
            status_code=response.status_code,
            detail=str(body.get("detail", "")),
            error=str(body.get("error", "")),
        )

    # -------------------------------------------------------------------------
    # Ledger operations
    # -------------------------------------------------------------------------

    def get_health(self) -> dict[str, Any]:
        return self._request("GET", "/health")

    def register_participant(
        self, identity: str, role: str, data_hash: bytes | str
    ) -> dict[str, Any]:
        return self._request(
            "POST",
            "/participants",
            json={"identity": identity, "role": role, "data_hash": _hex(data_hash)},
        )

    def get_participant(self, identity: str) -> dict[str, Any]:
        return self._request("GET", f"/participants/{identity}")

    def register_product(self, data_hash: bytes | str) -> int:
        body = self._request("POST", "/products", json={"data_hash": _hex(data_hash)})
        return int(body["product_id"])

    def apply_operation(self, operation: str, product_id: int, data_hash: bytes | str) -> int:
        """Run a custody operation and return the new activity id."""
        body = self._request(
            "POST",
            f"/products/{product_id}/operations/{operation}",
            json={"data_hash": _hex(data_hash)},
        )
        return int(body["activity_id"])

    def get_product(self, product_id: int) -> dict[str, Any]:
        return self._request("GET", f"/products/{product_id}")

    def verify_product_hash(self, product_id: int, data_hash: bytes | str) -> bool:
        body = self._request(
            "POST", f"/products/{product_id}/verify", json={"data_hash": _hex(data_hash)}
        )
        return bool(body["matches"])

    def trace_product(self, product_id: int) -> dict[str, Any]:
        return self._request("GET", f"/products/{product_id}/trace")

    def get_activities_for_product(self, product_id: int) -> list[int]:
        body = self._request("GET", f"/products/{product_id}/activities")
        return [int(activity_id) for activity_id in body["activity_ids"]]

    def get_activity(self, activity_id: int) -> dict[str, Any]:
        return self._request("GET", f"/activities/{activity_id}")

    def verify_activity_hash(self, activity_id: int, data_hash: bytes | str) -> bool:
        body = self._request(
            "POST", f"/activities/{activity_id}/verify", json={"data_hash": _hex(data_hash)}
        )
        return bool(body["matches"])

    def get_stats(self) -> dict[str, Any]:
        return self._request("GET", "/stats")


def _hex(data_hash: bytes | str) -> str:
    return to_hex(normalize_digest(data_hash))
