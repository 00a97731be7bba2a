"""HTTP client for the AgriTrace ledger API."""

from agritrace.client.api_client import APIError, LedgerAPIClient

__all__ = ["APIError", "LedgerAPIClient"]
