"""
Horizon API adapter for node integration.

Provides ledger access via the Horizon REST API.
"""

from typing import Any, Optional

import httpx
import structlog

from stellar_mc.config import NetworkContext
from stellar_mc.exceptions import AccountError, FundingError, TransportError
from stellar_mc.node.interface import HorizonInterface, SubmitResponse

logger = structlog.get_logger(__name__)


class HorizonAdapter(HorizonInterface):
    """
    Horizon API adapter.

    Implements the HorizonInterface using Horizon's REST API. Requests are
    issued one at a time, are never retried, and use httpx's default timeout.
    """

    def __init__(
        self,
        network: NetworkContext,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the Horizon adapter.

        Args:
            network: Network whose Horizon endpoint is used
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.network = network
        self.base_url = network.endpoint_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def headers(self) -> dict:
        return {"Accept": "application/json"}

    async def connect(self) -> None:
        """Establish connection (create HTTP client)."""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            transport=self._transport,
        )
        logger.debug("horizon_connected", base_url=self.base_url)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug("horizon_disconnected")

    async def __aenter__(self) -> "HorizonAdapter":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.disconnect()

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs,
    ) -> httpx.Response:
        """Make an API request."""
        if not self._client:
            await self.connect()

        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("horizon_request_error", path=path, error=str(e))
            raise TransportError(f"{method} {path} failed: {e}") from e

    async def load_account(self, address: str) -> dict:
        """Load an account record."""
        response = await self._request("GET", f"/accounts/{address}")

        if response.status_code == 404:
            raise AccountError(address, "not-found")

        if response.status_code != 200:
            logger.error(
                "horizon_request_failed",
                path="/accounts",
                status=response.status_code,
                error=response.text,
            )
            raise TransportError(f"Horizon answered {response.status_code}: {response.text}")

        try:
            account = response.json()
        except ValueError:
            raise TransportError("decode-error: account record is not JSON") from None
        if not isinstance(account, dict):
            raise TransportError("decode-error: account record is not a JSON object")

        logger.debug("account_loaded", address=address, sequence=account.get("sequence"))
        return account

    async def submit_transaction(self, envelope_xdr: str) -> SubmitResponse:
        """Post a signed transaction envelope."""
        response = await self._request(
            "POST",
            "/transactions",
            data={"tx": envelope_xdr},
        )

        body: Any = None
        try:
            body = response.json()
        except ValueError:
            pass

        logger.debug("transaction_posted", status=response.status_code)
        return SubmitResponse(
            status_code=response.status_code,
            body=body,
            text=response.text,
        )

    async def fund_account(self, address: str) -> dict:
        """Fund an account through friendbot."""
        response = await self._request("GET", "/friendbot", params={"addr": address})

        if response.status_code != 200:
            raise FundingError(f"could not fund {address}, horizon said: {response.text}")

        logger.info("account_funded", address=address)
        try:
            return response.json()
        except ValueError:
            return {}
