"""Soroban RPC client with fallback support."""
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig

logger = logging.getLogger(__name__)


class SorobanClient:
    """Soroban JSON-RPC client with automatic endpoint fallback."""

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.current_rpc_index = 0

    async def rpc_call(
        self, method: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Make RPC call with fallback to alternative endpoints."""
        if not self.endpoints:
            raise RuntimeError("No RPC endpoints configured")

        payload: dict[str, Any] = {"jsonrpc": "2.0", "id": 1, "method": method}
        if params is not None:
            payload["params"] = params

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json()
                        if "error" in result:
                            raise RuntimeError(f"RPC Error: {result['error']}")

                        if rpc_index != self.current_rpc_index:
                            logger.info("Switched to RPC endpoint: %s", rpc_url)
                            self.current_rpc_index = rpc_index

                        return result.get("result", {})
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

        raise RuntimeError(f"All RPC endpoints failed. Last error: {last_error}")

    async def get_health(self) -> dict[str, Any]:
        """Node status plus the ledger range it retains."""
        return await self.rpc_call("getHealth")

    async def get_latest_ledger(self) -> dict[str, Any]:
        """Latest closed ledger: ``id``, ``protocolVersion`` and ``sequence``."""
        return await self.rpc_call("getLatestLedger")

    async def get_network(self) -> dict[str, Any]:
        """Network passphrase and protocol version of the endpoint."""
        return await self.rpc_call("getNetwork")
