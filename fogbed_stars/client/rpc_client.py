import asyncio
import aiohttp
import requests
from typing import Any, Dict, Optional
from .exceptions import StarsRpcError, StarsConnectionError, StarsTimeoutError
from fogbed_stars.utils import get_logger

logger = get_logger('client.rpc')

class StarsRpcClient:
    """Cliente JSON-RPC do Tendermint (porta 26657)"""

    def __init__(self, endpoint: str, timeout: int = 30, headers: Optional[Dict[str, str]] = None):
        self.endpoint = endpoint.rstrip('/')
        self.timeout = timeout
        self.headers = headers or {"Content-Type": "application/json"}
        self._request_id = 0

    def _next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    def _call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": params or {}
        }
        try:
            response = requests.post(
                self.endpoint, json=payload,
                headers=self.headers, timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
            if "error" in data:
                error = data["error"]
                raise StarsRpcError(
                    code=error.get("code", -1),
                    message=error.get("message", "Unknown error"),
                    data=error.get("data")
                )
            return data.get("result")
        except requests.exceptions.Timeout:
            raise StarsTimeoutError(f"Request timeout after {self.timeout}s")
        except requests.exceptions.ConnectionError as e:
            raise StarsConnectionError(f"Connection failed: {e}")
        except requests.exceptions.RequestException as e:
            raise StarsConnectionError(f"Request failed: {e}")

    def status(self) -> Dict[str, Any]:
        return self._call("status")

    def health(self) -> Dict[str, Any]:
        return self._call("health")

    def net_info(self) -> Dict[str, Any]:
        return self._call("net_info")

    def genesis(self) -> Dict[str, Any]:
        """Documento de genesis servido pelo nó"""
        return self._call("genesis")["genesis"]

    def latest_block_height(self) -> int:
        return int(self.status()["sync_info"]["latest_block_height"])

    def health_check(self) -> bool:
        try:
            self.health()
            return True
        except (StarsRpcError, StarsConnectionError, StarsTimeoutError):
            return False

class AsyncStarsRpcClient:
    """Versão aiohttp do cliente, usada para consultar vários nós em paralelo"""

    def __init__(self, endpoint: str, timeout: int = 30, headers: Optional[Dict[str, str]] = None):
        self.endpoint = endpoint.rstrip('/')
        self.timeout = timeout
        self.headers = headers or {"Content-Type": "application/json"}
        self._session: Optional[aiohttp.ClientSession] = None
        self._request_id = 0

    async def __aenter__(self) -> "AsyncStarsRpcClient":
        self._session = aiohttp.ClientSession(
            headers=self.headers,
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    def _next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    async def _call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        if self._session is None:
            raise StarsConnectionError("Session not started; use 'async with'")

        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": params or {}
        }
        try:
            async with self._session.post(self.endpoint, json=payload) as response:
                response.raise_for_status()
                data = await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise StarsTimeoutError(f"Request timeout after {self.timeout}s: {e}")
        except aiohttp.ClientConnectionError as e:
            raise StarsConnectionError(f"Connection failed: {e}")
        except aiohttp.ClientError as e:
            raise StarsConnectionError(f"Request failed: {e}")

        if "error" in data:
            error = data["error"]
            raise StarsRpcError(
                code=error.get("code", -1),
                message=error.get("message", "Unknown error"),
                data=error.get("data")
            )
        return data.get("result")

    async def status(self) -> Dict[str, Any]:
        return await self._call("status")

    async def health(self) -> Dict[str, Any]:
        return await self._call("health")

    async def net_info(self) -> Dict[str, Any]:
        return await self._call("net_info")

    async def genesis(self) -> Dict[str, Any]:
        result = await self._call("genesis")
        return result["genesis"]

    async def health_check(self) -> bool:
        try:
            await self.health()
            return True
        except (StarsRpcError, StarsConnectionError, StarsTimeoutError):
            return False
