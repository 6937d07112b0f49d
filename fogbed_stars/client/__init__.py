# fogbed_stars/client/__init__.py
"""
Clientes JSON-RPC do Tendermint para nós starsd
"""

from .exceptions import StarsClientError, StarsRpcError, StarsConnectionError, StarsTimeoutError
from .rpc_client import StarsRpcClient, AsyncStarsRpcClient

__all__ = [
    'StarsClientError',
    'StarsRpcError',
    'StarsConnectionError',
    'StarsTimeoutError',
    'StarsRpcClient',
    'AsyncStarsRpcClient',
]
