# fogbed_stars/client/exceptions.py

"""
Exceções específicas do cliente RPC dos nós starsd

Compatível com:
- rpc_client.py  (StarsRpcError, StarsConnectionError, StarsTimeoutError)
- network.py     (health check e verificação de genesis)
"""


class StarsClientError(Exception):
    """Erro genérico do cliente RPC"""
    pass


class StarsRpcError(StarsClientError):
    """Erro retornado pelo nó via JSON-RPC"""
    def __init__(self, code: int, message: str, data=None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"RPC Error {code}: {message}")


class StarsConnectionError(StarsClientError):
    """Erro de conexão com o nó"""
    pass


class StarsTimeoutError(StarsClientError):
    """Timeout na comunicação com o nó"""
    pass
