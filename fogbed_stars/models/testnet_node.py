# fogbed_stars/models/testnet_node.py

"""
Modelo de dados para nós da testnet Stargaze

Define a identidade provisionada de cada nó e o registro de deployment com
blocos de portas do host alocados por um contador monotônico.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

from fogbed_stars.config import API_PORT, GRPC_PORT, P2P_PORT, PORTS_PER_NODE
from fogbed_stars.utils import (
    get_logger,
    validate_node_name,
    validate_port,
)

logger = get_logger("models.testnet_node")

INSIDE_PORT_RANGE = f"{P2P_PORT}-{P2P_PORT + 2}"


@dataclass(frozen=True)
class NodeIdentity:
    """
    Identidade criptográfica de um nó (criada uma vez, imutável)

    Attributes:
        index: Índice do nó (0..N-1)
        name: Nome do diretório/serviço (node0, node1...)
        home: Diretório home do daemon
        node_id: ID Tendermint (hex da chave de nó)
        consensus_pubkey: Chave pública ed25519 de consenso
        address: Endereço bech32 da conta do validador
        mnemonic: Segredo da conta (também gravado em key_seed.json)
    """

    index: int
    name: str
    home: Path
    node_id: str
    consensus_pubkey: bytes
    address: str
    mnemonic: str = field(repr=False)

    @property
    def memo(self) -> str:
        """Endereço P2P anunciado no gentx: nodeID@nodeName:26656"""
        return f"{self.node_id}@{self.name}:{P2P_PORT}"

    @property
    def config_dir(self) -> Path:
        return self.home / "config"

    @property
    def genesis_path(self) -> Path:
        return self.config_dir / "genesis.json"

    def to_dict(self) -> Dict[str, Any]:
        """Converte identidade para dicionário (sem o mnemônico)"""
        return {
            "index": self.index,
            "name": self.name,
            "home": str(self.home),
            "node_id": self.node_id,
            "address": self.address,
            "memo": self.memo,
        }


@dataclass
class TestnetNode:
    """
    Registro de deployment de um nó

    Attributes:
        name: Nome do serviço no docker-compose
        outside_port_range: Faixa P2P/RPC no host ("26656-26658")
        inside_port_range: Faixa P2P/RPC no container (sempre 26656-26658)
        api_port: Porta do host mapeada para a API REST (1317)
        grpc_port: Porta do host mapeada para o gRPC (9090)
    """

    name: str
    outside_port_range: str
    api_port: int
    grpc_port: int
    inside_port_range: str = INSIDE_PORT_RANGE

    # Portas internas fixas
    INSIDE_API_PORT: int = field(default=API_PORT, repr=False)
    INSIDE_GRPC_PORT: int = field(default=GRPC_PORT, repr=False)

    def __post_init__(self):
        self._validate()

    def _validate(self) -> None:
        """Valida registro do nó"""
        logger.debug(f"Validating testnet node: {self.name}")

        if not validate_node_name(self.name):
            raise ValueError(f"Invalid node name: {self.name}")

        for port in self.host_ports():
            if not validate_port(port):
                raise ValueError(f"Invalid host port for {self.name}: {port}")

        start, end = self._outside_bounds()
        if end - start != 2:
            raise ValueError(f"Outside port range must span 3 ports: {self.outside_port_range}")

        logger.debug(f"✅ Testnet node validated: {self.name}")

    def _outside_bounds(self) -> Tuple[int, int]:
        try:
            start, end = self.outside_port_range.split("-")
            return int(start), int(end)
        except ValueError:
            raise ValueError(f"Invalid port range: {self.outside_port_range!r}")

    def host_ports(self) -> List[int]:
        """Todas as portas do host ocupadas pelo nó"""
        start, end = self._outside_bounds()
        return list(range(start, end + 1)) + [self.api_port, self.grpc_port]

    def to_dict(self) -> Dict[str, Any]:
        """Converte registro para dicionário"""
        return {
            "name": self.name,
            "outside_port_range": self.outside_port_range,
            "inside_port_range": self.inside_port_range,
            "api_port": self.api_port,
            "grpc_port": self.grpc_port,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TestnetNode":
        """Cria registro a partir de dicionário"""
        logger.debug(f"Creating TestnetNode from dict: {data}")
        return cls(
            name=data["name"],
            outside_port_range=data["outside_port_range"],
            api_port=data["api_port"],
            grpc_port=data["grpc_port"],
            inside_port_range=data.get("inside_port_range", INSIDE_PORT_RANGE),
        )


class PortAllocator:
    """
    Contador monotônico de portas do host

    Cada nó recebe um bloco de 5 portas p..p+4 (p..p+2 P2P/RPC, p+3 API,
    p+4 gRPC); o próximo nó começa em p+5.
    """

    def __init__(self, starting_port: int = P2P_PORT):
        if not validate_port(starting_port):
            raise ValueError(f"Invalid starting port: {starting_port}")
        self.next_port = starting_port

    def allocate(self, name: str) -> TestnetNode:
        p = self.next_port
        node = TestnetNode(
            name=name,
            outside_port_range=f"{p}-{p + 2}",
            api_port=p + 3,
            grpc_port=p + 4,
        )
        self.next_port = p + PORTS_PER_NODE
        logger.debug(f"Ports allocated for {name}: {node.outside_port_range}, api={node.api_port}, grpc={node.grpc_port}")
        return node


def allocate_nodes(names: List[str], starting_port: int = P2P_PORT) -> List[TestnetNode]:
    """Aloca blocos de portas em ordem para uma lista de nós"""
    allocator = PortAllocator(starting_port)
    return [allocator.allocate(name) for name in names]
