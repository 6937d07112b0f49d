# fogbed_stars/models/__init__.py
"""
Modelos de dados para fogbed-stars
Estruturas dataclass para identidades e registros de deployment
"""

from .testnet_node import (
    INSIDE_PORT_RANGE,
    NodeIdentity,
    TestnetNode,
    PortAllocator,
    allocate_nodes,
)

__all__ = [
    'INSIDE_PORT_RANGE',
    'NodeIdentity',
    'TestnetNode',
    'PortAllocator',
    'allocate_nodes',
]
