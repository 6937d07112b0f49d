# fogbed_stars/__init__.py
"""
fogbed-stars: bootstrap de testnets Stargaze (starsd) multi-validador

O launcher Fogbed (fogbed_stars.network) depende do extra opcional
"fogbed" e não é importado aqui.
"""

from fogbed_stars.config import TestnetConfig
from fogbed_stars.deployment import DeploymentDescriptorGenerator
from fogbed_stars.exceptions import (
    TestnetError,
    ConfigurationError,
    ProvisioningError,
    KeyringError,
    SigningError,
    CollectionError,
    TemplatingError,
    SnapshotError,
)
from fogbed_stars.genesis import GenesisCollector, GenesisStateComposer
from fogbed_stars.gentx import ValidatorTxBuilder
from fogbed_stars.models import NodeIdentity, TestnetNode
from fogbed_stars.provision import IdentityProvisioner
from fogbed_stars.snapshot import HubSnapshotExporter
from fogbed_stars.testnet import TestnetCoordinator, TestnetPhase, TestnetResult

__version__ = "0.1.0"

__all__ = [
    'TestnetConfig',
    'TestnetCoordinator',
    'TestnetPhase',
    'TestnetResult',
    'IdentityProvisioner',
    'ValidatorTxBuilder',
    'GenesisStateComposer',
    'GenesisCollector',
    'DeploymentDescriptorGenerator',
    'HubSnapshotExporter',
    'NodeIdentity',
    'TestnetNode',
    'TestnetError',
    'ConfigurationError',
    'ProvisioningError',
    'KeyringError',
    'SigningError',
    'CollectionError',
    'TemplatingError',
    'SnapshotError',
]
