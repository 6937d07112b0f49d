# fogbed_stars/testnet.py

"""
Coordenador do comando testnet

Sequencia provisionamento, gentxs, genesis template, coleta canônica e
descriptor de deployment como uma máquina de estados explícita:

    INIT -> PROVISION(i) -> COMPOSE_TEMPLATE -> MATERIALIZE(i) -> COLLECT
         -> RENDER_DEPLOYMENT -> DONE

Qualquer falha leva a ABORT e remove a saída parcial (a menos de
keep_on_failure).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from fogbed_stars.config import TestnetConfig
from fogbed_stars.deployment import DeploymentDescriptorGenerator
from fogbed_stars.exceptions import ProvisioningError, TestnetError
from fogbed_stars.genesis import (
    GenesisCollector,
    GenesisStateComposer,
    format_timestamp,
    new_stargaze_codec,
)
from fogbed_stars.genesis.composer import Clock, utc_now
from fogbed_stars.gentx import ValidatorTxBuilder
from fogbed_stars.models import NodeIdentity, PortAllocator, TestnetNode
from fogbed_stars.nodehome import NodeHome
from fogbed_stars.provision import IdentityProvisioner
from fogbed_stars.utils import get_logger, managed_output_dir, validate_port_allocation

logger = get_logger('testnet')


class TestnetPhase(Enum):
    """Fases do coordenador"""

    INIT = "init"
    PROVISION = "provision"
    COMPOSE_TEMPLATE = "compose_template"
    MATERIALIZE = "materialize"
    COLLECT = "collect"
    RENDER_DEPLOYMENT = "render_deployment"
    DONE = "done"
    ABORT = "abort"

    def __str__(self):
        return self.value


@dataclass
class TestnetResult:
    """Resumo de uma execução bem-sucedida"""

    output_dir: Path
    chain_id: str
    genesis_time: datetime
    identities: List[NodeIdentity] = field(default_factory=list)
    nodes: List[TestnetNode] = field(default_factory=list)
    genesis_files: List[Path] = field(default_factory=list)
    gentx_files: List[Path] = field(default_factory=list)
    descriptor_path: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output_dir": str(self.output_dir),
            "chain_id": self.chain_id,
            "genesis_time": format_timestamp(self.genesis_time),
            "identities": [identity.to_dict() for identity in self.identities],
            "nodes": [node.to_dict() for node in self.nodes],
            "descriptor_path": str(self.descriptor_path) if self.descriptor_path else None,
        }


class TestnetCoordinator:
    """
    Executa o bootstrap completo para N validadores

    Exemplos de uso:
        >>> config = TestnetConfig(num_validators=2, output_dir="/tmp/out", chain_id="stars-dev")
        >>> result = TestnetCoordinator(config).run()
        >>> len(result.genesis_files)
        2
    """

    def __init__(self, config: TestnetConfig, clock: Clock = utc_now, passphrase: Optional[str] = None):
        self.config = config
        self.clock = clock
        self.codec = new_stargaze_codec()

        self.provisioner = IdentityProvisioner(config, passphrase=passphrase)
        self.tx_builder = ValidatorTxBuilder(config)
        self.composer = GenesisStateComposer(config, self.codec, clock)
        self.collector = GenesisCollector(config, self.codec, clock)
        self.deployment = DeploymentDescriptorGenerator(
            tag=config.docker_tag,
            image_repository=config.image_repository,
            daemon_home=config.node_daemon_home,
        )

        self.phase = TestnetPhase.INIT
        self.history: List[Tuple[TestnetPhase, Optional[int]]] = [(TestnetPhase.INIT, None)]

    def _enter(self, phase: TestnetPhase, index: Optional[int] = None) -> None:
        self.phase = phase
        self.history.append((phase, index))
        suffix = f" ({self.config.node_name(index)})" if index is not None else ""
        logger.debug(f"Phase -> {phase}{suffix}")

    def _remove_stale_gentxs(self) -> None:
        """Remove gentxs de execuções anteriores com mais validadores"""
        gentxs_dir = self.config.gentxs_dir
        if not gentxs_dir.is_dir():
            return
        for path in sorted(gentxs_dir.glob("*.json")):
            if path.name not in self.config.gentx_names:
                logger.warning(f"⚠️ Removing stale gentx: {path}")
                path.unlink()

    def run(self) -> TestnetResult:
        """
        Raises:
            TestnetError: qualquer falha (a saída parcial já foi tratada)
        """
        config = self.config
        logger.info("=" * 60)
        logger.info(f"Initializing testnet {config.chain_id} with {config.num_validators} validators")
        logger.info("=" * 60)

        try:
            with managed_output_dir(config.output_dir, config.keep_on_failure):
                result = self._run()
        except TestnetError as e:
            self._enter(TestnetPhase.ABORT)
            logger.error(f"❌ Testnet initialization aborted: {e}")
            raise
        except OSError as e:
            self._enter(TestnetPhase.ABORT)
            logger.error(f"❌ Testnet initialization aborted: {e}")
            raise ProvisioningError(f"cannot prepare output directory {config.output_dir}: {e}") from e
        except Exception as e:
            failed_phase = self.phase
            self._enter(TestnetPhase.ABORT)
            logger.error(f"❌ Testnet initialization aborted by unexpected error: {e!r}")
            raise TestnetError(f"unexpected failure during {failed_phase.value}: {e!r}") from e

        self._enter(TestnetPhase.DONE)
        logger.info(f"✅ Testnet ready at {result.output_dir}")
        return result

    def _run(self) -> TestnetResult:
        config = self.config
        allocator = PortAllocator(config.starting_port)

        identities: List[NodeIdentity] = []
        nodes: List[TestnetNode] = []
        gentx_files: List[Path] = []

        self._remove_stale_gentxs()
        for i in range(config.num_validators):
            self._enter(TestnetPhase.PROVISION, i)
            nodes.append(allocator.allocate(config.node_name(i)))

            keyring = self.provisioner.keyring_for(NodeHome(config.node_home(i)))
            identity = self.provisioner.provision(i, keyring)
            tx = self.tx_builder.build(identity, keyring)
            gentx_files.append(self.tx_builder.write(identity, tx))
            identities.append(identity)

        valid, errors = validate_port_allocation(nodes)
        if not valid:
            raise ProvisioningError("; ".join(errors))

        self._enter(TestnetPhase.COMPOSE_TEMPLATE)
        template = self.composer.compose(identities)

        for identity in identities:
            self._enter(TestnetPhase.MATERIALIZE, identity.index)
            self.composer.write_template(template, [identity])

        self._enter(TestnetPhase.COLLECT)
        collection = self.collector.collect(identities)

        self._enter(TestnetPhase.RENDER_DEPLOYMENT)
        descriptor = self.deployment.write(nodes, config.output_dir)

        return TestnetResult(
            output_dir=Path(config.output_dir),
            chain_id=config.chain_id,
            genesis_time=collection.genesis_time,
            identities=identities,
            nodes=nodes,
            genesis_files=collection.genesis_files,
            gentx_files=gentx_files,
            descriptor_path=descriptor,
        )


def init_testnet(config: TestnetConfig, clock: Clock = utc_now) -> TestnetResult:
    """Atalho: roda o coordenador com a config dada"""
    return TestnetCoordinator(config, clock=clock).run()
