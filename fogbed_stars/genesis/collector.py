# fogbed_stars/genesis/collector.py

"""
Coleta final do genesis em duas fases

1. compute_candidates: para cada nó, relê o genesis template, coleta os
   gentxs e calcula o app state candidato
2. select_canonical + broadcast: o candidato do nó 0 vira o estado canônico
   e é gravado em todos os nós com um único genesis_time
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from fogbed_stars.config import TestnetConfig
from fogbed_stars.exceptions import CollectionError
from fogbed_stars.genesis.codec import GenesisCodec
from fogbed_stars.genesis.composer import Clock, utc_now
from fogbed_stars.genesis.document import GenesisDocument, format_timestamp
from fogbed_stars.genesis.genutil import InitConfig, gen_app_state_from_config
from fogbed_stars.genesis.modules import new_stargaze_codec
from fogbed_stars.models import NodeIdentity
from fogbed_stars.nodehome import NodeHome
from fogbed_stars.utils import get_logger

logger = get_logger('genesis.collector')


@dataclass
class CollectionResult:
    """Resultado da coleta: estado canônico e arquivos finais"""

    genesis_time: datetime
    app_state: bytes
    genesis_files: List[Path] = field(default_factory=list)


class GenesisCollector:
    """
    Fixa um app state canônico e um genesis_time para todos os nós

    Exemplos de uso:
        >>> collector = GenesisCollector(config)
        >>> result = collector.collect(identities)
        >>> result.genesis_time
    """

    def __init__(self, config: TestnetConfig, codec: Optional[GenesisCodec] = None, clock: Clock = utc_now):
        self.config = config
        self.codec = codec or new_stargaze_codec()
        self.clock = clock

    def init_config(self, identity: NodeIdentity) -> InitConfig:
        return InitConfig(
            chain_id=self.config.chain_id,
            gentxs_dir=self.config.gentxs_dir,
            node_id=identity.node_id,
            validator_pubkey=identity.consensus_pubkey,
            prefix=self.config.bech32_prefix,
            gentx_names=self.config.gentx_names,
        )

    def compute_candidates(self, identities: Sequence[NodeIdentity]) -> List[bytes]:
        """Fase 1: app state candidato de cada nó, na ordem dos índices"""
        candidates = []
        for identity in identities:
            try:
                genesis = GenesisDocument.from_file(identity.genesis_path)
            except (OSError, ValueError) as e:
                raise CollectionError(f"cannot read genesis of {identity.name}: {e}") from e

            if genesis.chain_id != self.config.chain_id:
                raise CollectionError(
                    f"genesis of {identity.name} has chain-id {genesis.chain_id!r}, expected {self.config.chain_id!r}"
                )

            app_state = gen_app_state_from_config(
                self.codec,
                NodeHome(identity.home),
                self.init_config(identity),
                genesis,
            )
            candidates.append(app_state)
            logger.debug(f"Candidate app state computed for {identity.name}")
        return candidates

    @staticmethod
    def select_canonical(candidates: Sequence[bytes]) -> bytes:
        """O primeiro candidato (nó 0) é o estado canônico"""
        if not candidates:
            raise CollectionError("no candidate application state to select")
        for i, candidate in enumerate(candidates[1:], start=1):
            if candidate != candidates[0]:
                logger.warning(f"⚠️ Candidate state of node {i} differs from node 0; using node 0")
        return candidates[0]

    def broadcast(self, identities: Sequence[NodeIdentity], app_state: bytes, genesis_time: datetime) -> List[Path]:
        """Fase 2: grava o mesmo documento em todos os nós"""
        document = GenesisDocument(
            chain_id=self.config.chain_id,
            genesis_time=genesis_time,
            app_state=app_state,
            validators=None,
        )
        files = []
        for identity in identities:
            try:
                files.append(document.save_as(identity.genesis_path))
            except (OSError, ValueError) as e:
                raise CollectionError(f"cannot write final genesis of {identity.name}: {e}") from e
        return files

    def collect(self, identities: Sequence[NodeIdentity]) -> CollectionResult:
        genesis_time = self.clock()
        logger.info(f"🧬 Collecting genesis for {len(identities)} nodes (genesis_time={format_timestamp(genesis_time)})")

        candidates = self.compute_candidates(identities)
        canonical = self.select_canonical(candidates)
        files = self.broadcast(identities, canonical, genesis_time)

        logger.info(f"✅ Canonical genesis written to {len(files)} nodes")
        return CollectionResult(genesis_time=genesis_time, app_state=canonical, genesis_files=files)
