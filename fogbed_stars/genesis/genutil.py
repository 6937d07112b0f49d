# fogbed_stars/genesis/genutil.py

"""
Coleta de gentxs para o estado genutil

Lê todos os gentxs do diretório compartilhado, valida cada um contra o
genesis template e devolve o app state do nó com genutil.gen_txs preenchido,
além da lista de persistent peers.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple

from fogbed_stars.crypto.keys import b64
from fogbed_stars.exceptions import CollectionError
from fogbed_stars.genesis.codec import GenesisCodec, marshal_app_state, unmarshal_app_state
from fogbed_stars.genesis.document import GenesisDocument
from fogbed_stars.gentx import create_validator_msgs, verify_gentx_signature
from fogbed_stars.nodehome import NodeHome, set_persistent_peers
from fogbed_stars.utils import get_logger

logger = get_logger('genesis.genutil')


@dataclass(frozen=True)
class InitConfig:
    """Parâmetros de coleta de um nó"""

    chain_id: str
    gentxs_dir: Path
    node_id: str
    validator_pubkey: bytes
    prefix: str = "stars"
    # Vazio lê todo *.json do diretório
    gentx_names: Tuple[str, ...] = ()


def _balances_by_address(codec: GenesisCodec, genesis: GenesisDocument) -> Dict[str, Dict[str, int]]:
    app_state = unmarshal_app_state(genesis.app_state)
    bank = codec.decode("bank", app_state["bank"])
    return {
        balance.address: {coin.denom: int(coin.amount) for coin in balance.coins}
        for balance in bank.balances
    }


def _validate_gentx(name: str, tx: Dict[str, Any], balances: Dict[str, Dict[str, int]], cfg: InitConfig) -> str:
    """Valida um gentx e devolve o memo"""
    messages = tx.get("body", {}).get("messages", [])
    msgs = create_validator_msgs(tx)
    if len(messages) != 1 or len(msgs) != 1:
        raise CollectionError(f"gentx {name} must contain exactly one MsgCreateValidator, found {len(messages)} messages")

    memo = tx["body"].get("memo", "")
    if not memo:
        raise CollectionError(f"gentx {name} has no memo (node address)")

    msg = msgs[0]
    delegator = msg["delegator_address"]
    denom = msg["value"]["denom"]
    amount = int(msg["value"]["amount"])

    if delegator not in balances:
        raise CollectionError(f"account {delegator} in gentx {name} not in genesis state")
    if balances[delegator].get(denom, 0) < amount:
        raise CollectionError(
            f"insufficient fund for delegation {delegator}: {balances[delegator].get(denom, 0)}{denom} < {amount}{denom}"
        )

    if not verify_gentx_signature(tx, cfg.chain_id, cfg.prefix):
        raise CollectionError(f"invalid signature in gentx {name}")

    return memo


def collect_txs(codec: GenesisCodec, cfg: InitConfig, genesis: GenesisDocument) -> Tuple[List[Dict[str, Any]], str]:
    """
    Lê e valida os gentxs (em ordem de nome de arquivo)

    Com cfg.gentx_names preenchido, apenas esses arquivos são lidos e todos
    precisam existir; outros *.json do diretório são ignorados.

    Returns:
        (gentxs, persistent_peers) onde persistent_peers são os memos dos
        outros nós, ordenados e separados por vírgula

    Raises:
        CollectionError: diretório ilegível, gentx esperado ausente, gentx
            inválido ou gentx do próprio nó ausente
    """
    try:
        present = {p.name: p for p in Path(cfg.gentxs_dir).iterdir() if p.suffix == ".json"}
    except OSError as e:
        raise CollectionError(f"cannot read gentxs directory {cfg.gentxs_dir}: {e}") from e

    if cfg.gentx_names:
        missing = sorted(set(cfg.gentx_names) - set(present))
        if missing:
            raise CollectionError(f"missing gentx files in {cfg.gentxs_dir}: {', '.join(missing)}")
        ignored = sorted(set(present) - set(cfg.gentx_names))
        if ignored:
            logger.warning(f"⚠️ Ignoring unexpected gentx files: {', '.join(ignored)}")
        present = {name: present[name] for name in cfg.gentx_names}

    files = [present[name] for name in sorted(present)]

    try:
        balances = _balances_by_address(codec, genesis)
    except (ValueError, KeyError) as e:
        raise CollectionError(f"cannot read balances from genesis: {e}") from e
    own_pubkey = b64(cfg.validator_pubkey)

    gentxs: List[Dict[str, Any]] = []
    peers: List[str] = []
    found_own = False

    for path in files:
        try:
            tx = json.loads(path.read_text())
            if not isinstance(tx, dict):
                raise CollectionError(f"gentx {path.name} is not a JSON object")
            memo = _validate_gentx(path.name, tx, balances, cfg)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise CollectionError(f"failed to read gentx {path.name}: {e}") from e

        gentxs.append(tx)

        node_id = memo.split("@", 1)[0]
        if node_id == cfg.node_id:
            if create_validator_msgs(tx)[0]["pubkey"]["key"] == own_pubkey:
                found_own = True
        else:
            peers.append(memo)

    if not found_own:
        raise CollectionError(f"gentx for node {cfg.node_id} not found in {cfg.gentxs_dir}")

    logger.debug(f"Collected {len(gentxs)} gentxs for node {cfg.node_id}")
    return gentxs, ",".join(sorted(peers))


def gen_app_state_from_config(
    codec: GenesisCodec,
    home: NodeHome,
    cfg: InitConfig,
    genesis: GenesisDocument,
) -> bytes:
    """
    Coleta os gentxs, grava persistent_peers no config.toml e devolve o app
    state do nó com genutil.gen_txs preenchido

    O genesis.json do nó também é regravado com esse app state.
    """
    gentxs, persistent_peers = collect_txs(codec, cfg, genesis)

    try:
        set_persistent_peers(home, persistent_peers)

        app_state = unmarshal_app_state(genesis.app_state)
        genutil = codec.decode("genutil", app_state["genutil"])
        genutil.gen_txs = gentxs
        app_state["genutil"] = codec.encode("genutil", genutil)
        blob = marshal_app_state(app_state)

        genesis.app_state = blob
        genesis.save_as(home.genesis_file)
    except (OSError, ValueError, KeyError) as e:
        raise CollectionError(f"failed to build app state for {home.root}: {e}") from e

    return blob
