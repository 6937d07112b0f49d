# fogbed_stars/nodehome.py

"""
Arquivos do diretório home de um nó starsd

Layout (igual ao gerado pelo `starsd init`):

    <home>/
      config/node_key.json
      config/priv_validator_key.json
      config/config.toml
      config/app.toml
      config/genesis.json
      data/priv_validator_state.json
"""

import json
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import toml

from fogbed_stars.config import API_PORT, GRPC_PORT, P2P_PORT, RPC_PORT
from fogbed_stars.crypto.keys import (
    TM_ED25519_PRIVKEY_TYPE,
    TM_ED25519_PUBKEY_TYPE,
    Ed25519KeyPair,
    b64,
    b64decode,
    node_id_from_pubkey,
)
from fogbed_stars.utils import DIR_PERM, SECRET_FILE_PERM, get_logger, write_file

logger = get_logger('nodehome')

PROXY_APP = "tcp://127.0.0.1:26658"
PROMETHEUS_RETENTION_TIME = 60


class NodeHome:
    """Caminhos dentro do home de um nó"""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    @property
    def config_dir(self) -> Path:
        return self.root / "config"

    @property
    def data_dir(self) -> Path:
        return self.root / "data"

    @property
    def node_key_file(self) -> Path:
        return self.config_dir / "node_key.json"

    @property
    def priv_validator_key_file(self) -> Path:
        return self.config_dir / "priv_validator_key.json"

    @property
    def priv_validator_state_file(self) -> Path:
        return self.data_dir / "priv_validator_state.json"

    @property
    def config_toml(self) -> Path:
        return self.config_dir / "config.toml"

    @property
    def app_toml(self) -> Path:
        return self.config_dir / "app.toml"

    @property
    def genesis_file(self) -> Path:
        return self.config_dir / "genesis.json"

    def ensure_dirs(self) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True, mode=DIR_PERM)
        self.data_dir.mkdir(parents=True, exist_ok=True, mode=DIR_PERM)

    def __repr__(self) -> str:
        return f"NodeHome({str(self.root)!r})"


# ---------- Chaves de nó e de consenso ----------

def _load_or_generate(path: Path) -> Ed25519KeyPair:
    if path.exists():
        data = json.loads(path.read_text())
        logger.debug(f"Loaded existing key: {path}")
        return Ed25519KeyPair.from_tendermint(data["priv_key"]["value"])
    return Ed25519KeyPair.generate()


def initialize_node_validator_files(home: NodeHome) -> Tuple[str, bytes]:
    """
    Cria (ou reaproveita) node_key.json e priv_validator_key.json

    Returns:
        (node ID, chave pública ed25519 de consenso)
    """
    home.ensure_dirs()

    node_key = _load_or_generate(home.node_key_file)
    if not home.node_key_file.exists():
        node_key_doc = {
            "priv_key": {"type": TM_ED25519_PRIVKEY_TYPE, "value": node_key.tendermint_priv_key()},
        }
        write_file(home.config_dir, home.node_key_file.name, json.dumps(node_key_doc, indent=2), SECRET_FILE_PERM)

    validator_key = _load_or_generate(home.priv_validator_key_file)
    if not home.priv_validator_key_file.exists():
        validator_doc = {
            "address": validator_key.address.hex().upper(),
            "pub_key": {"type": TM_ED25519_PUBKEY_TYPE, "value": b64(validator_key.public_key)},
            "priv_key": {"type": TM_ED25519_PRIVKEY_TYPE, "value": validator_key.tendermint_priv_key()},
        }
        write_file(
            home.config_dir,
            home.priv_validator_key_file.name,
            json.dumps(validator_doc, indent=2),
            SECRET_FILE_PERM,
        )

    if not home.priv_validator_state_file.exists():
        state = {"height": "0", "round": 0, "step": 0}
        write_file(home.data_dir, home.priv_validator_state_file.name, json.dumps(state, indent=2), SECRET_FILE_PERM)

    node_id = node_id_from_pubkey(node_key.public_key)
    logger.debug(f"Node validator files ready: {home.root} (node_id={node_id})")
    return node_id, validator_key.public_key


def read_validator_pubkey(home: NodeHome) -> bytes:
    data = json.loads(home.priv_validator_key_file.read_text())
    return b64decode(data["pub_key"]["value"])


# ---------- config.toml / app.toml ----------

def default_node_config(moniker: str) -> Dict[str, Any]:
    """Subconjunto do config.toml do Tendermint usado pela testnet"""
    return {
        "proxy_app": PROXY_APP,
        "moniker": moniker,
        "genesis_file": "config/genesis.json",
        "node_key_file": "config/node_key.json",
        "priv_validator_key_file": "config/priv_validator_key.json",
        "priv_validator_state_file": "data/priv_validator_state.json",
        "rpc": {
            "laddr": f"tcp://0.0.0.0:{RPC_PORT}",
        },
        "p2p": {
            "laddr": f"tcp://0.0.0.0:{P2P_PORT}",
            "persistent_peers": "",
            "addr_book_strict": False,
            "allow_duplicate_ip": True,
        },
    }


def write_config_toml(home: NodeHome, config: Dict[str, Any]) -> Path:
    return write_file(home.config_dir, home.config_toml.name, toml.dumps(config))


def read_config_toml(home: NodeHome) -> Dict[str, Any]:
    return toml.load(home.config_toml)


def set_persistent_peers(home: NodeHome, peers: str) -> None:
    """Reescreve p2p.persistent_peers preservando o resto do arquivo"""
    config = read_config_toml(home)
    config.setdefault("p2p", {})["persistent_peers"] = peers
    write_config_toml(home, config)
    logger.debug(f"persistent_peers updated for {home.root}: {peers}")


def default_app_config(minimum_gas_prices: str, chain_id: str) -> Dict[str, Any]:
    """app.toml: API habilitada e telemetria com label global de chain_id"""
    return {
        "minimum-gas-prices": minimum_gas_prices,
        "pruning": "default",
        "telemetry": {
            "service-name": "",
            "enabled": True,
            "enable-hostname": False,
            "enable-hostname-label": False,
            "enable-service-label": False,
            "prometheus-retention-time": PROMETHEUS_RETENTION_TIME,
            "global-labels": [["chain_id", chain_id]],
        },
        "api": {
            "enable": True,
            "swagger": False,
            "address": f"tcp://0.0.0.0:{API_PORT}",
        },
        "grpc": {
            "enable": True,
            "address": f"0.0.0.0:{GRPC_PORT}",
        },
    }


def write_app_toml(home: NodeHome, minimum_gas_prices: str, chain_id: str) -> Path:
    app_config = default_app_config(minimum_gas_prices, chain_id)
    return write_file(home.config_dir, home.app_toml.name, toml.dumps(app_config))
