# fogbed_stars/provision.py

"""
Provisionamento de identidades dos nós

Para cada índice cria o home do daemon, as chaves de nó e de consenso, a
conta do validador no keyring, key_seed.json, config.toml e app.toml.
"""

import json
from typing import Optional

from fogbed_stars.config import TestnetConfig
from fogbed_stars.crypto.keyring import Keyring
from fogbed_stars.exceptions import KeyringError, ProvisioningError
from fogbed_stars.models import NodeIdentity
from fogbed_stars.nodehome import (
    NodeHome,
    default_node_config,
    initialize_node_validator_files,
    write_app_toml,
    write_config_toml,
)
from fogbed_stars.utils import SECRET_FILE_PERM, get_logger, write_file

logger = get_logger('provision')

KEY_SEED_FILE = "key_seed.json"


class IdentityProvisioner:
    """
    Gera material criptográfico e arquivos de configuração por nó

    Exemplos de uso:
        >>> provisioner = IdentityProvisioner(config)
        >>> identity = provisioner.provision(0)
        >>> identity.memo
        '3f1c...@node0:26656'
    """

    def __init__(self, config: TestnetConfig, passphrase: Optional[str] = None):
        self.config = config
        self.passphrase = passphrase

    def keyring_for(self, home: NodeHome) -> Keyring:
        return Keyring(
            self.config.keyring_backend,
            home.root,
            prefix=self.config.bech32_prefix,
            passphrase=self.passphrase,
        )

    def provision(self, index: int, keyring: Optional[Keyring] = None) -> NodeIdentity:
        """
        Provisiona o nó `index`

        Args:
            index: Índice do nó (0..N-1)
            keyring: Keyring já aberto (default: um por home de nó)

        Raises:
            ProvisioningError: falha de diretório, algoritmo, backend ou keyring
        """
        name = self.config.node_name(index)
        home = NodeHome(self.config.node_home(index))
        logger.info(f"🔑 Provisioning {name} at {home.root}")

        try:
            home.ensure_dirs()
            node_id, consensus_pubkey = initialize_node_validator_files(home)

            kb = keyring or self.keyring_for(home)
            algo = kb.signing_algo_from_string(self.config.algo)
            address, mnemonic = kb.generate_save_coin_key(name, overwrite=True, algo=algo)

            write_file(home.root, KEY_SEED_FILE, json.dumps({"secret": mnemonic}), SECRET_FILE_PERM)

            write_config_toml(home, default_node_config(name))
            write_app_toml(home, self.config.minimum_gas_prices, self.config.chain_id)
        except KeyringError:
            raise
        except (OSError, ValueError) as e:
            raise ProvisioningError(f"failed to provision {name}: {e}") from e

        identity = NodeIdentity(
            index=index,
            name=name,
            home=home.root,
            node_id=node_id,
            consensus_pubkey=consensus_pubkey,
            address=address,
            mnemonic=mnemonic,
        )
        logger.info(f"✅ {name}: node_id={node_id}, address={address}")
        return identity
