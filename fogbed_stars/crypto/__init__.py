# fogbed_stars/crypto/__init__.py

"""
Chaves de nó, chaves de consenso e keyring de contas
"""

from fogbed_stars.crypto.keys import (
    Ed25519KeyPair,
    account_address,
    node_id_from_pubkey,
    valoper_address,
)
from fogbed_stars.crypto.keyring import Keyring, KeyRecord

__all__ = [
    "Ed25519KeyPair",
    "account_address",
    "node_id_from_pubkey",
    "valoper_address",
    "Keyring",
    "KeyRecord",
]
