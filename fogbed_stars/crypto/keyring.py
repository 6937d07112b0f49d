# fogbed_stars/crypto/keyring.py

"""
Keyring local de contas dos validadores

Backends:
- test:   JSON em texto puro em <home>/keyring-test (só para testnets)
- file:   JSON cifrado (argon2id + SecretBox) em <home>/keyring-file
- memory: nada em disco

O backend "os" do Cosmos SDK não é suportado.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import nacl.pwhash
import nacl.secret
import nacl.utils
from nacl.exceptions import CryptoError

from fogbed_stars.crypto.keys import (
    SECP256K1,
    account_address,
    address_bytes,
    b64,
    b64decode,
    derive_secp256k1,
    generate_mnemonic,
    sign_secp256k1,
)
from fogbed_stars.exceptions import KeyringError
from fogbed_stars.utils import SECRET_FILE_PERM, get_logger, write_file

logger = get_logger('keyring')

BACKEND_TEST = "test"
BACKEND_FILE = "file"
BACKEND_MEMORY = "memory"
BACKEND_OS = "os"
SUPPORTED_BACKENDS = (BACKEND_TEST, BACKEND_FILE, BACKEND_MEMORY)

KEYRING_PASSPHRASE_ENV = "STARS_KEYRING_PASSPHRASE"


@dataclass(frozen=True)
class KeyRecord:
    """Chave local guardada no keyring"""

    name: str
    algo: str
    address: str
    public_key: bytes
    private_key: bytes = field(repr=False)

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "type": "local",
            "algo": self.algo,
            "address": self.address,
            "pub_key": b64(self.public_key),
            "priv_key": self.private_key.hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "KeyRecord":
        return cls(
            name=data["name"],
            algo=data["algo"],
            address=data["address"],
            public_key=b64decode(data["pub_key"]),
            private_key=bytes.fromhex(data["priv_key"]),
        )


class Keyring:
    """
    Keyring de contas secp256k1

    Exemplos de uso:
        >>> kb = Keyring("test", "/tmp/out/node0/starsd")
        >>> address, mnemonic = kb.generate_save_coin_key("node0", overwrite=True)
        >>> signature, pubkey = kb.sign("node0", b"payload")
    """

    def __init__(
        self,
        backend: str,
        home_dir: Union[str, Path],
        prefix: str = "stars",
        passphrase: Optional[str] = None,
    ):
        if backend == BACKEND_OS:
            raise KeyringError("keyring backend 'os' is not supported; use test, file or memory")
        if backend not in SUPPORTED_BACKENDS:
            raise KeyringError(f"unknown keyring backend: {backend!r}")

        self.backend = backend
        self.prefix = prefix
        self.directory = Path(home_dir) / f"keyring-{backend}"
        self._memory: Dict[str, KeyRecord] = {}

        self._passphrase = None
        if backend == BACKEND_FILE:
            self._passphrase = passphrase or os.getenv(KEYRING_PASSPHRASE_ENV)
            if not self._passphrase:
                raise KeyringError(
                    f"keyring backend 'file' requires a passphrase (set {KEYRING_PASSPHRASE_ENV})"
                )

        logger.debug(f"Keyring opened: backend={backend}, dir={self.directory}")

    # ---------- Algoritmos ----------

    def supported_algorithms(self) -> List[str]:
        return [SECP256K1]

    def signing_algo_from_string(self, algo: str) -> str:
        """Valida o algoritmo pedido contra os suportados pelo keyring"""
        if algo not in self.supported_algorithms():
            raise KeyringError(f"provided algorithm {algo!r} is not supported")
        return algo

    # ---------- Chaves ----------

    def new_account(self, uid: str, mnemonic: str, algo: str = SECP256K1) -> KeyRecord:
        """Deriva a conta do mnemônico e persiste no keyring"""
        algo = self.signing_algo_from_string(algo)
        try:
            private_key, public_key = derive_secp256k1(mnemonic)
        except ValueError as e:
            raise KeyringError(f"cannot derive key {uid!r}: {e}") from e

        record = KeyRecord(
            name=uid,
            algo=algo,
            address=account_address(public_key, self.prefix),
            public_key=public_key,
            private_key=private_key,
        )
        self._save(record)
        logger.debug(f"✅ Key saved: {uid} -> {record.address}")
        return record

    def generate_save_coin_key(self, uid: str, overwrite: bool = False, algo: str = SECP256K1) -> Tuple[str, str]:
        """
        Gera mnemônico novo, persiste a chave e devolve (endereço, mnemônico)
        """
        if not overwrite and self.has(uid):
            raise KeyringError(f"key {uid!r} already exists")

        mnemonic = generate_mnemonic()
        record = self.new_account(uid, mnemonic, algo)
        return record.address, mnemonic

    def has(self, uid: str) -> bool:
        if self.backend == BACKEND_MEMORY:
            return uid in self._memory
        return self._info_path(uid).exists()

    def key(self, uid: str) -> KeyRecord:
        """Busca chave por nome"""
        if self.backend == BACKEND_MEMORY:
            record = self._memory.get(uid)
            if record is None:
                raise KeyringError(f"key {uid!r} not found")
            return record
        return self._load(uid)

    def list(self) -> List[KeyRecord]:
        if self.backend == BACKEND_MEMORY:
            return [self._memory[uid] for uid in sorted(self._memory)]
        if not self.directory.exists():
            return []
        return [self._load(p.stem) for p in sorted(self.directory.glob("*.info"))]

    def sign(self, uid: str, message: bytes) -> Tuple[bytes, bytes]:
        """Assina bytes com a chave `uid`; devolve (assinatura, pubkey)"""
        record = self.key(uid)
        return sign_secp256k1(record.private_key, message), record.public_key

    # ---------- Persistência ----------

    def _info_path(self, uid: str) -> Path:
        return self.directory / f"{uid}.info"

    def _save(self, record: KeyRecord) -> None:
        if self.backend == BACKEND_MEMORY:
            self._memory[record.name] = record
            return

        payload = json.dumps(record.to_dict()).encode()
        if self.backend == BACKEND_FILE:
            payload = self._encrypt(payload)

        try:
            self.directory.mkdir(parents=True, exist_ok=True, mode=0o700)
            write_file(self.directory, f"{record.name}.info", payload, SECRET_FILE_PERM)
            addr_hex = address_bytes(record.address, self.prefix).hex()
            write_file(self.directory, f"{addr_hex}.address", record.name, SECRET_FILE_PERM)
        except OSError as e:
            raise KeyringError(f"cannot persist key {record.name!r}: {e}") from e

    def _load(self, uid: str) -> KeyRecord:
        path = self._info_path(uid)
        try:
            payload = path.read_bytes()
        except FileNotFoundError:
            raise KeyringError(f"key {uid!r} not found")
        except OSError as e:
            raise KeyringError(f"cannot read key {uid!r}: {e}") from e

        if self.backend == BACKEND_FILE:
            payload = self._decrypt(payload)

        try:
            return KeyRecord.from_dict(json.loads(payload))
        except (ValueError, KeyError) as e:
            raise KeyringError(f"corrupted key record {uid!r}: {e}") from e

    def _box(self, salt: bytes) -> nacl.secret.SecretBox:
        key = nacl.pwhash.argon2id.kdf(
            nacl.secret.SecretBox.KEY_SIZE,
            self._passphrase.encode(),
            salt,
            opslimit=nacl.pwhash.argon2id.OPSLIMIT_INTERACTIVE,
            memlimit=nacl.pwhash.argon2id.MEMLIMIT_INTERACTIVE,
        )
        return nacl.secret.SecretBox(key)

    def _encrypt(self, plaintext: bytes) -> bytes:
        salt = nacl.utils.random(nacl.pwhash.argon2id.SALTBYTES)
        ciphertext = self._box(salt).encrypt(plaintext)
        return json.dumps({"salt": b64(salt), "ciphertext": b64(bytes(ciphertext))}).encode()

    def _decrypt(self, payload: bytes) -> bytes:
        try:
            envelope = json.loads(payload)
            salt = b64decode(envelope["salt"])
            return self._box(salt).decrypt(b64decode(envelope["ciphertext"]))
        except CryptoError:
            raise KeyringError("invalid keyring passphrase")
        except (ValueError, KeyError) as e:
            raise KeyringError(f"corrupted keyring entry: {e}") from e
