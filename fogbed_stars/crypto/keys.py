# fogbed_stars/crypto/keys.py

"""
Primitivas de chave usadas no bootstrap

- ed25519 (PyNaCl): chave de nó (node ID) e chave de consenso do validador
- secp256k1 (bip_utils + ecdsa): contas derivadas de mnemônico BIP-39,
  caminho BIP-44 do Cosmos (m/44'/118'/0'/0/0), endereços bech32
"""

import base64
import hashlib
from dataclasses import dataclass
from typing import Tuple

import nacl.signing
from bip_utils import (
    AtomAddrEncoder,
    Bech32ChecksumError,
    Bech32Decoder,
    Bech32Encoder,
    Bip39MnemonicGenerator,
    Bip39MnemonicValidator,
    Bip39SeedGenerator,
    Bip39WordsNum,
    Bip44,
    Bip44Changes,
    Bip44Coins,
)
from ecdsa import BadSignatureError, SECP256k1, SigningKey, VerifyingKey
from ecdsa.errors import MalformedPointError
from ecdsa.util import MalformedSignature, sigdecode_string, sigencode_string_canonize

SECP256K1 = "secp256k1"
ED25519 = "ed25519"

ED25519_PUBKEY_TYPE = "/cosmos.crypto.ed25519.PubKey"
SECP256K1_PUBKEY_TYPE = "/cosmos.crypto.secp256k1.PubKey"
TM_ED25519_PUBKEY_TYPE = "tendermint/PubKeyEd25519"
TM_ED25519_PRIVKEY_TYPE = "tendermint/PrivKeyEd25519"


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(text: str) -> bytes:
    return base64.b64decode(text.encode("ascii"), validate=True)


# ==================== ed25519 ====================

@dataclass(frozen=True)
class Ed25519KeyPair:
    """Par de chaves ed25519 no layout do Tendermint"""

    seed: bytes  # 32 bytes

    @classmethod
    def generate(cls) -> "Ed25519KeyPair":
        return cls(seed=bytes(nacl.signing.SigningKey.generate()))

    @classmethod
    def from_tendermint(cls, priv_key_b64: str) -> "Ed25519KeyPair":
        """Carrega a partir do valor "priv_key" (seed || pubkey, 64 bytes)"""
        raw = b64decode(priv_key_b64)
        if len(raw) != 64:
            raise ValueError(f"invalid ed25519 private key length: {len(raw)}")
        pair = cls(seed=raw[:32])
        if pair.public_key != raw[32:]:
            raise ValueError("ed25519 private key does not match its public key")
        return pair

    @property
    def public_key(self) -> bytes:
        return bytes(nacl.signing.SigningKey(self.seed).verify_key)

    @property
    def address(self) -> bytes:
        """Endereço Tendermint: primeiros 20 bytes do SHA-256 da pubkey"""
        return tendermint_address(self.public_key)

    def tendermint_priv_key(self) -> str:
        return b64(self.seed + self.public_key)


def tendermint_address(public_key: bytes) -> bytes:
    return hashlib.sha256(public_key).digest()[:20]


def node_id_from_pubkey(public_key: bytes) -> str:
    """Node ID do Tendermint (hex minúsculo do endereço da chave de nó)"""
    return tendermint_address(public_key).hex()


# ==================== secp256k1 / HD ====================

def generate_mnemonic() -> str:
    """Mnemônico BIP-39 de 24 palavras (256 bits de entropia)"""
    return Bip39MnemonicGenerator().FromWordsNumber(Bip39WordsNum.WORDS_NUM_24).ToStr()


def is_valid_mnemonic(mnemonic: str) -> bool:
    return Bip39MnemonicValidator().IsValid(mnemonic)


def derive_secp256k1(mnemonic: str, bip39_passphrase: str = "", account: int = 0, index: int = 0) -> Tuple[bytes, bytes]:
    """
    Deriva (privkey, pubkey comprimida) pelo caminho m/44'/118'/account'/0/index

    Raises:
        ValueError: mnemônico inválido
    """
    if not is_valid_mnemonic(mnemonic):
        raise ValueError("invalid mnemonic")

    seed = Bip39SeedGenerator(mnemonic).Generate(bip39_passphrase)
    node = (
        Bip44.FromSeed(seed, Bip44Coins.COSMOS)
        .Purpose()
        .Coin()
        .Account(account)
        .Change(Bip44Changes.CHAIN_EXT)
        .AddressIndex(index)
    )
    return node.PrivateKey().Raw().ToBytes(), node.PublicKey().RawCompressed().ToBytes()


def sign_secp256k1(private_key: bytes, message: bytes) -> bytes:
    """Assinatura determinística (RFC 6979) r||s de 64 bytes com s baixo"""
    sk = SigningKey.from_string(private_key, curve=SECP256k1, hashfunc=hashlib.sha256)
    return sk.sign_deterministic(message, hashfunc=hashlib.sha256, sigencode=sigencode_string_canonize)


def verify_secp256k1(public_key: bytes, message: bytes, signature: bytes) -> bool:
    try:
        vk = VerifyingKey.from_string(public_key, curve=SECP256k1, hashfunc=hashlib.sha256)
        return vk.verify(signature, message, hashfunc=hashlib.sha256, sigdecode=sigdecode_string)
    except (BadSignatureError, MalformedPointError, MalformedSignature, ValueError):
        return False


# ==================== Endereços bech32 ====================

def account_address(public_key: bytes, prefix: str = "stars") -> str:
    """Endereço de conta: bech32(prefix, RIPEMD160(SHA256(pubkey)))"""
    return AtomAddrEncoder.EncodeKey(public_key, hrp=prefix)


def address_bytes(address: str, prefix: str) -> bytes:
    """
    Decodifica endereço bech32 exigindo o prefixo informado

    Raises:
        ValueError: endereço inválido ou prefixo diferente
    """
    try:
        return bytes(Bech32Decoder.Decode(prefix, address))
    except (Bech32ChecksumError, ValueError) as e:
        raise ValueError(f"invalid bech32 address {address!r}: {e}") from e


def valoper_address(account: str, prefix: str = "stars") -> str:
    """Converte endereço de conta no endereço de operador (prefixo + valoper)"""
    return Bech32Encoder.Encode(f"{prefix}valoper", address_bytes(account, prefix))
