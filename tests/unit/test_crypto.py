# tests/unit/test_crypto.py

"""
Testes unitários de chaves (ed25519 / secp256k1) e do keyring
"""

import base64
import json
import os
import stat

import pytest

from fogbed_stars.crypto.keyring import KEYRING_PASSPHRASE_ENV, Keyring
from fogbed_stars.crypto.keys import (
    Ed25519KeyPair,
    account_address,
    address_bytes,
    derive_secp256k1,
    generate_mnemonic,
    is_valid_mnemonic,
    node_id_from_pubkey,
    sign_secp256k1,
    valoper_address,
    verify_secp256k1,
)
from fogbed_stars.exceptions import KeyringError, ProvisioningError

ABANDON_MNEMONIC = " ".join(["abandon"] * 11 + ["about"])


@pytest.mark.unit
class TestEd25519:
    """Testes das chaves de nó/consenso"""

    def test_tendermint_roundtrip(self):
        """Testa carga a partir do formato priv_key do Tendermint"""
        pair = Ed25519KeyPair.generate()
        loaded = Ed25519KeyPair.from_tendermint(pair.tendermint_priv_key())

        assert loaded.public_key == pair.public_key
        assert len(pair.address) == 20

    def test_tampered_private_key_rejected(self):
        """Testa que seed e pubkey precisam bater"""
        pair = Ed25519KeyPair.generate()
        other = Ed25519KeyPair.generate()
        raw = base64.b64encode(pair.seed + other.public_key).decode()

        with pytest.raises(ValueError):
            Ed25519KeyPair.from_tendermint(raw)

    def test_node_id_is_lowercase_hex(self):
        """Testa formato do node ID"""
        node_id = node_id_from_pubkey(Ed25519KeyPair.generate().public_key)
        assert len(node_id) == 40
        assert node_id == node_id.lower()
        int(node_id, 16)


@pytest.mark.unit
class TestSecp256k1:
    """Testes das contas derivadas de mnemônico"""

    def test_generated_mnemonic_has_24_words(self):
        """Testa mnemônico de 24 palavras"""
        mnemonic = generate_mnemonic()
        assert len(mnemonic.split()) == 24
        assert is_valid_mnemonic(mnemonic)

    def test_derivation_is_deterministic(self):
        """Testa que o mesmo mnemônico gera a mesma conta"""
        priv1, pub1 = derive_secp256k1(ABANDON_MNEMONIC)
        priv2, pub2 = derive_secp256k1(ABANDON_MNEMONIC)

        assert priv1 == priv2
        assert pub1 == pub2
        assert len(pub1) == 33

    def test_invalid_mnemonic(self):
        """Testa mnemônico inválido"""
        with pytest.raises(ValueError):
            derive_secp256k1("not a valid mnemonic at all")

    def test_addresses(self):
        """Testa endereços de conta e de operador"""
        _, pub = derive_secp256k1(ABANDON_MNEMONIC)
        address = account_address(pub, "stars")
        valoper = valoper_address(address, "stars")

        assert address.startswith("stars1")
        assert valoper.startswith("starsvaloper1")
        assert address_bytes(address, "stars") == address_bytes(valoper, "starsvaloper")

    def test_address_wrong_prefix(self):
        """Testa decodificação com prefixo errado"""
        _, pub = derive_secp256k1(ABANDON_MNEMONIC)
        with pytest.raises(ValueError):
            address_bytes(account_address(pub, "stars"), "cosmos")

    def test_sign_and_verify(self):
        """Testa assinatura determinística"""
        priv, pub = derive_secp256k1(ABANDON_MNEMONIC)
        sig1 = sign_secp256k1(priv, b"payload")
        sig2 = sign_secp256k1(priv, b"payload")

        assert sig1 == sig2
        assert len(sig1) == 64
        assert verify_secp256k1(pub, b"payload", sig1)
        assert not verify_secp256k1(pub, b"other", sig1)
        assert not verify_secp256k1(pub, b"payload", b"\x00" * 64)


@pytest.mark.unit
class TestKeyring:
    """Testes do keyring local"""

    def test_os_backend_unsupported(self, tmp_path):
        """Testa rejeição do backend os"""
        with pytest.raises(KeyringError):
            Keyring("os", tmp_path)

    def test_unknown_backend(self, tmp_path):
        """Testa backend desconhecido"""
        with pytest.raises(ProvisioningError):
            Keyring("kwallet", tmp_path)

    def test_unsupported_algorithm(self, tmp_path):
        """Testa algoritmo não suportado"""
        kb = Keyring("test", tmp_path)
        assert kb.supported_algorithms() == ["secp256k1"]
        with pytest.raises(KeyringError):
            kb.signing_algo_from_string("ed25519")

    def test_test_backend_persists_keys(self, tmp_path):
        """Testa persistência em keyring-test"""
        kb = Keyring("test", tmp_path)
        address, mnemonic = kb.generate_save_coin_key("node0")

        info = tmp_path / "keyring-test" / "node0.info"
        assert info.exists()
        assert stat.S_IMODE(os.stat(info).st_mode) == 0o600
        assert json.loads(info.read_text())["address"] == address
        assert len(list((tmp_path / "keyring-test").glob("*.address"))) == 1

        reopened = Keyring("test", tmp_path)
        assert reopened.has("node0")
        assert reopened.key("node0").address == address
        assert [r.name for r in reopened.list()] == ["node0"]

    def test_existing_key_without_overwrite(self, tmp_path):
        """Testa que chave existente não é sobrescrita sem overwrite"""
        kb = Keyring("memory", tmp_path)
        kb.generate_save_coin_key("node0")
        with pytest.raises(KeyringError):
            kb.generate_save_coin_key("node0")
        kb.generate_save_coin_key("node0", overwrite=True)

    def test_sign_with_missing_key(self, tmp_path):
        """Testa assinatura com chave inexistente"""
        kb = Keyring("memory", tmp_path)
        with pytest.raises(KeyringError):
            kb.sign("ghost", b"payload")

    def test_sign_matches_address(self, memory_keyring):
        """Testa que a pubkey devolvida deriva o endereço"""
        address, _ = memory_keyring.generate_save_coin_key("node0")
        signature, pubkey = memory_keyring.sign("node0", b"payload")

        assert account_address(pubkey, "stars") == address
        assert verify_secp256k1(pubkey, b"payload", signature)

    def test_file_backend_requires_passphrase(self, tmp_path, monkeypatch):
        """Testa backend file sem passphrase"""
        monkeypatch.delenv(KEYRING_PASSPHRASE_ENV, raising=False)
        with pytest.raises(KeyringError):
            Keyring("file", tmp_path)

    def test_file_backend_encrypts(self, tmp_path, monkeypatch):
        """Testa cifragem do backend file"""
        monkeypatch.setenv(KEYRING_PASSPHRASE_ENV, "correct horse")
        kb = Keyring("file", tmp_path)
        address, mnemonic = kb.generate_save_coin_key("node0")

        raw = (tmp_path / "keyring-file" / "node0.info").read_text()
        assert address not in raw
        assert Keyring("file", tmp_path).key("node0").address == address

        with pytest.raises(KeyringError):
            Keyring("file", tmp_path, passphrase="wrong").key("node0")
