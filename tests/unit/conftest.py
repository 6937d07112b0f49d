# tests/unit/conftest.py

"""
Fixtures para testes unitários do fogbed_stars
"""

from datetime import datetime, timezone
from typing import Any, Dict

import pytest

from fogbed_stars.config import TestnetConfig
from fogbed_stars.crypto.keyring import Keyring
from fogbed_stars.crypto.keys import Ed25519KeyPair, node_id_from_pubkey
from fogbed_stars.models import NodeIdentity


@pytest.fixture
def fixed_moment():
    """Instante fixo usado como relógio"""
    return datetime(2021, 10, 1, 12, 30, 0, 250000, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock(fixed_moment):
    return lambda: fixed_moment


@pytest.fixture
def make_config(tmp_path):
    """Factory de TestnetConfig com saída em tmp_path"""
    def _make(**overrides) -> TestnetConfig:
        params = dict(
            num_validators=2,
            output_dir=str(tmp_path / "mytestnet"),
            chain_id="stars-test-1",
        )
        params.update(overrides)
        return TestnetConfig(**params)
    return _make


@pytest.fixture
def memory_keyring(tmp_path):
    """Keyring em memória (nada em disco)"""
    return Keyring("memory", tmp_path)


@pytest.fixture
def make_identity(memory_keyring, tmp_path):
    """Factory de NodeIdentity com chave no keyring em memória"""
    def _make(index: int = 0) -> NodeIdentity:
        name = f"node{index}"
        address, mnemonic = memory_keyring.generate_save_coin_key(name, overwrite=True)
        node_key = Ed25519KeyPair.generate()
        validator_key = Ed25519KeyPair.generate()
        return NodeIdentity(
            index=index,
            name=name,
            home=tmp_path / "mytestnet" / name / "starsd",
            node_id=node_id_from_pubkey(node_key.public_key),
            consensus_pubkey=validator_key.public_key,
            address=address,
            mnemonic=mnemonic,
        )
    return _make


@pytest.fixture
def mock_rpc_endpoint():
    """Endpoint RPC de teste"""
    return "http://localhost:26657"


@pytest.fixture
def mock_rpc_response():
    """Factory para criar resposta RPC mockada"""
    def _mock_response(result: Any) -> Dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": 1,
            "result": result
        }
    return _mock_response


@pytest.fixture
def mock_rpc_error():
    """Factory para criar erro RPC mockado"""
    def _mock_error(code: int, message: str, data: Any = None) -> Dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": 1,
            "error": {
                "code": code,
                "message": message,
                "data": data
            }
        }
    return _mock_error


@pytest.fixture
def hub_genesis():
    """Export mínimo de genesis do Cosmos Hub com staking"""
    return {
        "app_state": {
            "staking": {
                "validators": [
                    {
                        "operator_address": "cosmosvaloper1et77usu8q2hargvyusl4qzryev8x8t9wwqkxfs",
                        "tokens": "2000000000",
                        "delegator_shares": "2000000000.000000000000000000",
                    },
                    {
                        "operator_address": "cosmosvaloper1other",
                        "tokens": "1000000000",
                        "delegator_shares": "2000000000.000000000000000000",
                    },
                    {
                        "operator_address": "cosmosvaloper1exchange",
                        "tokens": "1000000000",
                        "delegator_shares": "1000000000.000000000000000000",
                    },
                ],
                "delegations": [
                    {
                        "delegator_address": "cosmos1alice",
                        "validator_address": "cosmosvaloper1et77usu8q2hargvyusl4qzryev8x8t9wwqkxfs",
                        "shares": "6000000.000000000000000000",
                    },
                    {
                        "delegator_address": "cosmos1bob",
                        "validator_address": "cosmosvaloper1other",
                        "shares": "6000000.000000000000000000",
                    },
                    {
                        "delegator_address": "cosmos1bob",
                        "validator_address": "cosmosvaloper1other",
                        "shares": "6000000.000000000000000000",
                    },
                    {
                        "delegator_address": "cosmos1carol",
                        "validator_address": "cosmosvaloper1exchange",
                        "shares": "100000000.000000000000000000",
                    },
                    {
                        "delegator_address": "cosmos1dave",
                        "validator_address": "cosmosvaloper1other",
                        "shares": "2000000.000000000000000000",
                    },
                ],
            }
        }
    }
