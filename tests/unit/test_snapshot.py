# tests/unit/test_snapshot.py

"""
Testes unitários do export de snapshot do Cosmos Hub
"""

import json
import os
import stat

import pytest

from fogbed_stars.exceptions import ConfigurationError, SnapshotError
from fogbed_stars.snapshot import EXCHANGES_ENV, HubSnapshotExporter, parse_exchanges

EXCHANGE = "cosmosvaloper1exchange"


@pytest.mark.unit
class TestParseExchanges:
    """Testes da lista de exchanges"""

    def test_parse(self):
        assert parse_exchanges(" a, b ,,c") == ["a", "b", "c"]

    @pytest.mark.parametrize("text", [None, "", " , "])
    def test_empty(self, text):
        """Testa lista vazia"""
        with pytest.raises(ConfigurationError):
            parse_exchanges(text)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv(EXCHANGES_ENV, EXCHANGE)
        assert HubSnapshotExporter.from_env().exchanges == {EXCHANGE}

    def test_from_env_missing(self, monkeypatch):
        monkeypatch.delenv(EXCHANGES_ENV, raising=False)
        with pytest.raises(ConfigurationError):
            HubSnapshotExporter.from_env()


@pytest.mark.unit
class TestHubSnapshotExporter:
    """Testes da elegibilidade"""

    def test_build(self, hub_genesis):
        """Testa stakers e delegators da Stargaze"""
        snapshot = HubSnapshotExporter([EXCHANGE]).build(hub_genesis)

        assert sorted(snapshot.accounts) == ["cosmos1alice", "cosmos1bob"]
        assert snapshot.accounts["cosmos1alice"].atom_staker
        assert snapshot.accounts["cosmos1alice"].stargaze_delegator
        assert snapshot.accounts["cosmos1bob"].atom_staker
        assert not snapshot.accounts["cosmos1bob"].stargaze_delegator
        assert snapshot.stakers == 2
        assert snapshot.delegators == 1

    def test_exchange_not_excluded(self, hub_genesis):
        """Testa que sem a exchange na lista carol vira staker"""
        snapshot = HubSnapshotExporter(["cosmosvaloper1nobody"]).build(hub_genesis)
        assert "cosmos1carol" in snapshot.accounts

    def test_unknown_validator(self, hub_genesis):
        """Testa delegação a validador inexistente"""
        hub_genesis["app_state"]["staking"]["delegations"].append({
            "delegator_address": "cosmos1eve",
            "validator_address": "cosmosvaloper1ghost",
            "shares": "1.0",
        })
        with pytest.raises(SnapshotError):
            HubSnapshotExporter([EXCHANGE]).build(hub_genesis)

    def test_no_staking(self):
        with pytest.raises(SnapshotError):
            HubSnapshotExporter([EXCHANGE]).build({"app_state": {}})

    def test_empty_exchanges(self):
        with pytest.raises(ConfigurationError):
            HubSnapshotExporter([])

    def test_export(self, hub_genesis, tmp_path):
        """Testa arquivo de saída (indentado, chaves ordenadas, 0600)"""
        genesis_path = tmp_path / "genesis.json"
        genesis_path.write_text(json.dumps(hub_genesis))
        output = tmp_path / "snapshot.json"

        HubSnapshotExporter([EXCHANGE]).export(genesis_path, output)

        text = output.read_text()
        assert stat.S_IMODE(os.stat(output).st_mode) == 0o600
        assert text.startswith('{\n    "accounts": {\n        "cosmos1alice"')
        data = json.loads(text)
        assert data["accounts"]["cosmos1bob"] == {
            "atom_address": "cosmos1bob",
            "atom_staker": True,
            "stargaze_delegator": False,
        }

    def test_export_invalid_json(self, tmp_path):
        genesis_path = tmp_path / "genesis.json"
        genesis_path.write_text("{not json")
        with pytest.raises(SnapshotError):
            HubSnapshotExporter([EXCHANGE]).export(genesis_path, tmp_path / "out.json")

    def test_export_missing_file(self, tmp_path):
        with pytest.raises(SnapshotError):
            HubSnapshotExporter([EXCHANGE]).export(tmp_path / "nope.json", tmp_path / "out.json")
