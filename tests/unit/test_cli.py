# tests/unit/test_cli.py

"""
Testes unitários da CLI
"""

import json
import logging
from pathlib import Path

import pytest

from fogbed_stars.cli import build_parser, main
from fogbed_stars.snapshot import EXCHANGES_ENV


@pytest.fixture(autouse=True)
def reset_logging():
    """main() instala handlers no stdout capturado; remove ao final"""
    yield
    logging.getLogger("fogbed_stars").handlers.clear()


@pytest.mark.unit
class TestCli:
    """Testes dos comandos"""

    def test_no_command(self, capsys):
        assert main([]) == 1

    def test_testnet_success(self, tmp_path, capsys):
        """Testa mensagem de sucesso em stderr e código 0"""
        output = tmp_path / "net"
        code = main(["--log-level", "WARNING", "testnet", "--v", "2", "-o", str(output), "--chain-id", "stars-cli-1"])

        assert code == 0
        assert "Successfully initialized 2 node directories" in capsys.readouterr().err
        assert (output / "docker-compose.yml").exists()
        assert sorted(p.name for p in (output / "gentxs").iterdir()) == ["node0.json", "node1.json"]

    def test_testnet_invalid_count(self, tmp_path, capsys):
        """Testa erro de configuração sem criar diretório"""
        output = tmp_path / "net"
        code = main(["--log-level", "CRITICAL", "testnet", "--v", "0", "-o", str(output)])

        assert code == 1
        assert capsys.readouterr().err.startswith("Error:")
        assert not output.exists()

    def test_testnet_os_keyring(self, tmp_path, capsys):
        """Testa backend os rejeitado e saída removida"""
        output = tmp_path / "net"
        code = main(["--log-level", "CRITICAL", "testnet", "--v", "1", "-o", str(output),
                     "--keyring-backend", "os"])

        assert code == 1
        assert "not supported" in capsys.readouterr().err
        assert not output.exists()

    def test_export_hub_snapshot(self, tmp_path, hub_genesis, monkeypatch):
        """Testa export com exchanges via variável de ambiente"""
        monkeypatch.setenv(EXCHANGES_ENV, "cosmosvaloper1exchange")
        genesis = tmp_path / "genesis.json"
        genesis.write_text(json.dumps(hub_genesis))
        output = tmp_path / "snapshot.json"

        assert main(["--log-level", "WARNING", "export-hub-snapshot", str(genesis), str(output)]) == 0
        assert set(json.loads(output.read_text())["accounts"]) == {"cosmos1alice", "cosmos1bob"}

    def test_export_hub_snapshot_without_exchanges(self, tmp_path, monkeypatch, capsys):
        monkeypatch.delenv(EXCHANGES_ENV, raising=False)
        code = main(["--log-level", "CRITICAL", "export-hub-snapshot", str(tmp_path / "g.json"), str(tmp_path / "s.json")])

        assert code == 1
        assert "exchange" in capsys.readouterr().err

    def test_parser_defaults(self):
        """Testa defaults das flags do testnet"""
        args = build_parser().parse_args(["testnet"])

        assert args.v == 4
        assert args.output_dir == "./mytestnet"
        assert args.keyring_backend == "test"
        assert args.unbonding_period == "72h"
        assert args.starting_port == 26656
        assert Path(args.output_dir).name == "mytestnet"
