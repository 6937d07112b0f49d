# tests/integration/test_testnet_end_to_end.py

"""
Testes de integração do comando testnet

Roda o coordenador completo em diretório temporário (sem Docker).
"""

import json
from pathlib import Path

import pytest
import toml
import yaml

from fogbed_stars.config import TestnetConfig
from fogbed_stars.crypto.keyring import KEYRING_PASSPHRASE_ENV
from fogbed_stars.exceptions import CollectionError, ConfigurationError, TestnetError
from fogbed_stars.gentx import verify_gentx_signature
from fogbed_stars.testnet import TestnetCoordinator, TestnetPhase, init_testnet


def _genesis(path: Path):
    return json.loads(path.read_text())


def _without_key_material(doc):
    """Remove campos que dependem das chaves geradas e do horário"""
    doc = json.loads(json.dumps(doc))
    doc.pop("genesis_time")
    app_state = doc["app_state"]
    app_state["auth"].pop("accounts")
    app_state["bank"].pop("balances")
    app_state["genutil"].pop("gen_txs")
    return doc


@pytest.mark.integration
class TestTestnetEndToEnd:
    """Bootstrap completo para N validadores"""

    @pytest.mark.parametrize("n", [1, 2, 3])
    def test_layout(self, make_config, fixed_clock, n):
        """Testa N diretórios de nó e N gentxs"""
        config = make_config(num_validators=n)
        result = init_testnet(config, clock=fixed_clock)
        root = Path(config.output_dir)

        node_dirs = sorted(p.name for p in root.iterdir() if p.name.startswith("node"))
        assert node_dirs == [f"node{i}" for i in range(n)]
        assert len(list((root / "gentxs").glob("*.json"))) == n
        assert len(result.genesis_files) == n

        for i in range(n):
            home = root / f"node{i}" / "starsd"
            for rel in ("config/genesis.json", "config/config.toml", "config/app.toml",
                        "config/node_key.json", "config/priv_validator_key.json",
                        "data/priv_validator_state.json", "key_seed.json", "keyring-test"):
                assert (home / rel).exists(), rel

    @pytest.mark.parametrize("n", [1, 2, 3])
    def test_identical_genesis(self, make_config, fixed_clock, n):
        """Testa genesis byte a byte idêntico em todos os nós"""
        config = make_config(num_validators=n)
        result = init_testnet(config, clock=fixed_clock)

        contents = {path.read_bytes() for path in result.genesis_files}
        assert len(contents) == 1

        doc = json.loads(contents.pop())
        assert doc["genesis_time"] == "2022-03-15T08:00:00Z"
        assert len(doc["app_state"]["genutil"]["gen_txs"]) == n
        assert "validators" not in doc
        for tx in doc["app_state"]["genutil"]["gen_txs"]:
            assert verify_gentx_signature(tx, config.chain_id)

    def test_canonical_is_node0_candidate(self, make_config, fixed_clock):
        """Testa que o estado final é o candidato do nó 0"""
        coordinator = TestnetCoordinator(make_config(num_validators=3), clock=fixed_clock)
        captured = []
        compute = coordinator.collector.compute_candidates

        def spy(identities):
            candidates = compute(identities)
            captured.extend(candidates)
            return candidates

        coordinator.collector.compute_candidates = spy
        result = coordinator.run()

        assert len(captured) == 3
        assert _genesis(result.genesis_files[2])["app_state"] == json.loads(captured[0])

    def test_network_overrides(self, make_config, fixed_clock):
        """Testa unbonding 72h e denom ustarx em todos os genesis"""
        result = init_testnet(make_config(num_validators=2), clock=fixed_clock)

        for path in result.genesis_files:
            app_state = _genesis(path)["app_state"]
            assert app_state["staking"]["params"]["unbonding_time"] == "259200s"
            assert app_state["staking"]["params"]["bond_denom"] == "ustarx"
            assert app_state["crisis"]["constant_fee"]["denom"] == "ustarx"
            assert app_state["mint"]["params"]["mint_denom"] == "ustarx"
            assert app_state["claim"]["params"]["claim_denom"] == "ustarx"
            assert app_state["slashing"]["params"]["signed_blocks_window"] == "100"

    def test_persistent_peers(self, make_config, fixed_clock):
        """Testa persistent peers de cada nó"""
        result = init_testnet(make_config(num_validators=3), clock=fixed_clock)

        for identity in result.identities:
            config = toml.load(identity.home / "config" / "config.toml")
            expected = sorted(i.memo for i in result.identities if i.index != identity.index)
            assert config["p2p"]["persistent_peers"] == ",".join(expected)

    def test_descriptor(self, make_config, fixed_clock):
        """Testa 2 nós com tag v1 e portas sem sobreposição"""
        result = init_testnet(make_config(num_validators=2, docker_tag="v1"), clock=fixed_clock)
        compose = yaml.safe_load(result.descriptor_path.read_text())

        services = compose["services"]
        assert list(services) == ["node0", "node1"]
        assert all(s["image"].endswith(":v1") for s in services.values())

        ports = [p for node in result.nodes for p in node.host_ports()]
        assert ports == sorted(ports)
        assert len(ports) == len(set(ports))

    def test_reproducible_runs(self, make_config, fixed_clock):
        """Testa que duas execuções só diferem em chaves e horário"""
        first = init_testnet(make_config("run1"), clock=fixed_clock)
        second = init_testnet(make_config("run2"), clock=fixed_clock)

        a = _genesis(first.genesis_files[0])
        b = _genesis(second.genesis_files[0])
        assert _without_key_material(a) == _without_key_material(b)
        assert a["app_state"]["auth"]["accounts"] != b["app_state"]["auth"]["accounts"]

        # Relógio fixo: start_time do mint e genesis_time coincidem
        assert a["genesis_time"] == b["genesis_time"]
        assert a["app_state"]["mint"]["params"]["start_time"] == a["genesis_time"]

    def test_rerun_with_fewer_validators(self, make_config, fixed_clock):
        """Testa nova execução no mesmo diretório com menos validadores"""
        init_testnet(make_config(num_validators=3), clock=fixed_clock)
        result = init_testnet(make_config(num_validators=2), clock=fixed_clock)

        gentxs_dir = result.output_dir / "gentxs"
        assert sorted(p.name for p in gentxs_dir.iterdir()) == ["node0.json", "node1.json"]

        for path in result.genesis_files:
            gen_txs = _genesis(path)["app_state"]["genutil"]["gen_txs"]
            assert [tx["body"]["memo"] for tx in gen_txs] == [i.memo for i in result.identities]

    def test_phase_history(self, make_config, fixed_clock):
        """Testa sequência de fases do coordenador"""
        coordinator = TestnetCoordinator(make_config(num_validators=2), clock=fixed_clock)
        coordinator.run()

        phases = [phase for phase, _ in coordinator.history]
        assert phases == [
            TestnetPhase.INIT,
            TestnetPhase.PROVISION, TestnetPhase.PROVISION,
            TestnetPhase.COMPOSE_TEMPLATE,
            TestnetPhase.MATERIALIZE, TestnetPhase.MATERIALIZE,
            TestnetPhase.COLLECT,
            TestnetPhase.RENDER_DEPLOYMENT,
            TestnetPhase.DONE,
        ]

    def test_file_keyring(self, make_config, fixed_clock, monkeypatch):
        """Testa backend file com passphrase via ambiente"""
        monkeypatch.setenv(KEYRING_PASSPHRASE_ENV, "integration")
        result = init_testnet(make_config(num_validators=1, keyring_backend="file"), clock=fixed_clock)

        assert (result.identities[0].home / "keyring-file" / "node0.info").exists()


@pytest.mark.integration
class TestTestnetAbort:
    """Falhas e limpeza da saída parcial"""

    def test_invalid_duration_before_side_effects(self, tmp_path):
        """Testa "72x" sem criar diretório"""
        output = tmp_path / "out"
        with pytest.raises(ConfigurationError):
            TestnetConfig(num_validators=1, output_dir=str(output), unbonding_period="72x")
        assert not output.exists()

    def _failing_coordinator(self, config, fixed_clock):
        coordinator = TestnetCoordinator(config, clock=fixed_clock)

        def fail(identities):
            raise CollectionError("replay failed")

        coordinator.collector.compute_candidates = fail
        return coordinator

    def test_abort_removes_output(self, make_config, fixed_clock):
        """Testa remoção do diretório criado pela execução"""
        config = make_config(num_validators=2)
        coordinator = self._failing_coordinator(config, fixed_clock)

        with pytest.raises(TestnetError):
            coordinator.run()

        assert coordinator.phase is TestnetPhase.ABORT
        assert not Path(config.output_dir).exists()

    def test_unexpected_error_aborts(self, make_config, fixed_clock):
        """Testa erro fora da hierarquia TestnetError durante a coleta"""
        config = make_config(num_validators=2)
        coordinator = TestnetCoordinator(config, clock=fixed_clock)

        def broken(identities):
            raise AttributeError("'list' object has no attribute 'get'")

        coordinator.collector.compute_candidates = broken

        with pytest.raises(TestnetError, match="collect"):
            coordinator.run()

        assert coordinator.phase is TestnetPhase.ABORT
        assert not Path(config.output_dir).exists()

    def test_malformed_gentx_aborts(self, make_config, fixed_clock):
        """Testa gentx sobrescrito com JSON que não é objeto"""
        config = make_config(num_validators=2)
        coordinator = TestnetCoordinator(config, clock=fixed_clock)
        compute = coordinator.collector.compute_candidates

        def corrupt_then_compute(identities):
            (config.gentxs_dir / "node1.json").write_text("[1, 2]")
            return compute(identities)

        coordinator.collector.compute_candidates = corrupt_then_compute

        with pytest.raises(CollectionError, match="node1.json"):
            coordinator.run()

        assert coordinator.phase is TestnetPhase.ABORT
        assert not Path(config.output_dir).exists()

    def test_abort_keeps_preexisting_entries(self, make_config, fixed_clock):
        config = make_config(num_validators=1)
        root = Path(config.output_dir)
        root.mkdir()
        (root / "notes.txt").write_text("keep me")

        with pytest.raises(TestnetError):
            self._failing_coordinator(config, fixed_clock).run()

        assert [p.name for p in root.iterdir()] == ["notes.txt"]

    def test_keep_on_failure(self, make_config, fixed_clock):
        """Testa saída parcial mantida com keep_on_failure"""
        config = make_config(num_validators=2, keep_on_failure=True)

        with pytest.raises(TestnetError):
            self._failing_coordinator(config, fixed_clock).run()

        assert (Path(config.output_dir) / "gentxs" / "node1.json").exists()

    def test_output_is_file(self, make_config, fixed_clock, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")

        with pytest.raises(TestnetError):
            init_testnet(make_config("blocker", num_validators=1), clock=fixed_clock)
        assert blocker.read_text() == "x"
