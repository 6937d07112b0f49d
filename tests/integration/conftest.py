# tests/integration/conftest.py

"""
Fixtures para testes de integração (bootstrap completo em disco)
"""

from datetime import datetime, timezone

import pytest

from fogbed_stars.config import TestnetConfig


@pytest.fixture
def fixed_clock():
    moment = datetime(2022, 3, 15, 8, 0, 0, tzinfo=timezone.utc)
    return lambda: moment


@pytest.fixture
def make_config(tmp_path):
    """Factory de TestnetConfig com saída em tmp_path/<nome>"""
    def _make(dirname: str = "mytestnet", **overrides) -> TestnetConfig:
        params = dict(
            num_validators=2,
            output_dir=str(tmp_path / dirname),
            chain_id="stars-it-1",
        )
        params.update(overrides)
        return TestnetConfig(**params)
    return _make
