# tests/conftest.py

"""
Configuração global de testes do projeto fogbed_stars
"""

import sys
from pathlib import Path

# Adiciona raiz do projeto ao PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def pytest_configure(config):
    """Configuração executada antes dos testes"""
    config.addinivalue_line(
        "markers", "asyncio: mark test as asynchronous"
    )
    config.addinivalue_line(
        "markers", "integration: mark test that runs the full testnet bootstrap"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as unit test"
    )
