# fogbed_stars/exceptions.py

"""
Exceções do bootstrap de testnet

Toda falha do comando sobe como uma única exceção derivada de TestnetError,
tratada uma vez na borda da CLI.
"""


class TestnetError(Exception):
    """Erro genérico do bootstrap de testnet"""
    pass


class ConfigurationError(TestnetError):
    """Flag/valor de configuração inválido (duração, coins, chain-id...)"""
    pass


class ProvisioningError(TestnetError):
    """Falha ao criar diretórios, chaves de nó ou chaves no keyring"""
    pass


class KeyringError(ProvisioningError):
    """Erro do keyring local (backend, algoritmo, chave inexistente)"""
    pass


class SigningError(TestnetError):
    """Falha ao montar ou assinar a gentx de um validador"""
    pass


class CollectionError(TestnetError):
    """Falha ao coletar gentxs e gerar o genesis final"""
    pass


class TemplatingError(TestnetError):
    """Falha ao renderizar o descriptor de deploy"""
    pass


class SnapshotError(TestnetError):
    """Export de chain malformado para o snapshot"""
    pass
