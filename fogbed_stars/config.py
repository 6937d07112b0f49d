# fogbed_stars/config.py

"""
Configuração imutável do comando testnet

Substitui o estado global de flags por um único valor validado antes de
qualquer efeito colateral em disco.
"""

import os
import re
import secrets
import string
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Tuple

from fogbed_stars.exceptions import ConfigurationError
from fogbed_stars.utils import (
    get_logger,
    validate_chain_id,
    validate_denom,
    validate_ip,
    validate_node_name,
    validate_port,
)

logger = get_logger("config")

DEFAULT_BOND_DENOM = "ustarx"
DEFAULT_IMAGE_REPOSITORY = os.getenv("STARS_DOCKER_IMAGE", "publicawesome/stargaze")

# Portas internas fixas do starsd
P2P_PORT = 26656
RPC_PORT = 26657
API_PORT = 1317
GRPC_PORT = 9090

# Cada nó ocupa um bloco de 5 portas no host: 3 P2P/RPC, 1 API, 1 gRPC
PORTS_PER_NODE = 5

_COIN_RE = re.compile(r"^([0-9]+(?:\.[0-9]+)?)\s*([a-zA-Z][a-zA-Z0-9/:._-]{2,127})$")

_DURATION_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_DURATION_RE = re.compile(r"(\d*\.?\d*)(ns|us|µs|μs|ms|s|m|h)")


@dataclass(frozen=True, order=True)
class Coin:
    """Coin (denom + quantidade inteira)"""

    denom: str
    amount: int

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"

    def to_dict(self) -> Dict[str, str]:
        return {"denom": self.denom, "amount": str(self.amount)}


def parse_coins(text: str) -> List[Coin]:
    """
    Converte "1000ustarx,5stake" em coins ordenadas por denom

    Quantidades decimais são aceitas apenas quando inteiras ("10.0stake");
    coins com quantidade zero são descartadas.
    """
    coins: Dict[str, Coin] = {}
    for raw in (text or "").split(","):
        raw = raw.strip()
        if not raw:
            continue
        match = _COIN_RE.match(raw)
        if not match:
            raise ConfigurationError(f"invalid coin expression: {raw!r}")

        amount_text, denom = match.groups()
        amount = Decimal(amount_text)
        if amount != amount.to_integral_value():
            raise ConfigurationError(f"coin amount must be an integer: {raw!r}")
        if denom in coins:
            raise ConfigurationError(f"duplicate denomination {denom} in {text!r}")
        if amount > 0:
            coins[denom] = Coin(denom=denom, amount=int(amount))

    return sorted(coins.values())


def parse_dec_coins(text: str) -> List[Tuple[str, Decimal]]:
    """Valida preços mínimos de gas ("0.000006ustarx,0.01stake")"""
    prices = []
    for raw in (text or "").split(","):
        raw = raw.strip()
        if not raw:
            continue
        match = _COIN_RE.match(raw)
        if not match:
            raise ConfigurationError(f"invalid decimal coin expression: {raw!r}")
        prices.append((match.group(2), Decimal(match.group(1))))
    return prices


def parse_duration(text: str) -> int:
    """
    Converte uma duração no formato Go ("72h", "1h30m", "1.5s") em nanossegundos

    Raises:
        ConfigurationError: string malformada
    """
    original = text
    if text is None:
        raise ConfigurationError("missing duration")

    text = text.strip()
    sign = 1
    if text[:1] in ("-", "+"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    if text == "0":
        return 0
    if not text:
        raise ConfigurationError(f"invalid duration {original!r}")

    total = Decimal(0)
    pos = 0
    for match in _DURATION_RE.finditer(text):
        number, unit = match.groups()
        if match.start() != pos or number in ("", "."):
            raise ConfigurationError(f"invalid duration {original!r}")
        try:
            total += Decimal(number) * _DURATION_UNITS[unit]
        except InvalidOperation:
            raise ConfigurationError(f"invalid duration {original!r}")
        pos = match.end()

    if pos != len(text):
        raise ConfigurationError(f"invalid duration {original!r}")

    return sign * int(total)


def format_proto_duration(nanoseconds: int) -> str:
    """Formata duração como no JSON do protobuf ("259200s", "1.500s")"""
    sign = "-" if nanoseconds < 0 else ""
    seconds, nanos = divmod(abs(nanoseconds), 1_000_000_000)
    if nanos == 0:
        return f"{sign}{seconds}s"

    frac = f"{nanos:09d}"
    while frac.endswith("000"):
        frac = frac[:-3]
    return f"{sign}{seconds}.{frac}s"


def random_chain_id() -> str:
    """chain-id aleatório: "chain-" + 6 alfanuméricos"""
    alphabet = string.ascii_letters + string.digits
    return "chain-" + "".join(secrets.choice(alphabet) for _ in range(6))


@dataclass(frozen=True)
class TestnetConfig:
    """
    Configuração do comando testnet

    Attributes:
        num_validators: Número de validadores (>= 1)
        output_dir: Diretório raiz da saída
        node_dir_prefix: Prefixo dos diretórios de nó (node -> node0, node1...)
        node_daemon_home: Diretório home do daemon dentro de cada nó
        starting_ip_address: IP do primeiro nó (launcher Fogbed)
        starting_port: Primeira porta do host no docker-compose
        chain_id: chain-id do genesis (vazio = aleatório)
        minimum_gas_prices: Preço mínimo de gas gravado no app.toml
        keyring_backend: Backend do keyring (test, file, memory)
        algo: Algoritmo de assinatura das contas
        stake_denom: Denom de stake aplicado ao genesis
        unbonding_period: Duração de unbonding (formato Go, ex: 72h)
        initial_coins: Saldo inicial de cada validador
        initial_staking_amount: Auto-delegação de cada validador
        docker_tag: Tag da imagem no descriptor
        image_repository: Repositório da imagem Docker
        keep_on_failure: Mantém a saída parcial em caso de falha
    """

    num_validators: int = 4
    output_dir: str = "./mytestnet"
    node_dir_prefix: str = "node"
    node_daemon_home: str = "starsd"
    starting_ip_address: str = "192.168.0.1"
    starting_port: int = P2P_PORT
    chain_id: str = ""
    minimum_gas_prices: str = f"0.000006{DEFAULT_BOND_DENOM}"
    keyring_backend: str = "test"
    algo: str = "secp256k1"
    stake_denom: str = DEFAULT_BOND_DENOM
    unbonding_period: str = "72h"
    initial_coins: str = f"1000000000{DEFAULT_BOND_DENOM}"
    initial_staking_amount: int = 100000000
    docker_tag: str = "latest"
    image_repository: str = DEFAULT_IMAGE_REPOSITORY
    keep_on_failure: bool = False
    bech32_prefix: str = "stars"

    # Campos computados em __post_init__
    coins: Tuple[Coin, ...] = field(init=False, repr=False, compare=False)
    unbonding_ns: int = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        """Valida tudo antes de qualquer efeito colateral"""
        if not self.chain_id:
            object.__setattr__(self, "chain_id", random_chain_id())
            logger.info(f"Generated random chain-id: {self.chain_id}")

        self._validate()

        object.__setattr__(self, "coins", tuple(parse_coins(self.initial_coins)))
        object.__setattr__(self, "unbonding_ns", parse_duration(self.unbonding_period))

        if not self.coins:
            raise ConfigurationError(f"initial coins must not be empty: {self.initial_coins!r}")
        if self.unbonding_ns <= 0:
            raise ConfigurationError(f"unbonding period must be positive: {self.unbonding_period!r}")

        # A auto-delegação sai do saldo inicial no denom de stake
        stake_balance = sum(coin.amount for coin in self.coins if coin.denom == self.stake_denom)
        if stake_balance < self.initial_staking_amount:
            raise ConfigurationError(
                f"initial coins {self.initial_coins!r} cannot cover self-delegation of "
                f"{self.initial_staking_amount}{self.stake_denom}"
            )

        logger.debug(f"✅ Testnet config validated: {self.to_dict()}")

    def _validate(self) -> None:
        errors = []

        if not isinstance(self.num_validators, int) or self.num_validators < 1:
            errors.append(f"number of validators must be >= 1, got {self.num_validators}")
        elif not validate_node_name(self.node_name(self.num_validators - 1)):
            errors.append(f"invalid node directory prefix: {self.node_dir_prefix!r}")

        if not self.output_dir:
            errors.append("output directory is required")

        if not self.node_daemon_home or "/" in self.node_daemon_home or self.node_daemon_home in (".", ".."):
            errors.append(f"invalid node daemon home: {self.node_daemon_home!r}")

        if not validate_ip(self.starting_ip_address):
            errors.append(f"invalid starting IP address: {self.starting_ip_address}")

        if not isinstance(self.starting_port, int) or not validate_port(self.starting_port):
            errors.append(f"invalid starting port: {self.starting_port}")
        elif isinstance(self.num_validators, int) and self.num_validators >= 1:
            last_port = self.starting_port + PORTS_PER_NODE * self.num_validators - 1
            if not validate_port(last_port):
                errors.append(f"port range exhausted: last port would be {last_port}")

        if not validate_chain_id(self.chain_id):
            errors.append(f"invalid chain-id: {self.chain_id!r}")

        if not validate_denom(self.stake_denom):
            errors.append(f"invalid stake denom: {self.stake_denom!r}")

        if not isinstance(self.initial_staking_amount, int) or self.initial_staking_amount <= 0:
            errors.append(f"initial staking amount must be a positive integer, got {self.initial_staking_amount}")

        if not self.docker_tag or any(c.isspace() for c in self.docker_tag):
            errors.append(f"invalid docker tag: {self.docker_tag!r}")

        if errors:
            for error in errors:
                logger.error(f"   - {error}")
            raise ConfigurationError("; ".join(errors))

        # Estes já levantam ConfigurationError com mensagem própria
        parse_dec_coins(self.minimum_gas_prices)

    # ---------- Layout de diretórios ----------

    def node_name(self, index: int) -> str:
        return f"{self.node_dir_prefix}{index}"

    def node_home(self, index: int) -> Path:
        return Path(self.output_dir) / self.node_name(index) / self.node_daemon_home

    @property
    def gentxs_dir(self) -> Path:
        return Path(self.output_dir) / "gentxs"

    @property
    def gentx_names(self) -> Tuple[str, ...]:
        """Arquivos de gentx esperados em gentxs_dir, um por validador"""
        return tuple(f"{self.node_name(i)}.json" for i in range(self.num_validators))

    def to_dict(self) -> Dict[str, Any]:
        """Converte config para dicionário"""
        return {
            "num_validators": self.num_validators,
            "output_dir": self.output_dir,
            "node_dir_prefix": self.node_dir_prefix,
            "node_daemon_home": self.node_daemon_home,
            "starting_ip_address": self.starting_ip_address,
            "starting_port": self.starting_port,
            "chain_id": self.chain_id,
            "minimum_gas_prices": self.minimum_gas_prices,
            "keyring_backend": self.keyring_backend,
            "algo": self.algo,
            "stake_denom": self.stake_denom,
            "unbonding_period": self.unbonding_period,
            "initial_coins": self.initial_coins,
            "initial_staking_amount": self.initial_staking_amount,
            "docker_tag": self.docker_tag,
            "image_repository": self.image_repository,
        }

    @classmethod
    def from_args(cls, args) -> "TestnetConfig":
        """Cria config a partir do namespace do argparse"""
        logger.debug(f"Creating TestnetConfig from args: {vars(args)}")
        return cls(
            num_validators=args.v,
            output_dir=args.output_dir,
            node_dir_prefix=args.node_dir_prefix,
            node_daemon_home=args.node_daemon_home,
            starting_ip_address=args.starting_ip_address,
            starting_port=args.starting_port,
            chain_id=args.chain_id,
            minimum_gas_prices=args.minimum_gas_prices,
            keyring_backend=args.keyring_backend,
            algo=args.algo,
            stake_denom=args.stake_denom,
            unbonding_period=args.unbonding_period,
            initial_coins=args.coins,
            initial_staking_amount=args.initial_staking_amount,
            docker_tag=args.docker_tag,
            image_repository=args.image_repository,
            keep_on_failure=args.keep_on_failure,
        )
