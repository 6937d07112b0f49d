# fogbed_stars/snapshot.py

"""
Snapshot de elegibilidade a partir de um export de genesis do Cosmos Hub

Soma as delegações de cada conta (em unidades inteiras, /1e6) ignorando
validadores de exchanges. Uma conta é "staker" com total >= 5 e
"stargaze_delegator" quando uma única delegação >= 5 vai ao validador
da Stargaze.
"""

import json
import os
from dataclasses import dataclass, field
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from fogbed_stars.exceptions import ConfigurationError, SnapshotError
from fogbed_stars.utils import SECRET_FILE_PERM, get_logger, write_file

logger = get_logger('snapshot')

EXCHANGES_ENV = "EXCHANGES"
STARGAZE_VALIDATOR = "cosmosvaloper1et77usu8q2hargvyusl4qzryev8x8t9wwqkxfs"
MIN_STAKE = Decimal(5)
MICRO_UNITS = Decimal(1_000_000)

_PRECISION = Decimal(1).scaleb(-18)


def _quo(a: Decimal, b: Decimal) -> Decimal:
    """Divisão de sdk.Dec (18 casas, arredondamento bancário)"""
    return (a / b).quantize(_PRECISION, rounding=ROUND_HALF_EVEN)


def parse_exchanges(text: Optional[str]) -> List[str]:
    """
    Lista de operadores de exchange separada por vírgula

    Raises:
        ConfigurationError: lista vazia
    """
    exchanges = [e.strip() for e in (text or "").split(",") if e.strip()]
    if not exchanges:
        raise ConfigurationError(f"provide the list of exchange validator addresses (--exchanges or {EXCHANGES_ENV})")
    return exchanges


@dataclass
class HubSnapshotAccount:
    atom_address: str
    atom_staker: bool = False
    stargaze_delegator: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "atom_address": self.atom_address,
            "atom_staker": self.atom_staker,
            "stargaze_delegator": self.stargaze_delegator,
        }


@dataclass
class HubSnapshot:
    accounts: Dict[str, HubSnapshotAccount] = field(default_factory=dict)
    stakers: int = 0
    delegators: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"accounts": {addr: acc.to_dict() for addr, acc in self.accounts.items()}}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=4, sort_keys=True)


class HubSnapshotExporter:
    """
    Exemplos de uso:
        >>> exporter = HubSnapshotExporter(["cosmosvaloper1exchange..."])
        >>> snapshot = exporter.export("hub-genesis.json", "snapshot.json")
    """

    def __init__(self, exchanges: Sequence[str], stargaze_validator: str = STARGAZE_VALIDATOR):
        if not exchanges:
            raise ConfigurationError("exchange list must not be empty")
        self.exchanges = set(exchanges)
        self.stargaze_validator = stargaze_validator

    @classmethod
    def from_env(cls) -> "HubSnapshotExporter":
        return cls(parse_exchanges(os.getenv(EXCHANGES_ENV)))

    def build(self, genesis: Dict[str, Any]) -> HubSnapshot:
        """
        Raises:
            SnapshotError: estrutura inválida ou delegação a validador desconhecido
        """
        try:
            staking = genesis["app_state"]["staking"]
            validators = {v["operator_address"]: v for v in staking.get("validators") or []}
            delegations = staking.get("delegations") or []
        except (KeyError, TypeError, AttributeError) as e:
            raise SnapshotError(f"genesis has no staking state: {e}") from e

        snapshot = HubSnapshot()
        amounts: Dict[str, Decimal] = {}

        for delegation in delegations:
            try:
                validator_address = delegation["validator_address"]
                address = delegation["delegator_address"]
                shares = Decimal(delegation["shares"])
            except (KeyError, TypeError, InvalidOperation) as e:
                raise SnapshotError(f"malformed delegation {delegation!r}: {e}") from e

            if validator_address in self.exchanges:
                continue

            validator = validators.get(validator_address)
            if validator is None:
                raise SnapshotError(f"missing validator {validator_address}")

            try:
                tokens = Decimal(validator["tokens"])
                delegator_shares = Decimal(validator["delegator_shares"])
                amount = _quo(_quo(shares * tokens, delegator_shares), MICRO_UNITS)
            except (KeyError, TypeError, InvalidOperation, ArithmeticError) as e:
                raise SnapshotError(f"malformed validator {validator_address}: {e}") from e

            total = amounts.get(address, Decimal(0)) + amount
            amounts[address] = total

            account = snapshot.accounts.get(address) or HubSnapshotAccount(atom_address=address)
            staker = total >= MIN_STAKE
            stargazer = validator_address == self.stargaze_validator and amount >= MIN_STAKE

            if staker:
                account.atom_staker = True
                snapshot.stakers += 1
            if stargazer:
                account.stargaze_delegator = True
                snapshot.delegators += 1
            if staker or stargazer:
                snapshot.accounts[address] = account

        logger.info(f"accounts: {len(snapshot.accounts)}")
        logger.info(f"stakers: {snapshot.stakers}")
        logger.info(f"delegators: {snapshot.delegators}")
        return snapshot

    def export(self, genesis_path: Union[str, Path], output_path: Union[str, Path]) -> HubSnapshot:
        try:
            with open(genesis_path, "r", encoding="utf-8") as f:
                genesis = json.load(f)
        except OSError as e:
            raise SnapshotError(f"cannot read genesis {genesis_path}: {e}") from e
        except ValueError as e:
            raise SnapshotError(f"failed to unmarshal genesis state: {e}") from e

        snapshot = self.build(genesis)

        output_path = Path(output_path)
        try:
            write_file(output_path.parent, output_path.name, snapshot.to_json(), SECRET_FILE_PERM)
        except OSError as e:
            raise SnapshotError(f"cannot write snapshot {output_path}: {e}") from e

        logger.info(f"✅ Snapshot written: {output_path}")
        return snapshot
