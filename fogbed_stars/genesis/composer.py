# fogbed_stars/genesis/composer.py

"""
Composição do genesis template

Parte dos defaults de cada módulo, injeta contas e saldos dos validadores e
aplica os overrides de rede (staking, crisis, gov, mint, claim).
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Tuple

from fogbed_stars.config import TestnetConfig, format_proto_duration
from fogbed_stars.exceptions import ConfigurationError, ProvisioningError
from fogbed_stars.genesis.codec import AppStateBundle, GenesisCodec, marshal_app_state
from fogbed_stars.genesis.document import GenesisDocument, format_timestamp
from fogbed_stars.genesis.modules import (
    AuthGenesis,
    Balance,
    BankGenesis,
    ClaimGenesis,
    CoinState,
    CrisisGenesis,
    GovGenesis,
    MintGenesis,
    StakingGenesis,
    new_stargaze_codec,
)
from fogbed_stars.models import NodeIdentity
from fogbed_stars.utils import get_logger

logger = get_logger('genesis.composer')

BASE_ACCOUNT_TYPE = "/cosmos.auth.v1beta1.BaseAccount"
GOV_MIN_DEPOSIT = 10_000_000

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GenesisStateComposer:
    """
    Monta o documento de genesis template compartilhado por todos os nós

    Exemplos de uso:
        >>> composer = GenesisStateComposer(config)
        >>> template = composer.compose(identities)
        >>> composer.write_template(template, identities)
    """

    def __init__(self, config: TestnetConfig, codec: Optional[GenesisCodec] = None, clock: Clock = utc_now):
        self.config = config
        self.codec = codec or new_stargaze_codec()
        self.clock = clock

    # ---------- Contas ----------

    def set_accounts(self, app_state: AppStateBundle, identities: Sequence[NodeIdentity]) -> None:
        """auth.accounts e bank.balances ordenados por endereço"""
        addresses = sorted(identity.address for identity in identities)

        auth = self.codec.decode("auth", app_state["auth"])
        auth.accounts = [
            {
                "@type": BASE_ACCOUNT_TYPE,
                "address": address,
                "pub_key": None,
                "account_number": "0",
                "sequence": "0",
            }
            for address in addresses
        ]
        app_state["auth"] = self.codec.encode("auth", auth)

        coins = [CoinState(**coin.to_dict()) for coin in sorted(self.config.coins)]
        bank = self.codec.decode("bank", app_state["bank"])
        bank.balances = [Balance(address=address, coins=list(coins)) for address in addresses]
        app_state["bank"] = self.codec.encode("bank", bank)

    # ---------- Overrides de rede ----------

    def _override_staking(self, state: StakingGenesis) -> None:
        state.params.bond_denom = self.config.stake_denom
        state.params.unbonding_time = format_proto_duration(self.config.unbonding_ns)

    def _override_crisis(self, state: CrisisGenesis) -> None:
        state.constant_fee.denom = self.config.stake_denom

    def _override_gov(self, state: GovGenesis) -> None:
        state.deposit_params.min_deposit = [CoinState(denom=self.config.stake_denom, amount=str(GOV_MIN_DEPOSIT))]

    def _override_mint(self, state: MintGenesis) -> None:
        state.params.mint_denom = self.config.stake_denom
        state.params.start_time = format_timestamp(self.clock())

    def _override_claim(self, state: ClaimGenesis) -> None:
        state.module_account_balance = CoinState(
            denom=self.config.stake_denom,
            amount=state.module_account_balance.amount,
        )
        state.params.claim_denom = self.config.stake_denom

    def overrides(self) -> List[Tuple[str, Callable]]:
        return [
            ("staking", self._override_staking),
            ("crisis", self._override_crisis),
            ("gov", self._override_gov),
            ("mint", self._override_mint),
            ("claim", self._override_claim),
        ]

    def apply_overrides(self, app_state: AppStateBundle) -> AppStateBundle:
        """
        Decodifica, altera e recodifica cada módulo presente

        Módulos ausentes do mapa são ignorados.
        """
        for module, override in self.overrides():
            raw = app_state.get(module)
            if raw is None:
                logger.debug(f"Module {module} not in genesis, skipping override")
                continue
            try:
                state = self.codec.decode(module, raw)
                override(state)
                app_state[module] = self.codec.encode(module, state)
            except ValueError as e:
                raise ConfigurationError(f"failed to override {module} genesis: {e}") from e
            logger.debug(f"Override applied: {module}")
        return app_state

    # ---------- Documento ----------

    def compose(self, identities: Sequence[NodeIdentity]) -> GenesisDocument:
        app_state = self.codec.default_genesis()
        self.set_accounts(app_state, identities)
        self.apply_overrides(app_state)

        template = GenesisDocument(
            chain_id=self.config.chain_id,
            genesis_time=self.clock(),
            app_state=marshal_app_state(app_state),
            validators=None,
        )
        logger.info(f"✅ Genesis template composed ({len(app_state)} modules, {len(identities)} accounts)")
        return template

    def write_template(self, template: GenesisDocument, identities: Sequence[NodeIdentity]) -> None:
        """Grava o template no genesis.json de cada nó"""
        for identity in identities:
            try:
                template.save_as(identity.genesis_path)
            except OSError as e:
                raise ProvisioningError(f"cannot write genesis for {identity.name}: {e}") from e
        logger.info(f"✅ Genesis template written to {len(identities)} nodes")
