# fogbed_stars/genesis/modules.py

"""
Genesis default dos módulos da app Stargaze

Somente as subárvores que o bootstrap altera têm campos tipados; o resto
passa intacto via extra="allow".
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from fogbed_stars.genesis.codec import GenesisCodec

SDK_DEFAULT_DENOM = "stake"
STARGAZE_DENOM = "ustarx"
ZERO_TIME = "0001-01-01T00:00:00Z"


class _State(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class CoinState(_State):
    denom: str
    amount: str


# ---------- auth / bank / genutil ----------

class AuthGenesis(_State):
    accounts: List[Dict[str, Any]] = Field(default_factory=list)


class Balance(_State):
    address: str
    coins: List[CoinState] = Field(default_factory=list)


class BankGenesis(_State):
    balances: List[Balance] = Field(default_factory=list)


class GenutilGenesis(_State):
    gen_txs: List[Dict[str, Any]] = Field(default_factory=list)


# ---------- staking / crisis / gov ----------

class StakingParams(_State):
    unbonding_time: str
    bond_denom: str


class StakingGenesis(_State):
    params: StakingParams


class CrisisGenesis(_State):
    constant_fee: CoinState


class DepositParams(_State):
    min_deposit: List[CoinState] = Field(default_factory=list)


class GovGenesis(_State):
    deposit_params: DepositParams


# ---------- mint / claim (Stargaze) ----------

class MintParams(_State):
    mint_denom: str
    start_time: str


class MintGenesis(_State):
    params: MintParams


class ClaimParams(_State):
    claim_denom: str


class ClaimGenesis(_State):
    module_account_balance: CoinState
    params: ClaimParams


def _dec(text: str) -> str:
    return text + "0" * (18 - len(text.split(".")[1]))


DEFAULT_GENESIS: Dict[str, Dict[str, Any]] = {
    "auth": {
        "params": {
            "max_memo_characters": "256",
            "tx_sig_limit": "7",
            "tx_size_cost_per_byte": "10",
            "sig_verify_cost_ed25519": "590",
            "sig_verify_cost_secp256k1": "1000",
        },
        "accounts": [],
    },
    "bank": {
        "params": {"send_enabled": [], "default_send_enabled": True},
        "balances": [],
        "supply": [],
        "denom_metadata": [],
    },
    "staking": {
        "params": {
            "unbonding_time": "1814400s",
            "max_validators": 100,
            "max_entries": 7,
            "historical_entries": 10000,
            "bond_denom": SDK_DEFAULT_DENOM,
        },
        "last_total_power": "0",
        "last_validator_powers": [],
        "validators": [],
        "delegations": [],
        "unbonding_delegations": [],
        "redelegations": [],
        "exported": False,
    },
    "crisis": {
        "constant_fee": {"denom": SDK_DEFAULT_DENOM, "amount": "1000"},
    },
    "gov": {
        "starting_proposal_id": "1",
        "deposits": [],
        "votes": [],
        "proposals": [],
        "deposit_params": {
            "min_deposit": [{"denom": SDK_DEFAULT_DENOM, "amount": "10000000"}],
            "max_deposit_period": "172800s",
        },
        "voting_params": {"voting_period": "172800s"},
        "tally_params": {
            "quorum": _dec("0.334"),
            "threshold": _dec("0.5"),
            "veto_threshold": _dec("0.334"),
        },
    },
    "mint": {
        "minter": {"annual_provisions": _dec("0.0")},
        "params": {
            "mint_denom": STARGAZE_DENOM,
            "start_time": ZERO_TIME,
            "initial_annual_provisions": _dec("1000000000000000.0"),
            "reduction_factor": _dec("0.666666666666666666"),
            "blocks_per_year": "6311520",
        },
    },
    "claim": {
        "module_account_balance": {"denom": STARGAZE_DENOM, "amount": "0"},
        "params": {
            "airdrop_enabled": False,
            "airdrop_start_time": ZERO_TIME,
            "duration_until_decay": "3600s",
            "duration_of_decay": "18000s",
            "claim_denom": STARGAZE_DENOM,
        },
        "claim_records": [],
    },
    "distribution": {
        "params": {
            "community_tax": _dec("0.02"),
            "base_proposer_reward": _dec("0.01"),
            "bonus_proposer_reward": _dec("0.04"),
            "withdraw_addr_enabled": True,
        },
        "fee_pool": {"community_pool": []},
        "delegator_withdraw_infos": [],
        "previous_proposer": "",
        "outstanding_rewards": [],
        "validator_accumulated_commissions": [],
        "validator_historical_rewards": [],
        "validator_current_rewards": [],
        "delegator_starting_infos": [],
        "validator_slash_events": [],
    },
    "slashing": {
        "params": {
            "signed_blocks_window": "100",
            "min_signed_per_window": _dec("0.5"),
            "downtime_jail_duration": "600s",
            "slash_fraction_double_sign": _dec("0.05"),
            "slash_fraction_downtime": _dec("0.01"),
        },
        "signing_infos": [],
        "missed_blocks": [],
    },
    "evidence": {"evidence": []},
    "upgrade": {},
    "genutil": {"gen_txs": []},
}

MODULE_MODELS = {
    "auth": AuthGenesis,
    "bank": BankGenesis,
    "staking": StakingGenesis,
    "crisis": CrisisGenesis,
    "gov": GovGenesis,
    "mint": MintGenesis,
    "claim": ClaimGenesis,
    "genutil": GenutilGenesis,
}


def new_stargaze_codec() -> GenesisCodec:
    """Codec com todos os módulos da app registrados"""
    codec = GenesisCodec()
    for name, default in DEFAULT_GENESIS.items():
        codec.register(name, default, MODULE_MODELS.get(name))
    return codec
