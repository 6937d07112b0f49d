# fogbed_stars/gentx.py

"""
Transações gentx (MsgCreateValidator assinada)

O JSON gravado segue o formato do TxJSONEncoder do Cosmos SDK
(body / auth_info / signatures). A assinatura usa o modo legado
amino-JSON: account_number 0, sequence 0, gas 200000, sem taxa.
"""

import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

from fogbed_stars.config import TestnetConfig
from fogbed_stars.crypto.keyring import Keyring
from fogbed_stars.crypto.keys import (
    ED25519_PUBKEY_TYPE,
    SECP256K1_PUBKEY_TYPE,
    TM_ED25519_PUBKEY_TYPE,
    account_address,
    b64,
    b64decode,
    valoper_address,
    verify_secp256k1,
)
from fogbed_stars.exceptions import KeyringError, SigningError
from fogbed_stars.models import NodeIdentity
from fogbed_stars.utils import get_logger, validate_denom, write_file

logger = get_logger('gentx')

MSG_CREATE_VALIDATOR_TYPE = "/cosmos.staking.v1beta1.MsgCreateValidator"
MSG_CREATE_VALIDATOR_AMINO = "cosmos-sdk/MsgCreateValidator"
SIGN_MODE_LEGACY_AMINO_JSON = "SIGN_MODE_LEGACY_AMINO_JSON"

GENTX_GAS_LIMIT = 200000

# Comissões fixas da testnet: 5% / 25% / 5%
COMMISSION_RATE = Decimal("0.05")
COMMISSION_MAX_RATE = Decimal("0.25")
COMMISSION_MAX_CHANGE_RATE = Decimal("0.05")
MIN_SELF_DELEGATION = 1

DEC_PRECISION = 18


def format_dec(value: Decimal) -> str:
    """sdk.Dec em JSON: sempre 18 casas decimais"""
    return f"{value:.{DEC_PRECISION}f}"


def canonical_json(data: Any) -> bytes:
    """JSON compacto com chaves ordenadas (bytes de assinatura)"""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


# ==================== Mensagem ====================

def new_msg_create_validator(
    identity: NodeIdentity,
    stake_denom: str,
    amount: int,
    prefix: str = "stars",
) -> Dict[str, Any]:
    """
    MsgCreateValidator em proto-JSON

    Raises:
        SigningError: quantidade ou denom inválidos
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise SigningError(f"invalid self-delegation amount for {identity.name}: {amount!r}")
    if not validate_denom(stake_denom):
        raise SigningError(f"invalid stake denom for {identity.name}: {stake_denom!r}")

    try:
        validator_address = valoper_address(identity.address, prefix)
    except ValueError as e:
        raise SigningError(f"invalid delegator address for {identity.name}: {e}") from e

    return {
        "@type": MSG_CREATE_VALIDATOR_TYPE,
        "description": {
            "moniker": identity.name,
            "identity": "",
            "website": "",
            "security_contact": "",
            "details": "",
        },
        "commission": {
            "rate": format_dec(COMMISSION_RATE),
            "max_rate": format_dec(COMMISSION_MAX_RATE),
            "max_change_rate": format_dec(COMMISSION_MAX_CHANGE_RATE),
        },
        "min_self_delegation": str(MIN_SELF_DELEGATION),
        "delegator_address": identity.address,
        "validator_address": validator_address,
        "pubkey": {"@type": ED25519_PUBKEY_TYPE, "key": b64(identity.consensus_pubkey)},
        "value": {"denom": stake_denom, "amount": str(amount)},
    }


def _amino_msg(msg: Dict[str, Any]) -> Dict[str, Any]:
    """Forma amino da MsgCreateValidator (campos vazios omitidos)"""
    try:
        description = {k: v for k, v in msg["description"].items() if v}
        value = {
            "commission": msg["commission"],
            "delegator_address": msg["delegator_address"],
            "description": description,
            "min_self_delegation": msg["min_self_delegation"],
            "pubkey": {"type": TM_ED25519_PUBKEY_TYPE, "value": msg["pubkey"]["key"]},
            "validator_address": msg["validator_address"],
            "value": msg["value"],
        }
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"malformed MsgCreateValidator: {e}") from e
    return {"type": MSG_CREATE_VALIDATOR_AMINO, "value": value}


def amino_sign_bytes(
    messages: List[Dict[str, Any]],
    chain_id: str,
    memo: str,
    account_number: int = 0,
    sequence: int = 0,
    gas: int = GENTX_GAS_LIMIT,
) -> bytes:
    """StdSignDoc do modo legado amino-JSON"""
    sign_doc = {
        "account_number": str(account_number),
        "chain_id": chain_id,
        "fee": {"amount": [], "gas": str(gas)},
        "memo": memo,
        "msgs": [_amino_msg(m) for m in messages],
        "sequence": str(sequence),
    }
    return canonical_json(sign_doc)


# ==================== Builder ====================

class ValidatorTxBuilder:
    """
    Monta e assina um gentx por nó

    Exemplos de uso:
        >>> builder = ValidatorTxBuilder(config)
        >>> tx = builder.build(identity, keyring)
        >>> path = builder.write(identity, tx)   # <output>/gentxs/node0.json
    """

    def __init__(self, config: TestnetConfig):
        self.config = config

    def build(self, identity: NodeIdentity, keyring: Keyring) -> Dict[str, Any]:
        """
        Monta e assina a transação do nó

        Raises:
            SigningError: quantidade/denom inválidos ou chave ausente/inválida
        """
        msg = new_msg_create_validator(
            identity,
            self.config.stake_denom,
            self.config.initial_staking_amount,
            self.config.bech32_prefix,
        )
        memo = identity.memo
        sign_bytes = amino_sign_bytes([msg], self.config.chain_id, memo)

        try:
            signature, public_key = keyring.sign(identity.name, sign_bytes)
        except KeyringError as e:
            raise SigningError(f"cannot sign gentx for {identity.name}: {e}") from e

        if account_address(public_key, self.config.bech32_prefix) != identity.address:
            raise SigningError(f"signing key for {identity.name} does not match {identity.address}")

        tx = {
            "body": {
                "messages": [msg],
                "memo": memo,
                "timeout_height": "0",
                "extension_options": [],
                "non_critical_extension_options": [],
            },
            "auth_info": {
                "signer_infos": [
                    {
                        "public_key": {"@type": SECP256K1_PUBKEY_TYPE, "key": b64(public_key)},
                        "mode_info": {"single": {"mode": SIGN_MODE_LEGACY_AMINO_JSON}},
                        "sequence": "0",
                    }
                ],
                "fee": {"amount": [], "gas_limit": str(GENTX_GAS_LIMIT), "payer": "", "granter": ""},
            },
            "signatures": [b64(signature)],
        }
        logger.debug(f"✅ Gentx signed for {identity.name} (memo={memo})")
        return tx

    def write(self, identity: NodeIdentity, tx: Dict[str, Any], gentxs_dir: Optional[Path] = None) -> Path:
        """Grava o gentx em <output>/gentxs/<nodeName>.json"""
        directory = gentxs_dir or self.config.gentxs_dir
        try:
            path = write_file(directory, f"{identity.name}.json", json.dumps(tx))
        except OSError as e:
            raise SigningError(f"cannot write gentx for {identity.name}: {e}") from e
        logger.info(f"✅ Gentx written: {path}")
        return path


# ==================== Verificação ====================

def create_validator_msgs(tx: Dict[str, Any]) -> List[Dict[str, Any]]:
    messages = tx.get("body", {}).get("messages", [])
    return [m for m in messages if m.get("@type") == MSG_CREATE_VALIDATOR_TYPE]


def verify_gentx_signature(tx: Dict[str, Any], chain_id: str, prefix: str = "stars") -> bool:
    """
    Recalcula o sign doc e verifica a assinatura do único signatário

    A chave pública do signatário precisa derivar o delegator_address.
    """
    try:
        body = tx["body"]
        messages = body["messages"]
        signer_infos = tx["auth_info"]["signer_infos"]
        signatures = tx["signatures"]
        if len(signer_infos) != 1 or len(signatures) != 1 or len(messages) != 1:
            return False

        public_key = b64decode(signer_infos[0]["public_key"]["key"])
        signature = b64decode(signatures[0])
        gas = int(tx["auth_info"]["fee"]["gas_limit"])
        sequence = int(signer_infos[0].get("sequence", "0"))

        if account_address(public_key, prefix) != messages[0]["delegator_address"]:
            logger.warning(f"⚠️ Gentx signer does not match delegator {messages[0]['delegator_address']}")
            return False

        sign_bytes = amino_sign_bytes(messages, chain_id, body.get("memo", ""), sequence=sequence, gas=gas)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"⚠️ Malformed gentx: {e}")
        return False

    return verify_secp256k1(public_key, sign_bytes, signature)
