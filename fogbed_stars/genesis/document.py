# fogbed_stars/genesis/document.py

"""
Documento de genesis do Tendermint (genesis.json)
"""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from fogbed_stars.genesis.codec import compact_json
from fogbed_stars.utils import FILE_PERM, get_logger, validate_chain_id, write_file

logger = get_logger('genesis.document')

_TIMESTAMP_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?(Z|[+-]\d{2}:\d{2})$"
)


def default_consensus_params() -> Dict[str, Any]:
    return {
        "block": {"max_bytes": "22020096", "max_gas": "-1", "time_iota_ms": "1000"},
        "evidence": {
            "max_age_num_blocks": "100000",
            "max_age_duration": "172800000000000",
            "max_bytes": "1048576",
        },
        "validator": {"pub_key_types": ["ed25519"]},
        "version": {},
    }


def format_timestamp(dt: datetime) -> str:
    """RFC 3339 em UTC com fração sem zeros à direita ("2021-06-01T12:00:00.5Z")"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    text = dt.strftime("%Y-%m-%dT%H:%M:%S")
    if dt.microsecond:
        text += "." + f"{dt.microsecond:06d}".rstrip("0")
    return text + "Z"


def parse_timestamp(text: str) -> datetime:
    """
    Raises:
        ValueError: timestamp fora do formato RFC 3339
    """
    match = _TIMESTAMP_RE.match(text or "")
    if not match:
        raise ValueError(f"invalid timestamp: {text!r}")

    year, month, day, hour, minute, second, frac, zone = match.groups()
    micro = int((frac or "0").ljust(6, "0")[:6])
    tz = timezone.utc
    if zone != "Z":
        sign = 1 if zone[0] == "+" else -1
        hours, minutes = zone[1:].split(":")
        tz = timezone(sign * timedelta(hours=int(hours), minutes=int(minutes)))

    dt = datetime(int(year), int(month), int(day), int(hour), int(minute), int(second), micro, tzinfo=tz)
    return dt.astimezone(timezone.utc)


@dataclass
class GenesisDocument:
    """
    genesis.json

    Attributes:
        chain_id: chain-id da rede
        genesis_time: Horário do genesis (UTC)
        app_state: Estado da aplicação (JSON compacto)
        validators: Lista de validadores (None = omitida)
        initial_height: Altura inicial
        consensus_params: Parâmetros de consenso
        app_hash: Hash da aplicação
    """

    chain_id: str
    genesis_time: datetime
    app_state: bytes = b"{}"
    validators: Optional[List[Dict[str, Any]]] = None
    initial_height: str = "1"
    consensus_params: Dict[str, Any] = field(default_factory=default_consensus_params)
    app_hash: str = ""

    def validate(self) -> None:
        if not validate_chain_id(self.chain_id):
            raise ValueError(f"invalid chain-id in genesis: {self.chain_id!r}")
        if int(self.initial_height) < 1:
            raise ValueError(f"initial height must be >= 1, got {self.initial_height}")

    def to_dict(self) -> Dict[str, Any]:
        """Mesma ordem de campos do genesis.json do Tendermint"""
        doc: Dict[str, Any] = {
            "genesis_time": format_timestamp(self.genesis_time),
            "chain_id": self.chain_id,
            "initial_height": self.initial_height,
            "consensus_params": self.consensus_params,
        }
        if self.validators:
            doc["validators"] = self.validators
        doc["app_hash"] = self.app_hash
        doc["app_state"] = json.loads(self.app_state)
        return doc

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    def save_as(self, path: Union[str, Path]) -> Path:
        """Valida e grava o documento (mode 0644)"""
        self.validate()
        path = Path(path)
        written = write_file(path.parent, path.name, self.to_json() + "\n", FILE_PERM)
        logger.debug(f"Genesis saved: {written}")
        return written

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GenesisDocument":
        """
        Raises:
            ValueError: campo ausente ou inválido
        """
        try:
            return cls(
                chain_id=data["chain_id"],
                genesis_time=parse_timestamp(data["genesis_time"]),
                app_state=compact_json(data.get("app_state") or {}),
                validators=data.get("validators") or None,
                initial_height=str(data.get("initial_height", "1")),
                consensus_params=data.get("consensus_params") or default_consensus_params(),
                app_hash=data.get("app_hash", ""),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"malformed genesis document: {e}") from e

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "GenesisDocument":
        """
        Raises:
            OSError: arquivo ilegível
            ValueError: JSON ou campos inválidos
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"genesis file is not a JSON object: {path}")
        return cls.from_dict(data)
