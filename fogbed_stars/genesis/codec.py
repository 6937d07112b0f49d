# fogbed_stars/genesis/codec.py

"""
Registro de codecs de genesis por módulo

Cada módulo registra seu genesis default (dict JSON) e, quando o bootstrap
precisa alterá-lo, um modelo pydantic para decode/encode tipado. O estado da
aplicação circula como mapeamento nome do módulo -> bytes JSON.
"""

import copy
import json
from typing import Any, Dict, Optional, Type, Union

from pydantic import BaseModel

from fogbed_stars.utils import get_logger

logger = get_logger('genesis.codec')

AppStateBundle = Dict[str, bytes]


def compact_json(data: Any) -> bytes:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class GenesisCodec:
    """
    Registro nome -> (default, modelo)

    Exemplos de uso:
        >>> codec = GenesisCodec()
        >>> codec.register("crisis", {"constant_fee": {...}}, CrisisGenesis)
        >>> state = codec.decode("crisis", raw)
        >>> raw = codec.encode("crisis", state)
    """

    def __init__(self):
        self._defaults: Dict[str, Dict[str, Any]] = {}
        self._models: Dict[str, Optional[Type[BaseModel]]] = {}

    def register(self, name: str, default: Dict[str, Any], model: Optional[Type[BaseModel]] = None) -> None:
        if name in self._defaults:
            raise ValueError(f"module {name!r} already registered")
        self._defaults[name] = default
        self._models[name] = model

    @property
    def modules(self):
        return sorted(self._defaults)

    def default_genesis(self) -> AppStateBundle:
        """Genesis default de todos os módulos registrados"""
        return {name: compact_json(copy.deepcopy(default)) for name, default in self._defaults.items()}

    def decode(self, name: str, raw: bytes) -> Union[BaseModel, Dict[str, Any]]:
        """
        Decodifica o estado de um módulo

        Raises:
            ValueError: módulo desconhecido, JSON inválido ou schema inválido
                (pydantic.ValidationError é subclasse de ValueError)
        """
        if name not in self._models:
            raise ValueError(f"unknown module {name!r}")

        data = json.loads(raw)
        model = self._models[name]
        if model is None:
            return data
        return model.model_validate(data)

    def encode(self, name: str, state: Union[BaseModel, Dict[str, Any]]) -> bytes:
        if name not in self._models:
            raise ValueError(f"unknown module {name!r}")
        if isinstance(state, BaseModel):
            return compact_json(state.model_dump(mode="json", by_alias=True))
        return compact_json(state)


def marshal_app_state(app_state: AppStateBundle) -> bytes:
    """Serializa o bundle como um único objeto JSON com módulos em ordem alfabética"""
    return compact_json({name: json.loads(app_state[name]) for name in sorted(app_state)})


def unmarshal_app_state(blob: Union[str, bytes]) -> AppStateBundle:
    """
    Raises:
        ValueError: blob não é um objeto JSON
    """
    data = json.loads(blob)
    if not isinstance(data, dict):
        raise ValueError("application state must be a JSON object")
    return {name: compact_json(state) for name, state in data.items()}
