# fogbed_stars/genesis/__init__.py
"""
Genesis: codec de módulos, composição do template e coleta canônica
"""

from .codec import GenesisCodec, marshal_app_state, unmarshal_app_state
from .document import GenesisDocument, format_timestamp, parse_timestamp
from .modules import new_stargaze_codec
from .composer import GenesisStateComposer
from .genutil import InitConfig, collect_txs, gen_app_state_from_config
from .collector import CollectionResult, GenesisCollector

__all__ = [
    'GenesisCodec',
    'marshal_app_state',
    'unmarshal_app_state',
    'GenesisDocument',
    'format_timestamp',
    'parse_timestamp',
    'new_stargaze_codec',
    'GenesisStateComposer',
    'InitConfig',
    'collect_txs',
    'gen_app_state_from_config',
    'CollectionResult',
    'GenesisCollector',
]
