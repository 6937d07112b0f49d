# fogbed_stars/utils/__init__.py

"""
Utilities para fogbed-stars
"""

from .logging import setup_logging, get_logger, logger
from .system import (
    write_file,
    OutputTree,
    managed_output_dir,
    check_system_state,
    cleanup_system,
    DIR_PERM,
    FILE_PERM,
    SECRET_FILE_PERM,
)
from .validation import (
    validate_ip,
    validate_port,
    validate_node_name,
    validate_denom,
    validate_chain_id,
    validate_port_allocation,
)

__all__ = [
    # Logging
    'setup_logging',
    'get_logger',
    'logger',

    # System
    'write_file',
    'OutputTree',
    'managed_output_dir',
    'check_system_state',
    'cleanup_system',
    'DIR_PERM',
    'FILE_PERM',
    'SECRET_FILE_PERM',

    # Validation
    'validate_ip',
    'validate_port',
    'validate_node_name',
    'validate_denom',
    'validate_chain_id',
    'validate_port_allocation',
]
