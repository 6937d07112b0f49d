# fogbed_stars/utils/validation.py
"""
Validação de inputs para fogbed-stars
"""

import re
from ipaddress import ip_address, AddressValueError
from fogbed_stars.utils.logging import get_logger

logger = get_logger('validation')

# Regras de denom do Cosmos SDK: letra inicial + 2..127 chars
DENOM_PATTERN = re.compile(r'^[a-zA-Z][a-zA-Z0-9/:._-]{2,127}$')

# Chain-id do Tendermint: até 50 chars, sem espaços
CHAIN_ID_PATTERN = re.compile(r'^[^\s]{1,50}$')


def validate_ip(ip_str):
    """
    Validar endereço IP

    Args:
        ip_str: String de IP

    Returns:
        bool: IP válido
    """
    try:
        ip_address(ip_str)
        logger.debug(f"✅ Valid IP: {ip_str}")
        return True
    except (AddressValueError, ValueError) as e:
        logger.error(f"❌ Invalid IP: {ip_str} - {str(e)}")
        return False


def validate_port(port):
    """
    Validar porta (1-65535)

    Args:
        port: Número da porta

    Returns:
        bool: Porta válida
    """
    try:
        port_num = int(port)
        valid = 1 <= port_num <= 65535

        if not valid:
            logger.error(f"❌ Port out of range: {port_num}")
        else:
            logger.debug(f"✅ Valid port: {port_num}")

        return valid

    except (ValueError, TypeError):
        logger.error(f"❌ Invalid port type: {port}")
        return False


def validate_node_name(name):
    """
    Validar nome de nó (vira nome de serviço/container e moniker)

    Args:
        name: Nome do nó

    Returns:
        bool: Nome válido
    """
    # Docker: lowercase, numbers, dash, underscore, max 63 chars
    pattern = r'^[a-z0-9_-]{1,63}$'

    valid = bool(re.match(pattern, name))

    if valid:
        logger.debug(f"✅ Valid node name: {name}")
    else:
        logger.error(f"❌ Invalid node name: {name}")

    return valid


def validate_denom(denom):
    """Validar denom de coin (ex: ustarx)"""
    valid = bool(DENOM_PATTERN.match(denom or ''))
    if not valid:
        logger.error(f"❌ Invalid denom: {denom}")
    return valid


def validate_chain_id(chain_id):
    """Validar chain-id do genesis"""
    valid = bool(CHAIN_ID_PATTERN.match(chain_id or ''))
    if not valid:
        logger.error(f"❌ Invalid chain-id: {chain_id!r}")
    return valid


def validate_port_allocation(nodes):
    """
    Validar que blocos de portas dos nós são crescentes e não se sobrepõem

    Args:
        nodes: Lista de TestnetNode

    Returns:
        tuple: (bool, list of errors)
    """

    errors = []
    last_port = None

    for node in nodes:
        ports = node.host_ports()
        for port in ports:
            if not validate_port(port):
                errors.append(f"Invalid port for {node.name}: {port}")
        if last_port is not None and min(ports) <= last_port:
            errors.append(f"Overlapping port block for {node.name}: {min(ports)} <= {last_port}")
        last_port = max(ports)

    if errors:
        logger.error("❌ Port allocation validation failed:")
        for error in errors:
            logger.error(f"   - {error}")
        return (False, errors)

    logger.debug(f"✅ Valid port allocation for {len(nodes)} nodes")
    return (True, [])
