#!/usr/bin/env python3
"""
CLI do fogbed-stars

    fogbed-stars testnet --v 4 -o ./mytestnet
    fogbed-stars launch --v 4
    fogbed-stars export-hub-snapshot genesis.json snapshot.json --exchanges a,b
    fogbed-stars status | clean [-f]
"""

import argparse
import os
import sys
from typing import List, Optional

from fogbed_stars.config import DEFAULT_BOND_DENOM, DEFAULT_IMAGE_REPOSITORY, P2P_PORT, TestnetConfig
from fogbed_stars.exceptions import ConfigurationError, TestnetError
from fogbed_stars.snapshot import EXCHANGES_ENV, HubSnapshotExporter, parse_exchanges
from fogbed_stars.testnet import TestnetCoordinator
from fogbed_stars.utils import check_system_state, cleanup_system, setup_logging


def add_testnet_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--v', type=int, default=4,
                        help='Number of validators to initialize the testnet with')
    parser.add_argument('-o', '--output-dir', default='./mytestnet',
                        help='Directory to store initialization data for the testnet')
    parser.add_argument('--node-dir-prefix', default='node',
                        help='Prefix the directory name for each node with (node results in node0, node1, ...)')
    parser.add_argument('--node-daemon-home', default='starsd',
                        help="Home directory of the node's daemon configuration")
    parser.add_argument('--starting-ip-address', default='192.168.0.1',
                        help='Starting IP address (192.168.0.1 results in 192.168.0.1, 192.168.0.2, ...)')
    parser.add_argument('--starting-port', type=int, default=P2P_PORT,
                        help='First host port used in docker-compose (5 ports per node)')
    parser.add_argument('--chain-id', default='',
                        help='Genesis file chain-id, if left blank will be randomly created')
    parser.add_argument('--minimum-gas-prices', default=f'0.000006{DEFAULT_BOND_DENOM}',
                        help='Minimum gas prices to accept for transactions')
    parser.add_argument('--keyring-backend', default='test',
                        help="Select keyring's backend (test|file|memory)")
    parser.add_argument('--algo', default='secp256k1',
                        help='Key signing algorithm to generate keys for')
    parser.add_argument('--stake-denom', default=DEFAULT_BOND_DENOM,
                        help="App's stake denom")
    parser.add_argument('--unbonding-period', default='72h',
                        help="App's unbonding period")
    parser.add_argument('--coins', default=f'1000000000{DEFAULT_BOND_DENOM}',
                        help='Validator genesis coins')
    parser.add_argument('--initial-staking-amount', type=int, default=100000000,
                        help='Initial self-delegation of each validator')
    parser.add_argument('--docker-tag', default='latest',
                        help='Docker tag for the testnet descriptor')
    parser.add_argument('--image-repository', default=DEFAULT_IMAGE_REPOSITORY,
                        help='Docker image repository')
    parser.add_argument('--keep-on-failure', action='store_true',
                        help='Keep partial output when initialization fails')


def cmd_testnet(args):
    """Gera os diretórios da testnet"""
    config = TestnetConfig.from_args(args)
    TestnetCoordinator(config).run()
    print(f"Successfully initialized {config.num_validators} node directories", file=sys.stderr)


def cmd_launch(args):
    """Gera a testnet e sobe os nós no Fogbed"""
    # fogbed é opcional: só importado aqui
    try:
        from fogbed import FogbedExperiment
        from fogbed_stars.network import StarsNetwork
    except ImportError as e:
        raise ConfigurationError(f"launch requires the 'fogbed' extra (pip install fogbed-stars[fogbed]): {e}")

    config = TestnetConfig.from_args(args)
    result = TestnetCoordinator(config).run()
    print(f"Successfully initialized {config.num_validators} node directories", file=sys.stderr)

    exp = FogbedExperiment()
    network = StarsNetwork(exp, config, result)
    network.build_nodes()
    network.attach_to_experiment()

    exp.start()
    try:
        network.start()
        input("Pressione ENTER para encerrar...\n")
    except RuntimeError as e:
        raise TestnetError(f"launch failed: {e}") from e
    finally:
        exp.stop()


def cmd_export_hub_snapshot(args):
    """Exporta snapshot de elegibilidade de um genesis do Hub"""
    exchanges = parse_exchanges(args.exchanges if args.exchanges is not None else os.getenv(EXCHANGES_ENV))
    HubSnapshotExporter(exchanges).export(args.genesis, args.output)


def cmd_status(args):
    """Mostra estado atual do sistema"""
    state = check_system_state()

    print("📊 Estado do Sistema Stars+Fogbed\n")
    print(f"Containers Mininet: {len(state['mininet_containers'])}")
    for c in state['mininet_containers']:
        print(f"  - {c}")

    print(f"\nDiretório de trabalho: {'Sim' if state['work_dirs_exist'] else 'Não'}")
    if state['work_dirs_exist']:
        print(f"  Tamanho: {state['work_dir_size']} MB")


def cmd_clean(args):
    """Limpa sistema"""
    cleanup_system(force=args.force)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='fogbed-stars',
        description="Bootstrap de testnet Stargaze (starsd) + Fogbed",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('--log-level', default='INFO', help='Nível de log (DEBUG, INFO, ...)')
    parser.add_argument('--log-file', default=None, help='Arquivo de log opcional')

    subparsers = parser.add_subparsers(dest='command', help='Comandos')

    # testnet
    testnet_parser = subparsers.add_parser('testnet', help='Initialize files for a starsd testnet')
    add_testnet_flags(testnet_parser)

    # launch
    launch_parser = subparsers.add_parser('launch', help='Initialize and boot the testnet on Fogbed')
    add_testnet_flags(launch_parser)

    # export-hub-snapshot
    snapshot_parser = subparsers.add_parser('export-hub-snapshot',
                                            help='Export snapshot from a Cosmos Hub genesis export')
    snapshot_parser.add_argument('genesis', help='Input genesis file')
    snapshot_parser.add_argument('output', help='Output snapshot JSON')
    snapshot_parser.add_argument('--exchanges', default=None,
                                 help=f'Comma-separated exchange validator addresses (default: ${EXCHANGES_ENV})')

    # status
    subparsers.add_parser('status', help='Mostra estado do sistema')

    # clean
    clean_parser = subparsers.add_parser('clean', help='Limpa sistema')
    clean_parser.add_argument('-f', '--force', action='store_true',
                              help='Não pedir confirmação')

    return parser


COMMANDS = {
    'testnet': cmd_testnet,
    'launch': cmd_launch,
    'export-hub-snapshot': cmd_export_hub_snapshot,
    'status': cmd_status,
    'clean': cmd_clean,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_file=args.log_file)

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        handler(args)
    except TestnetError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
