#!/usr/bin/env python3

import sys
import os
# Adiciona o diretório pai ao path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fogbed import FogbedExperiment
from mininet.log import setLogLevel, info

from fogbed_stars import TestnetConfig, TestnetCoordinator
from fogbed_stars.client import StarsRpcClient
from fogbed_stars.network import StarsNetwork


def main():
    setLogLevel("info")

    # 3 validadores a partir de 10.0.0.1
    config = TestnetConfig(
        num_validators=3,
        output_dir="/tmp/stars_example",
        chain_id="stars-example-1",
        starting_ip_address="10.0.0.1",
    )
    result = TestnetCoordinator(config).run()

    exp = FogbedExperiment()
    stars_net = StarsNetwork(exp, config, result)
    stars_net.build_nodes()
    stars_net.attach_to_experiment(datacenter_name="cloud")

    info("=== Iniciando FogbedExperiment ===\n")
    exp.start()

    try:
        info("=== Iniciando StarsNetwork ===\n")
        stars_net.start()

        print("🔍 Consultando status do node0...")
        client = StarsRpcClient(stars_net.nodes[0].rpc_endpoint)
        status = client.status()
        print(f"Network: {status['node_info']['network']}")
        print(f"Peers: {client.net_info()['n_peers']}")

        input("Pressione ENTER para encerrar...\n")
    finally:
        exp.stop()


if __name__ == "__main__":
    main()
