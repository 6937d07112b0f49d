# fogbed_stars/network.py

"""
Orquestração da testnet Stargaze com Fogbed

Sobe cada nó gerado pelo comando testnet como um container Fogbed e
confere que todos servem o mesmo genesis.
"""

import asyncio
import ipaddress
import os
import shutil
import time
from typing import Any, Dict, List, Optional

from fogbed import Container, FogbedExperiment

from fogbed_stars.client import AsyncStarsRpcClient
from fogbed_stars.config import RPC_PORT, TestnetConfig
from fogbed_stars.models import TestnetNode
from fogbed_stars.nodehome import NodeHome, read_config_toml, set_persistent_peers
from fogbed_stars.testnet import TestnetResult
from fogbed_stars.utils import get_logger
from fogbed_stars.utils.system import LAUNCH_WORK_DIR

logger = get_logger("network")

LIVE_DATA_DIR = os.path.join(LAUNCH_WORK_DIR, "live_data")
CONTAINER_HOME = "/data/.starsd"


class StarsNode(Container):
    """
    Container Fogbed que roda um starsd.
    """

    def __init__(self, node: TestnetNode, ip: str, home_dir: str, image: str):
        self.node = node
        self.ip_addr = ip
        self.home_dir = home_dir

        logger.debug(f"Creating StarsNode: {node.name} @ {ip}")

        super().__init__(
            name=node.name,
            dimage=image,
            ip=ip,
            volumes=[f"{home_dir}:{CONTAINER_HOME}"],
            environment={"DAEMON_HOME": CONTAINER_HOME},
            privileged=True,
            dcmd="tail -f /dev/null",
        )

    def get_start_command(self) -> str:
        """
        Sobe starsd em background + log + pid.
        """
        return (
            "set -e; "
            "mkdir -p /var/log/starsd; "
            f"nohup starsd start --home {CONTAINER_HOME} "
            "> /var/log/starsd/starsd.log 2>&1 & "
            "echo $! > /var/log/starsd/starsd.pid"
        )

    @property
    def rpc_endpoint(self) -> str:
        return f"http://{self.ip_addr}:{RPC_PORT}"


class StarsNetwork:
    """
    Orquestrador da testnet gerada.
    """

    def __init__(self, experiment: FogbedExperiment, config: TestnetConfig, result: TestnetResult):
        image = f"{config.image_repository}:{config.docker_tag}"
        logger.info(f"Initializing StarsNetwork with image: {image}")
        self.exp = experiment
        self.config = config
        self.result = result
        self.image = image
        self.nodes: List[StarsNode] = []

    # ---------- Topologia ----------

    def node_ip(self, index: int) -> str:
        return str(ipaddress.ip_address(self.config.starting_ip_address) + index)

    def build_nodes(self) -> List[StarsNode]:
        self._prepare_work_dir()
        for index, node in enumerate(self.result.nodes):
            live_home = os.path.join(LIVE_DATA_DIR, node.name)
            shutil.copytree(self.config.node_home(index), live_home)

            star = StarsNode(node, self.node_ip(index), live_home, self.image)
            self.nodes.append(star)
            logger.debug(f"✅ Node {node.name} added ({star.ip_addr})")

        self._patch_persistent_peers()
        return self.nodes

    def attach_to_experiment(self, datacenter_name: str = "cloud") -> None:
        logger.info(f"Attaching nodes to datacenter: {datacenter_name}")
        cloud = self.exp.add_virtual_instance(datacenter_name)
        for node in self.nodes:
            self.exp.add_docker(node, datacenter=cloud)
            logger.debug(f"✅ Node {node.name} attached")
        logger.info(f"✅ All nodes attached to {datacenter_name}")

    # ---------- Lifecycle ----------

    def start(self) -> None:
        logger.info("=" * 60)
        logger.info("Starting Stargaze Testnet")
        logger.info("=" * 60)

        self._boot()
        self.verify_genesis()

        logger.info("=" * 60)
        logger.info("✅ Stargaze Testnet Successfully Started!")
        logger.info("=" * 60)
        self._print_network_summary()

    # ---------- Internals ----------

    def _prepare_work_dir(self) -> None:
        logger.debug(f"Cleaning up work directory: {LAUNCH_WORK_DIR}")
        if os.path.exists(LAUNCH_WORK_DIR):
            shutil.rmtree(LAUNCH_WORK_DIR)
        os.makedirs(LIVE_DATA_DIR, exist_ok=True)

    def _patch_persistent_peers(self) -> None:
        """Troca nomes de serviço por IPs dos containers nos persistent_peers"""
        ips = {node.node.name: node.ip_addr for node in self.nodes}
        for node in self.nodes:
            home = NodeHome(node.home_dir)
            peers = read_config_toml(home).get("p2p", {}).get("persistent_peers", "")
            patched = []
            for peer in filter(None, peers.split(",")):
                node_id, host_port = peer.split("@", 1)
                host, port = host_port.rsplit(":", 1)
                patched.append(f"{node_id}@{ips.get(host, host)}:{port}")
            set_persistent_peers(home, ",".join(patched))
        logger.info("✅ persistent_peers patched with container IPs")

    def _boot(self) -> None:
        logger.info("🚀 Booting starsd nodes")
        for node in self.nodes:
            logger.info(f"Booting node: {node.name} (ip={node.ip_addr})")
            node.cmd(node.get_start_command())
            self._wait_node_process(node)
        for node in self.nodes:
            self._wait_port_open(node, RPC_PORT)
        logger.info("✅ All nodes booted successfully")

    def _wait_node_process(self, node: StarsNode, timeout: int = 25) -> None:
        deadline = time.time() + timeout
        while time.time() < deadline:
            out = node.cmd(
                "sh -lc \""
                "test -f /var/log/starsd/starsd.pid && "
                "ps -p $(cat /var/log/starsd/starsd.pid) >/dev/null 2>&1 "
                "&& echo OK || echo NOK\""
            )
            if "OK" in out:
                return
            time.sleep(1)

        tail = node.cmd("sh -lc \"tail -n 200 /var/log/starsd/starsd.log 2>/dev/null || true\"")
        raise RuntimeError(f"starsd failed to start on {node.name}. Last log:\n{tail}")

    def _wait_port_open(self, node: StarsNode, port: int, timeout: int = 90) -> None:
        deadline = time.time() + timeout
        while time.time() < deadline:
            out = node.cmd(
                f"sh -lc \""
                f"(ss -lnt 2>/dev/null || netstat -lnt 2>/dev/null) "
                f"| grep -q ':{port} ' && echo OK || echo NOK\""
            )
            if "OK" in out:
                return
            time.sleep(1)

        tail = node.cmd("sh -lc \"tail -n 220 /var/log/starsd/starsd.log 2>/dev/null || true\"")
        raise RuntimeError(f"Port {port} did not open on {node.name}. Last log:\n{tail}")

    # ---------- Verificação ----------

    async def _fetch_geneses(self) -> List[Dict[str, Any]]:
        async def fetch(node: StarsNode) -> Dict[str, Any]:
            async with AsyncStarsRpcClient(node.rpc_endpoint) as client:
                return await client.genesis()

        return await asyncio.gather(*(fetch(node) for node in self.nodes))

    def verify_genesis(self, geneses: Optional[List[Dict[str, Any]]] = None) -> None:
        """Todos os nós precisam servir o mesmo genesis_time e app_state"""
        if geneses is None:
            geneses = asyncio.run(self._fetch_geneses())
        check_genesis_agreement([node.name for node in self.nodes], geneses)
        logger.info(f"✅ {len(geneses)} nodes agree on genesis")

    def _print_network_summary(self) -> None:
        logger.info("")
        logger.info("📊 Network Summary:")
        logger.info(f" Chain ID: {self.config.chain_id}")
        logger.info(f" Validators: {len(self.nodes)}")
        for node in self.nodes:
            logger.info(f" - {node.name}: {node.ip_addr} (RPC {node.rpc_endpoint})")
        logger.info("")


def check_genesis_agreement(names: List[str], geneses: List[Dict[str, Any]]) -> None:
    """
    Raises:
        RuntimeError: algum nó diverge do primeiro
    """
    if not geneses:
        raise RuntimeError("No genesis documents to compare")

    reference = geneses[0]
    for name, genesis in zip(names[1:], geneses[1:]):
        for key in ("genesis_time", "app_state"):
            if genesis.get(key) != reference.get(key):
                raise RuntimeError(f"Node {name} disagrees on {key} with {names[0]}")
