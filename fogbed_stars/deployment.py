# fogbed_stars/deployment.py

"""
Descriptor de deployment (docker-compose.yml) da testnet
"""

from pathlib import Path
from typing import Optional, Sequence, Union

import yaml

from fogbed_stars.config import API_PORT, DEFAULT_IMAGE_REPOSITORY, GRPC_PORT
from fogbed_stars.exceptions import TemplatingError
from fogbed_stars.models import TestnetNode
from fogbed_stars.utils import get_logger, write_file

logger = get_logger('deployment')

DESCRIPTOR_FILE = "docker-compose.yml"
CONTAINER_HOME = "/data/.starsd/"

COMPOSE_HEADER = """# Stargaze Testnet
version: '3.1'
services:
"""

SERVICE_TEMPLATE = """  {name}:
    image: {image}:{tag}
    restart: always
    ports:
      - {outside_port_range}:{inside_port_range}
      - {api_port}:{inside_api_port}
      - {grpc_port}:{inside_grpc_port}
    volumes:
      - ./{name}/{daemon_home}:{container_home}
"""


class DeploymentDescriptorGenerator:
    """
    Renderiza um serviço por nó (puro e determinístico)

    Exemplos de uso:
        >>> generator = DeploymentDescriptorGenerator(tag="v1")
        >>> text = generator.render(nodes)
        >>> generator.write(nodes, "./mytestnet")
    """

    def __init__(
        self,
        tag: str = "latest",
        image_repository: str = DEFAULT_IMAGE_REPOSITORY,
        daemon_home: str = "starsd",
    ):
        self.tag = tag
        self.image_repository = image_repository
        self.daemon_home = daemon_home

    def render(self, nodes: Sequence[TestnetNode]) -> str:
        """
        Raises:
            TemplatingError: falha de renderização ou YAML inválido
        """
        text = COMPOSE_HEADER
        for node in nodes:
            try:
                text += SERVICE_TEMPLATE.format(
                    image=self.image_repository,
                    tag=self.tag,
                    daemon_home=self.daemon_home,
                    container_home=CONTAINER_HOME,
                    inside_api_port=API_PORT,
                    inside_grpc_port=GRPC_PORT,
                    **node.to_dict(),
                )
            except (KeyError, IndexError, ValueError) as e:
                raise TemplatingError(f"failed to render service {getattr(node, 'name', node)!r}: {e}") from e

        self._check(text, nodes)
        return text

    def _check(self, text: str, nodes: Sequence[TestnetNode]) -> None:
        """Relê o texto como YAML e confere um serviço por nó"""
        try:
            parsed = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise TemplatingError(f"rendered descriptor is not valid YAML: {e}") from e

        services = (parsed or {}).get("services") or {}
        if len(services) != len(nodes):
            raise TemplatingError(f"rendered descriptor has {len(services)} services, expected {len(nodes)}")

    def write(self, nodes: Sequence[TestnetNode], output_dir: Union[str, Path], text: Optional[str] = None) -> Path:
        text = text if text is not None else self.render(nodes)
        try:
            path = write_file(output_dir, DESCRIPTOR_FILE, text)
        except OSError as e:
            raise TemplatingError(f"cannot write {DESCRIPTOR_FILE}: {e}") from e
        logger.info(f"✅ Deployment descriptor written: {path}")
        return path
