"""
docker_runtime.py
-----------------
Container runtime backed by the Docker Engine API (docker SDK).

Used as a binary distribution mechanism only: create a container from an image
(pulling it first if it is not present locally), copy one file out of it, remove it.
"""

import io
import logging
import shutil
import tarfile
from pathlib import Path

import docker
from docker.models.containers import Container

from connectors.runtime_interface import ContainerRuntime, ContainerRuntimeError

logger = logging.getLogger(__name__)


class DockerContainerRuntime(ContainerRuntime):
    """
    Docker implementation of ContainerRuntime.

    Args:
        client: an existing docker.DockerClient. If not given, one is created from the
            environment (DOCKER_HOST etc.) on first use.
        timeout: per-request API timeout in seconds, used when creating the client.
    """
    def __init__(self, client: docker.DockerClient | None = None, timeout: int = 60):
        self._client = client
        self.timeout = timeout

    @property
    def client(self) -> docker.DockerClient:
        if self._client is None:
            try:
                self._client = docker.from_env(timeout=self.timeout)
            except docker.errors.DockerException as e:
                raise ContainerRuntimeError(f"Cannot connect to Docker: {e}") from e
        return self._client

    def create(self, image: str) -> Container:
        try:
            try:
                container = self.client.containers.create(image)
            except docker.errors.ImageNotFound:
                logger.info(f"Image {image} not found locally, pulling it")
                self.client.images.pull(image)
                container = self.client.containers.create(image)
        except docker.errors.DockerException as e:
            raise ContainerRuntimeError(f"Cannot create container from {image}: {e}") from e
        logger.debug(f"Created container {container.short_id} from {image}")
        return container

    def copy_file(self, container: Container, src_path: str, dest_path: Path) -> None:
        try:
            stream, stat = container.get_archive(src_path)
            archive = io.BytesIO(b"".join(stream))
        except docker.errors.DockerException as e:
            raise ContainerRuntimeError(f"Cannot read {src_path} from container {container.short_id}: {e}") from e
        logger.debug(f"Fetched {src_path} ({stat.get('size')} bytes) from container {container.short_id}")
        try:
            with tarfile.open(fileobj=archive) as tar:
                member = tar.next()
                if member is None or not member.isfile():
                    raise ContainerRuntimeError(f"{src_path} is not a regular file in container {container.short_id}")
                extracted = tar.extractfile(member)
                if extracted is None:
                    raise ContainerRuntimeError(f"Cannot extract {src_path} from container {container.short_id}")
                with open(dest_path, "wb") as out:
                    shutil.copyfileobj(extracted, out)
        except tarfile.TarError as e:
            raise ContainerRuntimeError(f"Corrupt archive for {src_path}: {e}") from e

    def remove(self, container: Container) -> None:
        try:
            container.remove(force=True)
        except docker.errors.NotFound:
            pass
        except docker.errors.DockerException as e:
            raise ContainerRuntimeError(f"Cannot remove container {container.short_id}: {e}") from e
        logger.debug(f"Removed container {container.short_id}")
