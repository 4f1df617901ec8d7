"""
binaries.py
-----------
Turns a profile descriptor into a node executable on disk.

Local descriptors point at a binary the user built themselves; image descriptors are
extracted once into build/<profile>/<binary> and reused from there on every later run.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from common.app_setup import print_and_log
from common.errors import BinaryUnavailable
from connectors.runtime_interface import ContainerRuntime, ContainerRuntimeError
from network.models import NetworkDescriptor

logger = logging.getLogger(__name__)

CACHE_DIRNAME = "build"


@dataclass(frozen=True)
class ResolvedBinary:
    """An executable that existed when it was resolved.

    ``launch_path`` is the path relative to the base directory, as written into the
    launch configuration.
    """

    path: Path
    launch_path: str


@dataclass(frozen=True)
class LocalBinary(ResolvedBinary):
    pass


@dataclass(frozen=True)
class CachedHit(ResolvedBinary):
    pass


@dataclass(frozen=True)
class Acquired(ResolvedBinary):
    image: str = ""


class BinaryResolver:
    """Resolve descriptors to binaries under ``base_dir``, extracting images through ``runtime``."""

    def __init__(self, base_dir: Path, runtime: ContainerRuntime):
        self.base_dir = Path(base_dir)
        self.runtime = runtime

    def cache_path(self, profile_name: str, descriptor: NetworkDescriptor) -> Path:
        return self.base_dir / CACHE_DIRNAME / profile_name / descriptor.binary_name

    def resolve(self, profile_name: str, descriptor: NetworkDescriptor) -> ResolvedBinary:
        # a local path always wins, even if the profile could be downloaded
        if descriptor.local_binary_path is not None:
            return self._resolve_local(descriptor.local_binary_path)
        return self._resolve_image(profile_name, descriptor)

    def _resolve_local(self, relative: str) -> LocalBinary:
        path = self.base_dir / relative
        if not path.is_file():
            print_and_log(f"     Missing {path}")
            raise BinaryUnavailable("missing local binary", path=path, log=True)
        return LocalBinary(path=path, launch_path=relative)

    def _resolve_image(self, profile_name: str, descriptor: NetworkDescriptor) -> ResolvedBinary:
        path = self.cache_path(profile_name, descriptor)
        launch_path = path.relative_to(self.base_dir).as_posix()
        if path.is_file():
            logger.debug(f"Using cached binary {path}")
            return CachedHit(path=path, launch_path=launch_path)
        print_and_log(f"     Missing {launch_path} locally, downloading it...")
        self._acquire(descriptor, path)
        print_and_log(f"     {launch_path} downloaded !")
        return Acquired(path=path, launch_path=launch_path, image=descriptor.container_image or "")

    def _acquire(self, descriptor: NetworkDescriptor, dest: Path) -> None:
        """Extract the binary into ``dest``; ``dest`` only ever appears complete."""
        image = descriptor.container_image
        assert image is not None
        container = None
        tmp: Path | None = None
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=dest.parent, prefix=f".{dest.name}.", suffix=".partial")
            os.close(fd)
            tmp = Path(tmp_name)
            container = self.runtime.create(image)
            self.runtime.copy_file(container, descriptor.image_path, tmp)
            tmp.chmod(0o755)
            os.replace(tmp, dest)
            tmp = None
        except (ContainerRuntimeError, OSError) as e:
            logger.error(f"Extracting {descriptor.image_path} from {image} failed: {e}")
            raise BinaryUnavailable("download failed", image=image, log=True) from e
        finally:
            if tmp is not None:
                tmp.unlink(missing_ok=True)
            if container is not None:
                try:
                    self.runtime.remove(container)
                except ContainerRuntimeError as e:
                    logger.warning(f"Could not remove temporary container for {image}: {e}")


__all__ = ["Acquired", "BinaryResolver", "CachedHit", "LocalBinary", "ResolvedBinary"]
