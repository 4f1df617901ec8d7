from pathlib import Path
from typing import Any, Protocol

from box import Box


class LaunchDocument(Box):
    """
    The launch configuration as handed to a process launcher: a Box (dot-access dict)
    in the polkadot-launch JSON layout.
    Examples:
        doc = LaunchDocument(config.to_launch_dict())
        doc.relaychain.bin          # 'build/kusama-v9030/polkadot'
        doc['parachains'][0].id     # 1000
    """


class ContainerRuntime(Protocol):
    """
    Protocol for a container runtime used only to extract files from images.
    Containers are created, copied from, and removed; never started.
    """
    def create(self, image: str) -> Any:
        """Create a stopped container from ``image`` (pulling it if needed). Returns a handle."""
        ...

    def copy_file(self, container: Any, src_path: str, dest_path: Path) -> None:
        """Copy the single file ``src_path`` out of the container to ``dest_path`` on the host."""
        ...

    def remove(self, container: Any) -> None: ...


class ProcessLauncher(Protocol):
    """
    Protocol for the collaborator that actually spawns the node processes.
    ``start`` is called once per run; ``stop_all`` once, from teardown only.
    """
    def start(self, base_dir: Path, config: LaunchDocument) -> None:
        """Spawn every node described by ``config``; raise if any could not be started."""
        ...

    def stop_all(self) -> None:
        """Request every started process to stop. Must tolerate a partial start."""
        ...

    def wait(self) -> int:
        """Block until the launched network exits; return its exit code."""
        ...


class ContainerRuntimeError(RuntimeError):
    """Raised by a ContainerRuntime when an image pull, create, copy or remove fails."""
