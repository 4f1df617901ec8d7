"""Shared fixtures: in-memory stand-ins for the container runtime and the process launcher."""

from pathlib import Path

import pytest

from connectors.runtime_interface import ContainerRuntimeError, LaunchDocument
from network.registry import default_registry


class FakeContainerRuntime:
    """Serves file contents per image; records every call."""

    def __init__(self, files: dict[str, bytes] | None = None):
        self.files = files if files is not None else {}
        self.calls: list[tuple] = []
        self.live: set[int] = set()
        self.fail_copy = False
        self._next = 0

    def create(self, image):
        self.calls.append(("create", image))
        if image not in self.files:
            raise ContainerRuntimeError(f"pull access denied for {image}")
        self._next += 1
        self.live.add(self._next)
        return (self._next, image)

    def copy_file(self, container, src_path, dest_path: Path):
        self.calls.append(("copy_file", container[1], src_path))
        if self.fail_copy:
            # leave a partial file behind, like an interrupted copy would
            Path(dest_path).write_bytes(b"\x7fEL")
            raise ContainerRuntimeError(f"Could not find the file {src_path} in container")
        Path(dest_path).write_bytes(self.files[container[1]])

    def remove(self, container):
        self.calls.append(("remove", container[1]))
        self.live.discard(container[0])

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


class FakeProcessLauncher:
    def __init__(self, fail_on_start: bool = False, exit_code: int = 0):
        self.fail_on_start = fail_on_start
        self.exit_code = exit_code
        self.started: list[tuple[Path, LaunchDocument]] = []
        self.stop_calls = 0

    def start(self, base_dir, config):
        self.started.append((base_dir, config))
        if self.fail_on_start:
            raise RuntimeError("node bob failed to start")

    def stop_all(self):
        self.stop_calls += 1

    def wait(self):
        return self.exit_code


@pytest.fixture(autouse=True)
def logfile(tmp_path, monkeypatch):
    """Keep log output out of the home directory."""
    path = tmp_path / "paralaunch.log"
    monkeypatch.setenv("PARALAUNCH_LOGFILE", str(path))
    return path


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture
def base_dir(tmp_path):
    path = tmp_path / "tools"
    path.mkdir()
    return path


@pytest.fixture
def container_runtime():
    return FakeContainerRuntime({
        "purestake/moonbase-relay-testnet:sha-aa386760": b"polkadot-binary",
        "purestake/moonbase-relay-testnet:kusama-v0.9.3-fast": b"polkadot-fast-binary",
        "purestake/moonbeam:moonriver-genesis": b"moonbeam-binary",
        "purestake/moonbase-parachain:moonriver-genesis-fast": b"moonbeam-fast-binary",
        "purestake/moonbeam:v0.8.1": b"moonbeam-0.8.1-binary",
    })


@pytest.fixture
def process_launcher():
    return FakeProcessLauncher()
