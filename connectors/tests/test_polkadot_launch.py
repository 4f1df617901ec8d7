import json
import sys
import time

import psutil
import pytest

from connectors.polkadot_launch import CONFIG_FILENAME, PolkadotLaunchProcessLauncher
from connectors.runtime_interface import LaunchDocument

SLEEPER = "import time; time.sleep(60)"
# a launcher that forks one "node" and keeps running, like polkadot-launch does
FORKER = (
    "import subprocess, sys, time; "
    f"subprocess.Popen([sys.executable, '-c', {SLEEPER!r}]); "
    "time.sleep(60)"
)


def stopped(proc: psutil.Process) -> bool:
    try:
        return not proc.is_running() or proc.status() == psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return True


@pytest.fixture
def document():
    return LaunchDocument({"relaychain": {"bin": "build/kusama-v9030/polkadot"}, "parachains": [{"id": 1000}]})


def test_start_writes_config_and_runs(tmp_path, document):
    launcher = PolkadotLaunchProcessLauncher(command=[sys.executable, "-c", SLEEPER], startup_grace=0.2, stop_timeout=5)
    try:
        launcher.start(tmp_path, document)
        assert json.loads((tmp_path / CONFIG_FILENAME).read_text()) == document.to_dict()
        proc = psutil.Process(launcher.pid)
        assert str(tmp_path / CONFIG_FILENAME) in proc.cmdline()
    finally:
        launcher.stop_all()
    assert launcher.wait() is not None


def test_stop_all_kills_process_tree(tmp_path, document):
    launcher = PolkadotLaunchProcessLauncher(command=[sys.executable, "-c", FORKER], startup_grace=0.5, stop_timeout=5)
    launcher.start(tmp_path, document)
    children = []
    for _ in range(20):
        children = psutil.Process(launcher.pid).children(recursive=True)
        if children:
            break
        time.sleep(0.1)
    assert children
    launcher.stop_all()
    for child in children:
        assert stopped(child)


def test_early_exit_is_a_start_failure(tmp_path, document):
    launcher = PolkadotLaunchProcessLauncher(command=[sys.executable, "-c", "import sys; sys.exit(3)"], startup_grace=0.5)
    with pytest.raises(RuntimeError, match="exited with code 3"):
        launcher.start(tmp_path, document)
    launcher.stop_all()


def test_missing_executable(tmp_path, document):
    launcher = PolkadotLaunchProcessLauncher(command=["paralaunch-no-such-binary"], startup_grace=0)
    with pytest.raises(OSError):
        launcher.start(tmp_path, document)
    launcher.stop_all()


def test_stop_all_without_start_is_noop():
    launcher = PolkadotLaunchProcessLauncher()
    launcher.stop_all()
    assert launcher.pid is None
    assert launcher.wait() == 0


def test_cannot_start_twice(tmp_path, document):
    launcher = PolkadotLaunchProcessLauncher(command=[sys.executable, "-c", SLEEPER], startup_grace=0)
    try:
        launcher.start(tmp_path, document)
        with pytest.raises(RuntimeError, match="already started"):
            launcher.start(tmp_path, document)
    finally:
        launcher.stop_all()
