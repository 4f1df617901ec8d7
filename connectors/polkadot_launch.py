"""
polkadot_launch.py
------------------
Process launcher that delegates node spawning to the polkadot-launch CLI.

The launch document is written as JSON next to the binaries (polkadot-launch resolves
``bin`` paths relative to its config file), then polkadot-launch runs as a child in its
own session. Stopping walks the child's process tree with psutil, since polkadot-launch
forks one process per node.
"""

import json
import logging
import subprocess
import time
from pathlib import Path
from typing import Sequence

import psutil

from connectors.runtime_interface import LaunchDocument, ProcessLauncher

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "launch-config.json"


class PolkadotLaunchProcessLauncher(ProcessLauncher):
    """
    Args:
        command: the polkadot-launch executable (and any leading arguments).
        startup_grace: seconds to wait after spawning before checking that it is still alive.
        stop_timeout: seconds to wait for processes to exit after SIGTERM before SIGKILL.
    """
    def __init__(self, command: Sequence[str] = ("polkadot-launch",), startup_grace: float = 2.0, stop_timeout: float = 10.0):
        self.command = list(command)
        self.startup_grace = startup_grace
        self.stop_timeout = stop_timeout
        self._proc: subprocess.Popen | None = None

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc is not None else None

    def start(self, base_dir: Path, config: LaunchDocument) -> None:
        if self._proc is not None:
            raise RuntimeError("polkadot-launch already started")
        config_path = Path(base_dir) / CONFIG_FILENAME
        config_path.write_text(json.dumps(config.to_dict(), indent=2))
        cmd = self.command + [str(config_path)]
        logger.info(f"Starting {' '.join(cmd)} in {base_dir}")
        # OSError (e.g. polkadot-launch not installed) propagates to the caller
        self._proc = subprocess.Popen(cmd, cwd=base_dir, start_new_session=True)
        time.sleep(self.startup_grace)
        returncode = self._proc.poll()
        if returncode is not None:
            raise RuntimeError(f"polkadot-launch exited with code {returncode} during startup")
        logger.info(f"polkadot-launch running with PID {self._proc.pid}")

    def wait(self) -> int:
        if self._proc is None:
            return 0
        return self._proc.wait()

    def stop_all(self) -> None:
        if self._proc is None:
            logger.debug("stop_all: nothing was started")
            return
        try:
            root = psutil.Process(self._proc.pid)
            procs = root.children(recursive=True) + [root]
        except psutil.NoSuchProcess:
            procs = []
        for proc in procs:
            try:
                proc.terminate()
            except psutil.NoSuchProcess:
                continue
        gone, alive = psutil.wait_procs(procs, timeout=self.stop_timeout)
        for proc in alive:
            logger.warning(f"Process {proc.pid} did not exit after SIGTERM, killing it")
            try:
                proc.kill()
            except psutil.NoSuchProcess:
                continue
        # reap our direct child
        try:
            self._proc.wait(timeout=self.stop_timeout)
        except subprocess.TimeoutExpired:
            logger.error(f"polkadot-launch (PID {self._proc.pid}) still running after kill")
        logger.info(f"Stopped {len(procs)} process(es)")
