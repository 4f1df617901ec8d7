"""
orchestrator.py
---------------
Owns the lifecycle of one test network run.

    idle -> starting -> running -> stopping -> stopped

Teardown has one entry point, ``teardown()``, which is registered with atexit.
The SIGINT handler only calls sys.exit(), so an interrupt and a normal exit both
reach teardown through the same atexit path. teardown() runs the stop sequence to
completion at most once, whatever state the session reached. SIGINT is ignored while the
nodes are being stopped; a stop that is still cut short leaves the session in
STOPPING and lets the next teardown() call run it again.
"""

import atexit
import logging
import signal
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from common.app_setup import print_and_log
from common.errors import LaunchFailure
from connectors.runtime_interface import LaunchDocument, ProcessLauncher
from network.models import LaunchConfiguration

logger = logging.getLogger(__name__)

INTERRUPT_EXIT_CODE = 2


class SessionState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass
class RunSession:
    """The processes started for one launch configuration."""

    config: LaunchConfiguration
    state: SessionState = SessionState.IDLE
    errors: list[str] = field(default_factory=list)


class LaunchOrchestrator:
    """
    Start a LaunchConfiguration through a ProcessLauncher and guarantee it is stopped.

    Args:
        base_dir: directory the launcher resolves binary paths against.
        launcher: the ProcessLauncher collaborator.
    """

    def __init__(self, base_dir: Path, launcher: ProcessLauncher):
        self.base_dir = Path(base_dir)
        self.launcher = launcher
        self.session: RunSession | None = None
        self._teardown_lock = threading.Lock()
        self._teardown_done = False
        self._original_sigint_handler = None

    @property
    def state(self) -> SessionState:
        return self.session.state if self.session else SessionState.IDLE

    def install_handlers(self) -> None:
        """Register teardown for normal interpreter exit, and make SIGINT exit the process."""
        atexit.register(self.teardown)
        self._original_sigint_handler = signal.signal(signal.SIGINT, self._on_interrupt)

    def remove_handlers(self) -> None:
        atexit.unregister(self.teardown)
        if self._original_sigint_handler is not None:
            signal.signal(signal.SIGINT, self._original_sigint_handler)
            self._original_sigint_handler = None

    def _on_interrupt(self, signum, frame):
        logger.info("Interrupt received, exiting")
        sys.exit(INTERRUPT_EXIT_CODE)

    def launch(self, config: LaunchConfiguration) -> RunSession:
        if self.session is not None:
            raise RuntimeError("launch() may only be called once per orchestrator")
        self.session = RunSession(config=config, state=SessionState.STARTING)
        logger.info(f"Starting {config.node_count} nodes from {self.base_dir}")
        try:
            self.launcher.start(self.base_dir, LaunchDocument(config.to_launch_dict()))
        except Exception as e:
            # some nodes may already be up
            self.session.errors.append(str(e))
            self.teardown()
            raise LaunchFailure(f"Failed to start network: {e}", log=True) from e
        self.session.state = SessionState.RUNNING
        print_and_log(f"Network running ({config.node_count} nodes). Press Ctrl+C to stop.")
        return self.session

    def wait(self) -> int:
        """Block until the launched processes exit. Returns their exit code."""
        if self.state is not SessionState.RUNNING:
            return 0
        return self.launcher.wait()

    def teardown(self) -> None:
        """Stop everything that was started. Safe to call any number of times."""
        with self._teardown_lock:
            if self._teardown_done:
                return
            self._teardown_done = True
        if self.session is None:
            logger.debug("Teardown before launch, nothing to stop")
            return
        self.session.state = SessionState.STOPPING
        try:
            with _sigint_ignored():
                self.launcher.stop_all()
        except Exception as e:
            logger.error(f"Error while stopping nodes: {e}")
            self.session.errors.append(str(e))
        except BaseException:
            # stop sequence cut short, the atexit call has to run it again
            logger.warning("Teardown interrupted before all nodes were stopped")
            with self._teardown_lock:
                self._teardown_done = False
            raise
        self.session.state = SessionState.STOPPED
        logger.info("All nodes stopped")


@contextmanager
def _sigint_ignored():
    """Ignore SIGINT while the process tree is being killed. No-op outside the main thread."""
    try:
        previous = signal.signal(signal.SIGINT, signal.SIG_IGN)
    except ValueError:
        yield
        return
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous if previous is not None else signal.default_int_handler)


__all__ = ["LaunchOrchestrator", "RunSession", "SessionState"]
