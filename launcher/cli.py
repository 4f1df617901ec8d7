"""
This file is the entry point for the 'paralaunch' command-line tool.
Run 'paralaunch <parachain-profile>' to start a local relay chain + parachain network.
The network runs until polkadot-launch exits or Ctrl+C is pressed; every node is stopped on exit.
"""
import json
import logging
from pathlib import Path

import typer

from common.app_setup import print_and_log, print_error, setup_logging
from common.errors import BinaryUnavailable, InvalidSelection, LaunchFailure
from connectors.docker_runtime import DockerContainerRuntime
from connectors.polkadot_launch import PolkadotLaunchProcessLauncher
from connectors.runtime_interface import ContainerRuntime, ProcessLauncher
from launcher.binaries import BinaryResolver
from launcher.orchestrator import LaunchOrchestrator
from launcher.topology import DEFAULT_PARACHAIN_ID, TopologyBuilder, usage
from network.registry import ProfileRegistry, default_registry

# binaries and the build/ cache live next to the tool
BASE_DIR = Path(__file__).resolve().parents[1]

app = typer.Typer(add_completion=False, help="Launch a local relay chain + parachain test network.")


def make_container_runtime() -> ContainerRuntime:
    return DockerContainerRuntime()


def make_process_launcher() -> ProcessLauncher:
    return PolkadotLaunchProcessLauncher()


def load_registry(profiles: Path | None) -> ProfileRegistry:
    if profiles is None:
        return default_registry()
    return ProfileRegistry.from_file(profiles)


@app.command()
def launch(
    parachain: list[str] | None = typer.Argument(None, help="Parachain profile to launch", show_default=False),
    relay: str | None = typer.Option(None, "--relay", help="Relay profile (default: the parachain's own relay)"),
    parachain_id: int = typer.Option(DEFAULT_PARACHAIN_ID, "--parachain-id", help="Numeric parachain id"),
    profiles: Path | None = typer.Option(None, "--profiles", help="YAML/JSON file with relay and parachain profiles", dir_okay=False),
    base_dir: Path = typer.Option(BASE_DIR, "--base-dir", help="Directory holding binaries and the build/ cache", file_okay=False),
    list_profiles: bool = typer.Option(False, "--list-profiles", help="Print the available profiles and exit"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Resolve binaries and print the launch configuration only"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug messages"),
):
    """Resolve the profiles, fetch missing binaries and start the network."""
    setup_logging(app_name="paralaunch", loglevel=logging.DEBUG if verbose else logging.INFO)

    try:
        registry = load_registry(profiles)
    except (OSError, ValueError) as e:
        print_error(f"Cannot load profiles from {profiles}: {e}")
        raise typer.Exit(1)

    if list_profiles:
        print_and_log(f"Parachains: {', '.join(registry.list_parachain_names())}")
        print_and_log(f"Relays: {', '.join(registry.list_relay_names())}")
        return

    builder = TopologyBuilder(registry, BinaryResolver(base_dir, make_container_runtime()))
    try:
        config = builder.build(parachain or [], relay_override=relay, parachain_id=parachain_id)
    except InvalidSelection as e:
        print_error(e.message)
        if e.reason in ("argument count", "parachain id"):
            print_error(usage(registry))
        else:
            print_error(f"Expected one of: {', '.join(e.valid_names)}")
        raise typer.Exit(1)
    except BinaryUnavailable as e:
        print_error(f"Binary unavailable - {e.message}")
        raise typer.Exit(1)

    if dry_run:
        typer.echo(json.dumps(config.to_launch_dict(), indent=2))
        return

    orchestrator = LaunchOrchestrator(base_dir, make_process_launcher())
    orchestrator.install_handlers()
    try:
        orchestrator.launch(config)
        code = orchestrator.wait()
    except LaunchFailure as e:
        print_error(e.message)
        raise typer.Exit(2)
    finally:
        orchestrator.teardown()
        orchestrator.remove_handlers()
    if code != 0:
        print_error(f"polkadot-launch exited with code {code}")
    raise typer.Exit(code)


def main():
    app()


if __name__ == "__main__":
    main()
