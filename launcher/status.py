"""
status.py
---------
A CLI to check the nodes of a running test network.

Reads the launch configuration polkadot-launch was started with (or the default topology if
there is none) and sends a system_health JSON-RPC request to every node with an RPC port.
Prints a JSON report on stdout.
"""
import json
import logging
from pathlib import Path

import httpx
import typer
from pydantic import ValidationError

from common.app_setup import setup_logging
from connectors.polkadot_launch import CONFIG_FILENAME
from launcher.cli import BASE_DIR
from launcher.topology import parachain_nodes, relay_nodes
from network.models import LaunchConfiguration

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Show the health of the local test network nodes.")


def _rpc_client(timeout: float) -> httpx.Client:
    return httpx.Client(timeout=timeout)


def _rpc_ports(base_dir: Path) -> list[tuple[str, int]]:
    """(label, port) for every node exposing an HTTP RPC port."""
    config_path = base_dir / CONFIG_FILENAME
    relay = relay_nodes()
    parachains = [parachain_nodes()]
    if config_path.is_file():
        try:
            config = LaunchConfiguration.model_validate(json.loads(config_path.read_text()))
            relay = config.relaychain.nodes
            parachains = [p.nodes for p in config.parachains]
        except (ValueError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable {config_path}: {e}")
    ports = [(f"relay/{n.name}", n.rpc_port) for n in relay if n.rpc_port is not None]
    for p_index, nodes in enumerate(parachains):
        for n_index, node in enumerate(nodes):
            ports.append((node.name or f"parachain{p_index}/node{n_index}", node.rpc_port))
    return ports


def _system_health(client: httpx.Client, port: int) -> dict:
    payload = {"jsonrpc": "2.0", "id": 1, "method": "system_health", "params": []}
    resp = client.post(f"http://127.0.0.1:{port}", json=payload)
    resp.raise_for_status()
    return resp.json().get("result", {})


@app.command()
def status(
    base_dir: Path = typer.Option(BASE_DIR, "--base-dir", help="Directory polkadot-launch was started from", file_okay=False),
    timeout: float = typer.Option(2.0, help="Per-node request timeout in seconds"),
):
    """Query system_health on every node RPC port. Exit code 1 if any node is unreachable."""
    setup_logging(app_name="paralaunch")
    result = {"returncode": 0, "nodes": []}
    with _rpc_client(timeout) as client:
        for label, port in _rpc_ports(base_dir):
            node = {"node": label, "port": port, "running": False, "health": None}
            try:
                node["health"] = _system_health(client, port)
                node["running"] = True
            except (httpx.HTTPError, ValueError) as e:
                node["health"] = {"error": str(e)}
                result["returncode"] = 1
            result["nodes"].append(node)
    logger.info(f"Status: {result}")
    typer.echo(json.dumps(result))
    raise typer.Exit(result["returncode"])


def main():
    app()


if __name__ == "__main__":
    main()
