"""
topology.py
-----------
Builds the launch configuration for one run: a two-node relay chain and one
two-node parachain, with fixed ports and flags. Only the binaries, runtimes,
relay profile and parachain id vary between runs.
"""

import logging
from typing import Sequence

from common.app_setup import print_and_log
from common.errors import InvalidSelection
from launcher.binaries import BinaryResolver, ResolvedBinary
from network.models import (
    LaunchConfiguration,
    NetworkDescriptor,
    ParachainDescriptor,
    ParachainNode,
    ParachainSpec,
    RelayChainSpec,
    RelayNode,
)
from network.registry import ProfileNotFound, ProfileRegistry

logger = logging.getLogger(__name__)

DEFAULT_PARACHAIN_ID = 1000
PARACHAIN_BALANCE = "1000000000000000000000"
PARACHAIN_LOG_TARGETS = "info,rpc=trace,evm=trace,ethereum=trace"

TYPE_ALIASES = {
    "Address": "MultiAddress",
    "LookupSource": "MultiAddress",
    "RoundIndex": "u32",
}


def relay_nodes() -> list[RelayNode]:
    return [
        RelayNode(name="alice", ws_port=39944, port=39444),
        RelayNode(name="bob", ws_port=39955, port=39555),
    ]


def relay_genesis_overrides() -> dict:
    return {
        "parachainsConfiguration": {
            "config": {
                "validation_upgrade_frequency": 1,
                "validation_upgrade_delay": 1,
            },
        },
    }


def parachain_node(rpc_port: int, ws_port: int, port: int, node_flags: Sequence[str]) -> ParachainNode:
    flags = [
        f"--log={PARACHAIN_LOG_TARGETS}",
        f"--rpc-port={rpc_port}",
        *node_flags,
        "--rpc-cors=all",
        # everything after "--" goes to the embedded relay chain node
        "--",
        "--execution=wasm",
    ]
    return ParachainNode(rpc_port=rpc_port, ws_port=ws_port, port=port, flags=flags)


def parachain_nodes() -> list[ParachainNode]:
    # per-node flag order is part of the template
    return [
        parachain_node(36846, 36946, 36336, ["--unsafe-rpc-external", "--alice"]),
        parachain_node(36847, 36947, 36337, ["--charlie", "--unsafe-rpc-external"]),
    ]


def usage(registry: ProfileRegistry) -> str:
    return (
        f"Usage: paralaunch <{'|'.join(registry.list_parachain_names())}> "
        f"[--parachain-id {DEFAULT_PARACHAIN_ID}] "
        f"[--relay <{'|'.join(registry.list_relay_names())}>]"
    )


class TopologyBuilder:
    """Validate a selection against the registry and assemble its LaunchConfiguration."""

    def __init__(self, registry: ProfileRegistry, resolver: BinaryResolver):
        self.registry = registry
        self.resolver = resolver

    def select(self, selectors: Sequence[str], relay_override: str | None = None) -> tuple[str, ParachainDescriptor, str, NetworkDescriptor]:
        """Check the selection in order: argument count, parachain name, relay name."""
        if len(selectors) != 1:
            raise InvalidSelection(
                "argument count",
                f"Invalid arguments (expected: 1, got: {len(selectors)})",
                self.registry.list_parachain_names(),
            )
        parachain_name = selectors[0]
        try:
            parachain = self.registry.lookup_parachain(parachain_name)
        except ProfileNotFound:
            raise InvalidSelection(
                "unknown parachain",
                f"Invalid parachain name: {parachain_name}",
                self.registry.list_parachain_names(),
            ) from None
        relay_name = relay_override or parachain.relay_profile_name
        try:
            relay = self.registry.lookup_relay(relay_name)
        except ProfileNotFound:
            raise InvalidSelection(
                "unknown relay",
                f"Invalid relay name: {relay_name}",
                self.registry.list_relay_names(),
            ) from None
        return parachain_name, parachain, relay_name, relay

    def build(self, selectors: Sequence[str], relay_override: str | None = None, parachain_id: int | None = None) -> LaunchConfiguration:
        parachain_name, parachain, relay_name, relay = self.select(selectors, relay_override)
        if parachain_id is not None and parachain_id < 0:
            # checked before any binary is fetched
            raise InvalidSelection("parachain id", f"Invalid parachain id: {parachain_id} (expected 0 or more)")

        print_and_log(f"🚀     Relay: {relay_name:<20} - {relay.source} ({relay.runtime_id})")
        relay_bin = self.resolver.resolve(relay_name, relay)
        print_and_log(f"🚀 Parachain: {parachain_name:<20} - {parachain.source} ({parachain.runtime_id})")
        parachain_bin = self.resolver.resolve(parachain_name, parachain)
        print_and_log("")

        return self.assemble(relay, relay_bin, parachain, parachain_bin, parachain_id)

    @staticmethod
    def assemble(
        relay: NetworkDescriptor,
        relay_bin: ResolvedBinary,
        parachain: ParachainDescriptor,
        parachain_bin: ResolvedBinary,
        parachain_id: int | None = None,
    ) -> LaunchConfiguration:
        """Merge resolved binaries and runtimes into a fresh copy of the fixed template."""
        if parachain_id is None:
            parachain_id = DEFAULT_PARACHAIN_ID
        config = LaunchConfiguration(
            relaychain=RelayChainSpec(
                bin=relay_bin.launch_path,
                chain=relay.runtime_id,
                nodes=relay_nodes(),
                runtime_genesis_config=relay_genesis_overrides(),
            ),
            parachains=[
                ParachainSpec(
                    bin=parachain_bin.launch_path,
                    id=parachain_id,
                    balance=PARACHAIN_BALANCE,
                    chain=parachain.runtime_id,
                    nodes=parachain_nodes(),
                ),
            ],
            types=dict(TYPE_ALIASES),
            finalization=True,
        )
        logger.debug(f"Assembled topology with {config.node_count} nodes, parachain id {parachain_id}")
        return config


__all__ = ["DEFAULT_PARACHAIN_ID", "TopologyBuilder", "usage"]
