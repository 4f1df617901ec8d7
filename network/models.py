"""Pydantic models for network profiles and the launch configuration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class NetworkDescriptor(BaseModel):
    """A runnable network role: a runtime id plus one binary source."""

    model_config = ConfigDict(frozen=True)

    runtime_id: str = Field(..., min_length=1, description="Chain spec passed to the node")
    local_binary_path: str | None = Field(None, description="Path relative to the base directory")
    container_image: str | None = Field(None, description="Image the binary is extracted from")
    binary_name: str = Field("polkadot", min_length=1, description="Executable file name")
    image_path: str = Field("/usr/local/bin/polkadot", description="Executable location inside the image")

    @model_validator(mode="after")
    def _exactly_one_source(self) -> NetworkDescriptor:
        if (self.local_binary_path is None) == (self.container_image is None):
            raise ValueError("exactly one of 'local_binary_path' or 'container_image' must be set")
        return self

    @property
    def source(self) -> str:
        return self.container_image or self.local_binary_path or ""


class ParachainDescriptor(NetworkDescriptor):
    """A parachain profile; also names the relay it runs against by default."""

    relay_profile_name: str = Field(..., min_length=1)
    binary_name: str = "moonbeam"
    image_path: str = "/moonbeam/moonbeam"


# ---------------------------------------------------------------------------
# launch configuration, serialised with camelCase aliases for polkadot-launch


class _LaunchModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_launch_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RelayNode(_LaunchModel):
    name: str
    ws_port: int = Field(..., alias="wsPort")
    port: int
    rpc_port: int | None = Field(None, alias="rpcPort")


class ParachainNode(_LaunchModel):
    rpc_port: int = Field(..., alias="rpcPort")
    ws_port: int = Field(..., alias="wsPort")
    port: int
    flags: list[str] = Field(default_factory=list)
    name: str | None = None


class RelayChainSpec(_LaunchModel):
    bin: str
    chain: str
    nodes: list[RelayNode]
    runtime_genesis_config: dict[str, Any] = Field(default_factory=dict)


class ParachainSpec(_LaunchModel):
    bin: str
    id: int = Field(..., ge=0)
    balance: str
    chain: str
    nodes: list[ParachainNode]


class HrmpChannel(_LaunchModel):
    sender: int
    recipient: int
    max_capacity: int = Field(..., alias="maxCapacity")
    max_message_size: int = Field(..., alias="maxMessageSize")


class LaunchConfiguration(_LaunchModel):
    """Everything the process launcher needs to start one test network."""

    relaychain: RelayChainSpec
    parachains: list[ParachainSpec]
    simple_parachains: list[dict[str, Any]] = Field(default_factory=list, alias="simpleParachains")
    hrmp_channels: list[HrmpChannel] = Field(default_factory=list, alias="hrmpChannels")
    types: dict[str, str] = Field(default_factory=dict)
    finalization: bool = True

    @property
    def node_count(self) -> int:
        return len(self.relaychain.nodes) + sum(len(p.nodes) for p in self.parachains)


__all__ = [
    "HrmpChannel",
    "LaunchConfiguration",
    "NetworkDescriptor",
    "ParachainDescriptor",
    "ParachainNode",
    "ParachainSpec",
    "RelayChainSpec",
    "RelayNode",
]
