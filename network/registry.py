"""Read-only registry of relay and parachain profiles."""

from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from .models import NetworkDescriptor, ParachainDescriptor


class ProfileNotFound(KeyError):
    """Raised when a profile name is not in the registry."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"Unknown {kind} profile: {name}")

    def __str__(self) -> str:
        return self.args[0]


class ProfileRegistry:
    """Two insertion-ordered mappings, profile name -> descriptor.

    Built once at startup and shared by reference; lookups never mutate it.
    """

    def __init__(
        self,
        relays: Mapping[str, NetworkDescriptor],
        parachains: Mapping[str, ParachainDescriptor],
    ) -> None:
        self._relays = MappingProxyType(dict(relays))
        self._parachains = MappingProxyType(dict(parachains))
        for name, parachain in self._parachains.items():
            if parachain.relay_profile_name not in self._relays:
                raise ValueError(
                    f"Parachain profile {name!r} refers to unknown relay {parachain.relay_profile_name!r}"
                )

    def lookup_relay(self, name: str) -> NetworkDescriptor:
        try:
            return self._relays[name]
        except KeyError:
            raise ProfileNotFound("relay", name) from None

    def lookup_parachain(self, name: str) -> ParachainDescriptor:
        try:
            return self._parachains[name]
        except KeyError:
            raise ProfileNotFound("parachain", name) from None

    def list_relay_names(self) -> list[str]:
        return list(self._relays)

    def list_parachain_names(self) -> list[str]:
        return list(self._parachains)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> ProfileRegistry:
        """Build a registry from ``{"relays": {...}, "parachains": {...}}``."""
        try:
            relays = {
                name: NetworkDescriptor.model_validate(data)
                for name, data in _section(payload, "relays").items()
            }
            parachains = {
                name: ParachainDescriptor.model_validate(data)
                for name, data in _section(payload, "parachains").items()
            }
        except ValidationError as exc:
            raise ValueError(f"Invalid profile definition: {exc}") from exc
        return cls(relays, parachains)

    @classmethod
    def from_file(cls, path: str | Path) -> ProfileRegistry:
        """Load profiles from a YAML (or JSON) file."""
        return cls.from_mapping(_load_text_payload(Path(path).read_text()))


def _section(payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    """Return one top-level section, which must map profile names to descriptors."""
    section = payload.get(key) or {}
    if not isinstance(section, Mapping):
        raise ValueError(f"'{key}' must map profile names to definitions, got {type(section).__name__}")
    return section


def _load_text_payload(raw: str) -> dict[str, Any]:
    """Interpret raw text as YAML first, falling back to JSON."""
    try:
        payload = yaml.safe_load(raw) or {}
    except yaml.YAMLError:
        payload = json.loads(raw)
    if not isinstance(payload, dict):
        raise ValueError("Profile file must contain a mapping with 'relays' and 'parachains'")
    return payload


DEFAULT_PROFILES: dict[str, dict[str, dict[str, str]]] = {
    "relays": {
        "kusama-v9030": {
            "container_image": "purestake/moonbase-relay-testnet:sha-aa386760",
            "runtime_id": "kusama-local",
        },
        "kusama-v9030-fast": {
            "container_image": "purestake/moonbase-relay-testnet:kusama-v0.9.3-fast",
            "runtime_id": "kusama-local",
        },
        "rococo-9003": {
            "container_image": "purestake/moonbase-relay-testnet:sha-aa386760",
            "runtime_id": "rococo-local",
        },
        "rococo-local": {
            "local_binary_path": "../../polkadot/target/release/polkadot",
            "runtime_id": "rococo-local",
        },
    },
    "parachains": {
        "moonriver-v47": {
            "relay_profile_name": "kusama-v9030",
            "runtime_id": "moonriver-local",
            "container_image": "purestake/moonbeam:moonriver-genesis",
        },
        "moonriver-v47-fast": {
            "relay_profile_name": "kusama-v9030-fast",
            "runtime_id": "moonriver-local",
            "container_image": "purestake/moonbase-parachain:moonriver-genesis-fast",
        },
        "alphanet-v8.1": {
            "relay_profile_name": "rococo-9003",
            "runtime_id": "moonbase-local",
            "container_image": "purestake/moonbeam:v0.8.1",
        },
        "moonriver-local": {
            "relay_profile_name": "kusama-v9030",
            "runtime_id": "moonriver-local",
            "local_binary_path": "../target/release/moonbeam",
        },
    },
}


def default_registry() -> ProfileRegistry:
    return ProfileRegistry.from_mapping(DEFAULT_PROFILES)


__all__ = ["DEFAULT_PROFILES", "ProfileNotFound", "ProfileRegistry", "default_registry"]
