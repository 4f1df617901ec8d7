"""Network profiles and the launch configuration model."""

from .models import LaunchConfiguration, NetworkDescriptor, ParachainDescriptor
from .registry import DEFAULT_PROFILES, ProfileNotFound, ProfileRegistry, default_registry

__all__ = [
    "DEFAULT_PROFILES",
    "LaunchConfiguration",
    "NetworkDescriptor",
    "ParachainDescriptor",
    "ProfileNotFound",
    "ProfileRegistry",
    "default_registry",
]
