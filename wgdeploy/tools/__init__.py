"""Collaborators the deployment pipeline talks to: registry, service artifact and control utility."""

from .artifact_wait import wait_for_artifact
from .registry import NullFlagStore, RegistryError, ensure_limited_operator_ui, open_flag_store
from .tunnel_service import ControlUtilityError, SubprocessRunner, install_tunnel_service

__all__ = [
    "ControlUtilityError",
    "NullFlagStore",
    "RegistryError",
    "SubprocessRunner",
    "ensure_limited_operator_ui",
    "install_tunnel_service",
    "open_flag_store",
    "wait_for_artifact",
]
