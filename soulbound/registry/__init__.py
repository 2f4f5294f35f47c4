"""Credential registry: store, indices and validity evaluation."""

from soulbound.registry.authorization import AuthorizationGraph
from soulbound.registry.models import Credential, CredentialStatus, is_valid
from soulbound.registry.registry import (
    CredentialRegistry,
    get_registry,
    reset_registry,
)
from soulbound.registry.snapshot import (
    CredentialRecord,
    GrantRecord,
    RegistrySnapshot,
    check_snapshot,
)

__all__ = [
    "AuthorizationGraph",
    "Credential",
    "CredentialStatus",
    "is_valid",
    "CredentialRegistry",
    "get_registry",
    "reset_registry",
    "CredentialRecord",
    "GrantRecord",
    "RegistrySnapshot",
    "check_snapshot",
]
