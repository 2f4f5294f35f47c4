"""Soulbound credential registry.

Non-transferable credentials with admin-managed issuer permissions,
issuer-only revocation and lazily evaluated expiry.
"""

from soulbound.core.exceptions import ErrorCode, RegistryError
from soulbound.registry import (
    Credential,
    CredentialRegistry,
    CredentialStatus,
    RegistrySnapshot,
    get_registry,
    reset_registry,
)

__version__ = "0.1.0"

__all__ = [
    "ErrorCode",
    "RegistryError",
    "Credential",
    "CredentialRegistry",
    "CredentialStatus",
    "RegistrySnapshot",
    "get_registry",
    "reset_registry",
]
