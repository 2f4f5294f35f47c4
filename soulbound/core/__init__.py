# Registry core - exceptions and logging

from soulbound.core.exceptions import (
    ErrorCode,
    RegistryError,
    NotAuthorizedError,
    CredentialNotFoundError,
    GrantNotFoundError,
    GrantExistsError,
    InvalidRecipientError,
    EmptyMetadataError,
    CredentialExpiredError,
    CredentialRevokedError,
    TransferNotAllowedError,
    IndexOverflowError,
    SnapshotError,
)
from soulbound.core.logging import configure_logging, JsonFormatter

__all__ = [
    "ErrorCode",
    "RegistryError",
    "NotAuthorizedError",
    "CredentialNotFoundError",
    "GrantNotFoundError",
    "GrantExistsError",
    "InvalidRecipientError",
    "EmptyMetadataError",
    "CredentialExpiredError",
    "CredentialRevokedError",
    "TransferNotAllowedError",
    "IndexOverflowError",
    "SnapshotError",
    "configure_logging",
    "JsonFormatter",
]
