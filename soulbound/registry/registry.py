"""Soulbound credential registry.

Owns the credential store, the holder index, the issuer authorization graph
and the per-type issuance counters. Each public operation runs under one
asyncio lock, and every precondition is checked before the first write, so
a failed operation leaves no partial state behind.

Caller identity and current logical time are supplied by the host on every
call; the registry never reads a clock of its own.
"""
import asyncio
import dataclasses
import logging
from typing import Optional

from soulbound import config
from soulbound.audit.logger import AuditLogger, get_audit_logger
from soulbound.core.exceptions import (
    CredentialExpiredError,
    CredentialNotFoundError,
    CredentialRevokedError,
    EmptyMetadataError,
    ErrorCode,
    IndexOverflowError,
    InvalidRecipientError,
    NotAuthorizedError,
    RegistryError,
    SnapshotError,
    TransferNotAllowedError,
)
from soulbound.registry.authorization import AuthorizationGraph
from soulbound.registry.models import Credential, CredentialStatus, is_valid
from soulbound.registry.snapshot import (
    CredentialRecord,
    GrantRecord,
    RegistrySnapshot,
    check_snapshot,
)

log = logging.getLogger(__name__)


class CredentialRegistry:
    """Registry of non-transferable credentials.

    Provides:
    - Credential issuance by authorized issuers
    - Revocation by the original issuer
    - Admin-gated issuer grants per credential type
    - Holder verification with lazily evaluated expiry
    - Read-only lookups and snapshot export/restore

    The admin identity is fixed at construction.
    """

    def __init__(
        self,
        admin: str,
        max_credentials_per_holder: Optional[int] = None,
        max_issuers_per_type: Optional[int] = None,
        max_types_per_issuer: Optional[int] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """Initialize an empty registry.

        Args:
            admin: Identity allowed to grant and revoke issuer permissions
            max_credentials_per_holder: Holder index capacity
                (defaults to config.MAX_CREDENTIALS_PER_HOLDER)
            max_issuers_per_type: Issuers per type capacity
                (defaults to config.MAX_ISSUERS_PER_TYPE)
            max_types_per_issuer: Types per issuer capacity
                (defaults to config.MAX_TYPES_PER_ISSUER)
            audit_logger: Audit sink (defaults to the global audit logger)

        Raises:
            ValueError: admin is empty
        """
        if not admin:
            raise ValueError("Registry admin identity is required")

        self._admin = admin
        self._max_credentials_per_holder = (
            max_credentials_per_holder or config.MAX_CREDENTIALS_PER_HOLDER
        )
        self._authorization = AuthorizationGraph(
            max_issuers_per_type=max_issuers_per_type or config.MAX_ISSUERS_PER_TYPE,
            max_types_per_issuer=max_types_per_issuer or config.MAX_TYPES_PER_ISSUER,
        )
        self._audit = audit_logger or get_audit_logger()
        self._lock = asyncio.Lock()

        self._credentials: dict[int, Credential] = {}
        self._holder_index: dict[str, list[int]] = {}
        self._type_counts: dict[str, int] = {}
        self._next_id = config.FIRST_CREDENTIAL_ID

    @property
    def admin(self) -> str:
        """The fixed administrator identity."""
        return self._admin

    # =========================================================================
    # Credential lifecycle
    # =========================================================================

    async def issue(
        self,
        caller: str,
        recipient: str,
        credential_type: str,
        metadata: str,
        expiry: Optional[int],
        now: int,
    ) -> int:
        """Issue a credential to a recipient.

        Args:
            caller: Authenticated issuer identity
            recipient: Holder of the new credential
            credential_type: Credential type tag
            metadata: Opaque non-empty payload
            expiry: Optional expiry time, must be later than ``now``
            now: Current logical time

        Returns:
            The new credential id

        Raises:
            NotAuthorizedError: caller holds no grant for the type
            InvalidRecipientError: caller issued to itself
            EmptyMetadataError: metadata is empty
            CredentialExpiredError: expiry is not in the future
            IndexOverflowError: recipient's holder index is full
        """
        async with self._lock:
            try:
                if not self._authorization.is_authorized(caller, credential_type):
                    raise NotAuthorizedError(
                        f"{caller} is not authorized to issue {credential_type!r}"
                    )
                if recipient == caller:
                    raise InvalidRecipientError()
                if not metadata:
                    raise EmptyMetadataError()
                if expiry is not None and expiry <= now:
                    raise CredentialExpiredError(expiry, now)

                held = self._holder_index.get(recipient, [])
                if len(held) >= self._max_credentials_per_holder:
                    raise IndexOverflowError(
                        "credentials per holder", recipient, self._max_credentials_per_holder
                    )
            except RegistryError as e:
                self._audit.log_denied("credential.issue", caller, e.code)
                raise

            credential_id = self._next_id
            self._credentials[credential_id] = Credential(
                credential_id=credential_id,
                holder=recipient,
                issuer=caller,
                credential_type=credential_type,
                metadata=metadata,
                issue_time=now,
                expiry=expiry,
            )
            self._holder_index.setdefault(recipient, []).append(credential_id)
            self._type_counts[credential_type] = self._type_counts.get(credential_type, 0) + 1
            self._next_id = credential_id + 1

            log.info(f"Issued credential {credential_id} type={credential_type!r} to {recipient}")
            self._audit.log_issue(caller, credential_id, recipient, credential_type)
            return credential_id

    async def revoke(self, caller: str, credential_id: int, reason: str, now: int) -> None:
        """Revoke a credential.

        Only the identity that issued the credential may revoke it. The
        reason is recorded in the audit log, not on the credential.

        Args:
            caller: Authenticated caller identity
            credential_id: Credential to revoke
            reason: Free-form audit annotation
            now: Current logical time

        Raises:
            CredentialNotFoundError: no such credential
            NotAuthorizedError: caller is not the original issuer
            CredentialRevokedError: credential is already revoked
        """
        async with self._lock:
            resource = f"credential:{credential_id}"
            try:
                credential = self._credentials.get(credential_id)
                if credential is None:
                    raise CredentialNotFoundError(credential_id)
                if credential.issuer != caller:
                    raise NotAuthorizedError(
                        f"Only the original issuer may revoke credential {credential_id}"
                    )
                if credential.revoked:
                    raise CredentialRevokedError(credential_id)
            except RegistryError as e:
                self._audit.log_denied("credential.revoke", caller, e.code, resource)
                raise

            self._credentials[credential_id] = dataclasses.replace(
                credential, status=CredentialStatus.REVOKED
            )
            log.info(f"Revoked credential {credential_id} at {now}")
            self._audit.log_revoke(caller, credential_id, reason)

    # =========================================================================
    # Issuer authorization
    # =========================================================================

    async def grant_issuer(self, caller: str, issuer: str, credential_type: str) -> None:
        """Authorize an issuer for a credential type (admin only).

        Raises:
            NotAuthorizedError: caller is not the admin
            GrantExistsError: the pair is already granted
            IndexOverflowError: the type or issuer entry is full
        """
        async with self._lock:
            try:
                self._require_admin(caller)
                self._authorization.grant(issuer, credential_type)
            except RegistryError as e:
                self._audit.log_denied(
                    "issuer.grant", caller, e.code, f"grant:{issuer}/{credential_type}"
                )
                raise
            log.info(f"Granted issuer {issuer} for {credential_type!r}")
            self._audit.log_grant(caller, issuer, credential_type)

    async def revoke_issuer(self, caller: str, issuer: str, credential_type: str) -> None:
        """Remove an issuer's grant for a credential type (admin only).

        Credentials already issued under the grant are unaffected.

        Raises:
            NotAuthorizedError: caller is not the admin
            GrantNotFoundError: the pair is not granted
        """
        async with self._lock:
            try:
                self._require_admin(caller)
                self._authorization.revoke(issuer, credential_type)
            except RegistryError as e:
                self._audit.log_denied(
                    "issuer.revoke", caller, e.code, f"grant:{issuer}/{credential_type}"
                )
                raise
            log.info(f"Revoked issuer {issuer} for {credential_type!r}")
            self._audit.log_grant(caller, issuer, credential_type, revoked=True)

    def _require_admin(self, caller: str) -> None:
        if caller != self._admin:
            raise NotAuthorizedError(f"{caller} is not the registry admin")

    # =========================================================================
    # Transfer (always rejected)
    # =========================================================================

    async def transfer(self, caller: str, credential_id: int, sender: str, recipient: str) -> None:
        """Reject a transfer. Soulbound credentials never change holder.

        Raises:
            TransferNotAllowedError: always
        """
        self._audit.log_denied(
            "credential.transfer",
            caller,
            ErrorCode.TRANSFER_NOT_ALLOWED,
            f"credential:{credential_id}",
        )
        raise TransferNotAllowedError()

    async def transfer_memo(
        self,
        caller: str,
        credential_id: int,
        sender: str,
        recipient: str,
        memo: str,
    ) -> None:
        """Reject a transfer with memo, exactly like transfer().

        Raises:
            TransferNotAllowedError: always
        """
        await self.transfer(caller, credential_id, sender, recipient)

    # =========================================================================
    # Queries
    # =========================================================================

    async def verify(self, holder: str, credential_type: str, now: int) -> bool:
        """Check whether a holder has a valid credential of a type.

        Scans the holder's credentials in issuance order and stops at the
        first one of the requested type that is valid at ``now``.
        """
        async with self._lock:
            for credential_id in self._holder_index.get(holder, []):
                credential = self._credentials[credential_id]
                if credential.credential_type == credential_type and is_valid(credential, now):
                    return True
            return False

    async def is_authorized(self, issuer: str, credential_type: str) -> bool:
        """Check if an issuer may issue a credential type."""
        async with self._lock:
            return self._authorization.is_authorized(issuer, credential_type)

    async def is_credential_valid(self, credential_id: int, now: int) -> bool:
        """Check a single credential's validity; unknown ids are not valid."""
        async with self._lock:
            credential = self._credentials.get(credential_id)
            return credential is not None and is_valid(credential, now)

    async def get_credential(self, credential_id: int) -> Optional[Credential]:
        """Get a credential by id, or None if it does not exist."""
        async with self._lock:
            return self._credentials.get(credential_id)

    async def get_owner(self, credential_id: int) -> Optional[str]:
        """Get the holder of a credential, or None if it does not exist."""
        async with self._lock:
            credential = self._credentials.get(credential_id)
            return credential.holder if credential else None

    async def get_holder_credentials(self, holder: str) -> list[int]:
        """Get a holder's credential ids in issuance order."""
        async with self._lock:
            return list(self._holder_index.get(holder, []))

    async def get_authorized_issuers(self, credential_type: str) -> set[str]:
        """Get the issuers currently authorized for a type."""
        async with self._lock:
            return self._authorization.issuers_for(credential_type)

    async def get_issuer_permissions(self, issuer: str) -> set[str]:
        """Get the credential types an issuer may currently issue."""
        async with self._lock:
            return self._authorization.types_for(issuer)

    async def get_type_count(self, credential_type: str) -> int:
        """Get how many credentials of a type were ever issued."""
        async with self._lock:
            return self._type_counts.get(credential_type, 0)

    async def get_next_id(self) -> int:
        """Get the id the next successful issuance will receive."""
        async with self._lock:
            return self._next_id

    async def get_last_credential_id(self) -> int:
        """Get the most recently assigned id (0 before any issuance)."""
        async with self._lock:
            return self._next_id - 1

    # =========================================================================
    # Snapshots
    # =========================================================================

    async def export_snapshot(self) -> RegistrySnapshot:
        """Export a consistent, serializable view of the registry state."""
        async with self._lock:
            return RegistrySnapshot(
                admin=self._admin,
                next_id=self._next_id,
                credentials=[
                    CredentialRecord(
                        credential_id=c.credential_id,
                        holder=c.holder,
                        issuer=c.issuer,
                        credential_type=c.credential_type,
                        metadata=c.metadata,
                        issue_time=c.issue_time,
                        expiry=c.expiry,
                        status=c.status,
                    )
                    for c in sorted(self._credentials.values(), key=lambda c: c.credential_id)
                ],
                holder_index={h: list(ids) for h, ids in self._holder_index.items()},
                grants=[
                    GrantRecord(issuer=issuer, credential_type=credential_type)
                    for issuer, credential_type in self._authorization.grants()
                ],
                type_counts=dict(self._type_counts),
            )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: RegistrySnapshot,
        max_credentials_per_holder: Optional[int] = None,
        max_issuers_per_type: Optional[int] = None,
        max_types_per_issuer: Optional[int] = None,
        audit_logger: Optional[AuditLogger] = None,
    ) -> "CredentialRegistry":
        """Rebuild a registry from a snapshot.

        Raises:
            SnapshotError: the snapshot violates a registry invariant or
                does not fit the configured capacities
        """
        check_snapshot(snapshot)

        registry = cls(
            snapshot.admin,
            max_credentials_per_holder=max_credentials_per_holder,
            max_issuers_per_type=max_issuers_per_type,
            max_types_per_issuer=max_types_per_issuer,
            audit_logger=audit_logger,
        )

        for holder, ids in snapshot.holder_index.items():
            if len(ids) > registry._max_credentials_per_holder:
                raise SnapshotError(
                    f"Holder {holder} has {len(ids)} credentials, "
                    f"limit is {registry._max_credentials_per_holder}"
                )

        for grant in snapshot.grants:
            try:
                registry._authorization.grant(grant.issuer, grant.credential_type)
            except RegistryError as e:
                raise SnapshotError(f"Invalid grant in snapshot: {e.message}") from e

        registry._credentials = {
            record.credential_id: Credential(
                credential_id=record.credential_id,
                holder=record.holder,
                issuer=record.issuer,
                credential_type=record.credential_type,
                metadata=record.metadata,
                issue_time=record.issue_time,
                expiry=record.expiry,
                status=record.status,
            )
            for record in snapshot.credentials
        }
        registry._holder_index = {h: list(ids) for h, ids in snapshot.holder_index.items()}
        registry._type_counts = dict(snapshot.type_counts)
        registry._next_id = snapshot.next_id

        log.info(
            f"Restored registry with {len(registry._credentials)} credentials "
            f"and {len(registry._authorization)} grants"
        )
        return registry


# Module-level singleton
_registry: Optional[CredentialRegistry] = None


def get_registry() -> CredentialRegistry:
    """Get or create the process-wide registry.

    The admin identity comes from config.REGISTRY_ADMIN.

    Raises:
        ValueError: no admin identity is configured
    """
    global _registry
    if _registry is None:
        if not config.REGISTRY_ADMIN:
            raise ValueError("SBT_REGISTRY_ADMIN must be set to create the registry")
        _registry = CredentialRegistry(config.REGISTRY_ADMIN)
    return _registry


def reset_registry() -> None:
    """Reset the singleton (for testing)."""
    global _registry
    _registry = None
