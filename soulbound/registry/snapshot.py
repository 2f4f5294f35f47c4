"""Serializable registry snapshots.

Pydantic models a host can persist between process lifetimes, plus the
invariant checks run before a snapshot is turned back into a registry.
"""
from collections import Counter
from typing import Optional

from pydantic import BaseModel, Field

from soulbound.core.exceptions import SnapshotError
from soulbound.registry.models import CredentialStatus


class CredentialRecord(BaseModel):
    """Stored form of a credential."""

    credential_id: int = Field(..., ge=1, description="Sequential credential id")
    holder: str = Field(..., description="Owning identity")
    issuer: str = Field(..., description="Issuing identity")
    credential_type: str = Field(..., description="Credential type tag")
    metadata: str = Field(..., description="Opaque metadata payload")
    issue_time: int = Field(..., description="Logical time of issuance")
    expiry: Optional[int] = Field(None, description="Optional expiry time")
    status: CredentialStatus = Field(CredentialStatus.ACTIVE, description="active | revoked")


class GrantRecord(BaseModel):
    """An issuer × credential type permission."""

    issuer: str
    credential_type: str


class RegistrySnapshot(BaseModel):
    """Complete registry state."""

    admin: str = Field(..., min_length=1, description="Registry admin identity")
    next_id: int = Field(1, ge=1, description="Id of the next issued credential")
    credentials: list[CredentialRecord] = Field(default_factory=list)
    holder_index: dict[str, list[int]] = Field(default_factory=dict)
    grants: list[GrantRecord] = Field(default_factory=list)
    type_counts: dict[str, int] = Field(default_factory=dict)


def check_snapshot(snapshot: RegistrySnapshot) -> None:
    """Validate registry invariants on a snapshot.

    Checks:
    - Credential ids are exactly 1..next_id-1 (credentials are never deleted)
    - No credential is self-issued, has empty metadata, or expires at or
      before its issue time
    - Every credential appears once, in its own holder's index, and each
      holder's ids are in issuance order
    - Type counts match the stored credentials

    Raises:
        SnapshotError: on the first violated invariant
    """
    ids = [record.credential_id for record in snapshot.credentials]
    if sorted(ids) != list(range(1, snapshot.next_id)):
        raise SnapshotError(
            f"Credential ids must be exactly 1..{snapshot.next_id - 1} without gaps or duplicates"
        )

    by_id = {record.credential_id: record for record in snapshot.credentials}
    for record in snapshot.credentials:
        if record.holder == record.issuer:
            raise SnapshotError(f"Credential {record.credential_id} is self-issued")
        if not record.metadata:
            raise SnapshotError(f"Credential {record.credential_id} has empty metadata")
        if record.expiry is not None and record.expiry <= record.issue_time:
            raise SnapshotError(
                f"Credential {record.credential_id} expires at or before its issue time"
            )

    indexed: list[int] = []
    for holder, held in snapshot.holder_index.items():
        if held != sorted(held):
            raise SnapshotError(f"Holder index for {holder} is not in issuance order")
        for credential_id in held:
            record = by_id.get(credential_id)
            if record is None:
                raise SnapshotError(f"Holder index for {holder} references unknown id {credential_id}")
            if record.holder != holder:
                raise SnapshotError(
                    f"Credential {credential_id} is indexed under {holder}, held by {record.holder}"
                )
        indexed.extend(held)

    if sorted(indexed) != sorted(ids):
        raise SnapshotError("Holder index must list every credential exactly once")

    counts = Counter(record.credential_type for record in snapshot.credentials)
    declared = {t: n for t, n in snapshot.type_counts.items() if n}
    if declared != dict(counts):
        raise SnapshotError("Type counts do not match stored credentials")
