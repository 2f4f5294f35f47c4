"""Credential record and validity evaluation."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CredentialStatus(str, Enum):
    """Stored credential status.

    Expiry is not a status: it is derived from the expiry field and the
    caller-supplied clock at query time.
    """

    ACTIVE = "active"
    REVOKED = "revoked"


@dataclass(frozen=True)
class Credential:
    """A soulbound credential record.

    Every field except ``status`` is fixed at issuance. Revocation produces
    a new record with the status flipped.
    """

    credential_id: int
    holder: str
    issuer: str
    credential_type: str
    metadata: str
    issue_time: int
    expiry: Optional[int]
    status: CredentialStatus = CredentialStatus.ACTIVE

    @property
    def revoked(self) -> bool:
        return self.status is CredentialStatus.REVOKED


def is_valid(credential: Credential, now: int) -> bool:
    """Evaluate credential validity at logical time ``now``.

    A credential is valid iff it is active and either has no expiry or the
    expiry is still in the future. Nothing is written back; the same
    credential can be valid at one time and invalid at a later one.
    """
    if credential.status is not CredentialStatus.ACTIVE:
        return False
    return credential.expiry is None or credential.expiry > now
