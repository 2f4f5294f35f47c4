"""Issuer authorization graph.

Holds the two views of the issuer × credential type relation:

    type → {issuer, ...}     who may issue a credential type
    issuer → {type, ...}     which types an issuer may issue

Both maps are private and only change through paired grant/revoke, so an
issuer appears under a type in one map iff the type appears under the
issuer in the other.
"""

import logging
from typing import Iterator, Optional

from soulbound.core.exceptions import (
    GrantExistsError,
    GrantNotFoundError,
    IndexOverflowError,
)

log = logging.getLogger(__name__)


class AuthorizationGraph:
    """Bidirectional issuer/type permission index.

    Not synchronized on its own; CredentialRegistry serializes access.
    """

    def __init__(
        self,
        max_issuers_per_type: Optional[int] = None,
        max_types_per_issuer: Optional[int] = None,
    ):
        """Initialize an empty graph.

        Args:
            max_issuers_per_type: Capacity of each type's issuer set
                (None for unbounded)
            max_types_per_issuer: Capacity of each issuer's type set
                (None for unbounded)
        """
        self._issuers_by_type: dict[str, set[str]] = {}
        self._types_by_issuer: dict[str, set[str]] = {}
        self._max_issuers_per_type = max_issuers_per_type
        self._max_types_per_issuer = max_types_per_issuer

    def is_authorized(self, issuer: str, credential_type: str) -> bool:
        """Check if an issuer may issue a credential type."""
        return issuer in self._issuers_by_type.get(credential_type, set())

    def grant(self, issuer: str, credential_type: str) -> None:
        """Authorize an issuer for a credential type.

        Raises:
            GrantExistsError: The pair is already granted
            IndexOverflowError: Either side is at capacity
        """
        if self.is_authorized(issuer, credential_type):
            raise GrantExistsError(issuer, credential_type)

        issuers = self._issuers_by_type.get(credential_type, set())
        if self._max_issuers_per_type is not None and len(issuers) >= self._max_issuers_per_type:
            raise IndexOverflowError("issuers per type", credential_type, self._max_issuers_per_type)

        types = self._types_by_issuer.get(issuer, set())
        if self._max_types_per_issuer is not None and len(types) >= self._max_types_per_issuer:
            raise IndexOverflowError("types per issuer", issuer, self._max_types_per_issuer)

        # All checks passed, both writes happen together
        self._issuers_by_type.setdefault(credential_type, set()).add(issuer)
        self._types_by_issuer.setdefault(issuer, set()).add(credential_type)
        log.debug(f"Granted {issuer} for type {credential_type!r}")

    def revoke(self, issuer: str, credential_type: str) -> None:
        """Remove an issuer's grant for a credential type.

        Removes exactly ``issuer`` from the type's set and ``credential_type``
        from the issuer's set. Sets left empty are dropped.

        Raises:
            GrantNotFoundError: The pair is not currently granted
        """
        if not self.is_authorized(issuer, credential_type):
            raise GrantNotFoundError(issuer, credential_type)

        issuers = self._issuers_by_type[credential_type]
        issuers.discard(issuer)
        if not issuers:
            del self._issuers_by_type[credential_type]

        types = self._types_by_issuer[issuer]
        types.discard(credential_type)
        if not types:
            del self._types_by_issuer[issuer]
        log.debug(f"Revoked {issuer} for type {credential_type!r}")

    def issuers_for(self, credential_type: str) -> set[str]:
        """Get the issuers authorized for a type (a copy)."""
        return set(self._issuers_by_type.get(credential_type, set()))

    def types_for(self, issuer: str) -> set[str]:
        """Get the types an issuer may issue (a copy)."""
        return set(self._types_by_issuer.get(issuer, set()))

    def grants(self) -> Iterator[tuple[str, str]]:
        """Iterate (issuer, credential_type) pairs in a stable order."""
        for credential_type in sorted(self._issuers_by_type):
            for issuer in sorted(self._issuers_by_type[credential_type]):
                yield issuer, credential_type

    def __len__(self) -> int:
        return sum(len(issuers) for issuers in self._issuers_by_type.values())
