"""Registry exceptions mapped to registry error codes.

Every public registry operation either succeeds or raises one of the
exceptions below. The set of codes is closed:

- Authorization failures → NOT_AUTHORIZED
- Missing credentials or grants → NOT_FOUND
- Duplicate grants → ALREADY_EXISTS
- Argument validation → INVALID_RECIPIENT, EMPTY_METADATA, CREDENTIAL_EXPIRED
- State conflicts → CREDENTIAL_REVOKED
- Soulbound guarantee → TRANSFER_NOT_ALLOWED
- Bounded index capacity → INDEX_OVERFLOW
"""


class ErrorCode:
    """Error code registry for the credential registry."""

    # Authorization layer
    NOT_AUTHORIZED = "NOT_AUTHORIZED"

    # Lookup layer
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Issuance argument validation
    INVALID_RECIPIENT = "INVALID_RECIPIENT"
    EMPTY_METADATA = "EMPTY_METADATA"
    CREDENTIAL_EXPIRED = "CREDENTIAL_EXPIRED"

    # Lifecycle layer
    CREDENTIAL_REVOKED = "CREDENTIAL_REVOKED"
    TRANSFER_NOT_ALLOWED = "TRANSFER_NOT_ALLOWED"

    # Capacity layer
    INDEX_OVERFLOW = "INDEX_OVERFLOW"

    # Snapshot restore
    INVALID_SNAPSHOT = "INVALID_SNAPSHOT"


class RegistryError(Exception):
    """Base exception for credential registry operations.

    Carries an error code from ErrorCode.
    """

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


class NotAuthorizedError(RegistryError):
    """Caller lacks the permission required for the operation.

    Raised when:
    - A non-admin attempts to grant or revoke issuer permissions
    - An issuer without a grant for the credential type attempts issuance
    - Anyone other than the original issuer attempts revocation
    """

    def __init__(self, message: str = "Caller is not authorized"):
        super().__init__(ErrorCode.NOT_AUTHORIZED, message)


class CredentialNotFoundError(RegistryError):
    """No credential exists with the requested id."""

    def __init__(self, credential_id: int):
        self.credential_id = credential_id
        super().__init__(ErrorCode.NOT_FOUND, f"Credential not found: {credential_id}")


class GrantNotFoundError(RegistryError):
    """The issuer holds no grant for the credential type."""

    def __init__(self, issuer: str, credential_type: str):
        self.issuer = issuer
        self.credential_type = credential_type
        super().__init__(
            ErrorCode.NOT_FOUND,
            f"Issuer {issuer} is not authorized for type {credential_type!r}",
        )


class GrantExistsError(RegistryError):
    """The issuer already holds a grant for the credential type."""

    def __init__(self, issuer: str, credential_type: str):
        self.issuer = issuer
        self.credential_type = credential_type
        super().__init__(
            ErrorCode.ALREADY_EXISTS,
            f"Issuer {issuer} is already authorized for type {credential_type!r}",
        )


class InvalidRecipientError(RegistryError):
    """Issuer attempted to issue a credential to itself."""

    def __init__(self, message: str = "Recipient must differ from issuer"):
        super().__init__(ErrorCode.INVALID_RECIPIENT, message)


class EmptyMetadataError(RegistryError):
    """Credential metadata payload was empty."""

    def __init__(self, message: str = "Credential metadata must not be empty"):
        super().__init__(ErrorCode.EMPTY_METADATA, message)


class CredentialExpiredError(RegistryError):
    """Expiry argument at issuance is not in the future.

    Only raised for the issuance argument. A stored credential whose expiry
    has passed is simply reported as not valid by queries.
    """

    def __init__(self, expiry: int, now: int):
        self.expiry = expiry
        self.now = now
        super().__init__(
            ErrorCode.CREDENTIAL_EXPIRED,
            f"Expiry {expiry} must be later than current time {now}",
        )


class CredentialRevokedError(RegistryError):
    """Credential has already been revoked."""

    def __init__(self, credential_id: int):
        self.credential_id = credential_id
        super().__init__(
            ErrorCode.CREDENTIAL_REVOKED, f"Credential already revoked: {credential_id}"
        )


class TransferNotAllowedError(RegistryError):
    """Soulbound credentials can never change holder."""

    def __init__(self, message: str = "Soulbound credentials cannot be transferred"):
        super().__init__(ErrorCode.TRANSFER_NOT_ALLOWED, message)


class IndexOverflowError(RegistryError):
    """A bounded index would exceed its configured capacity.

    Attributes:
        index: Name of the index that is full
        key: The holder, type or issuer whose entry is full
        limit: Configured capacity
    """

    def __init__(self, index: str, key: str, limit: int):
        self.index = index
        self.key = key
        self.limit = limit
        super().__init__(
            ErrorCode.INDEX_OVERFLOW,
            f"{index} for {key!r} is full ({limit} entries)",
        )


class SnapshotError(RegistryError):
    """Snapshot cannot be restored because it violates a registry invariant."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.INVALID_SNAPSHOT, message)
