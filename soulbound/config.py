"""Credential registry configuration constants.

Environment-based configuration in three tiers:
- NORMATIVE: Fixed by the soulbound model (not overridable)
- CONFIGURABLE: Defaults that hosts can override
- POLICY: Implementation choices
"""
import os


def _get_int(env_var: str, default: int) -> int:
    """Read a positive integer from the environment, falling back to default."""
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


# =============================================================================
# NORMATIVE
# =============================================================================

# Credential ids are assigned sequentially starting here and never reused
FIRST_CREDENTIAL_ID: int = 1


# =============================================================================
# REGISTRY ADMINISTRATION
# =============================================================================

# Identity allowed to grant and revoke issuer permissions for the process-wide
# registry. Fixed once at construction.
REGISTRY_ADMIN: str = os.getenv("SBT_REGISTRY_ADMIN", "")


# =============================================================================
# INDEX CAPACITY (POLICY)
# =============================================================================

# Exceeding any of these fails the whole operation with INDEX_OVERFLOW
MAX_CREDENTIALS_PER_HOLDER: int = _get_int("SBT_MAX_CREDENTIALS_PER_HOLDER", 100)
MAX_ISSUERS_PER_TYPE: int = _get_int("SBT_MAX_ISSUERS_PER_TYPE", 50)
MAX_TYPES_PER_ISSUER: int = _get_int("SBT_MAX_TYPES_PER_ISSUER", 50)


# =============================================================================
# AUDIT
# =============================================================================

AUDIT_ENABLED: bool = os.getenv("SBT_AUDIT_ENABLED", "true").lower() == "true"
AUDIT_BUFFER_SIZE: int = _get_int("SBT_AUDIT_BUFFER_SIZE", 1000)
