"""Pytest fixtures for credential registry tests."""
import pytest

from soulbound.audit.logger import AuditLogger, reset_audit_logger
from soulbound.registry.registry import CredentialRegistry, reset_registry


# =============================================================================
# Test identities
# =============================================================================

ADMIN = "SP-ADMIN-0001"
ISSUER_A = "SP-ISSUER-A"
ISSUER_B = "SP-ISSUER-B"
HOLDER_X = "SP-HOLDER-X"
HOLDER_Y = "SP-HOLDER-Y"

DEGREE = "degree"
MEMBERSHIP = "dao-membership"


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset module-level singletons around every test."""
    reset_registry()
    reset_audit_logger()
    yield
    reset_registry()
    reset_audit_logger()


@pytest.fixture
def audit_logger() -> AuditLogger:
    """Fresh audit logger so tests can inspect emitted events."""
    return AuditLogger(enabled=True)


@pytest.fixture
def registry(audit_logger: AuditLogger) -> CredentialRegistry:
    """Empty registry administered by ADMIN."""
    return CredentialRegistry(ADMIN, audit_logger=audit_logger)


@pytest.fixture
async def granted_registry(registry: CredentialRegistry) -> CredentialRegistry:
    """Registry where ISSUER_A may issue degrees."""
    await registry.grant_issuer(ADMIN, ISSUER_A, DEGREE)
    return registry
