"""Tests for registry snapshot export and restore."""
import pytest

from soulbound.core.exceptions import ErrorCode, NotAuthorizedError, SnapshotError
from soulbound.registry.models import CredentialStatus
from soulbound.registry.registry import CredentialRegistry
from soulbound.registry.snapshot import (
    CredentialRecord,
    GrantRecord,
    RegistrySnapshot,
    check_snapshot,
)

from tests.conftest import ADMIN, DEGREE, HOLDER_X, HOLDER_Y, ISSUER_A, ISSUER_B, MEMBERSHIP


@pytest.fixture
async def populated(registry):
    """Registry with grants, an expiring credential and a revoked one."""
    await registry.grant_issuer(ADMIN, ISSUER_A, DEGREE)
    await registry.grant_issuer(ADMIN, ISSUER_B, MEMBERSHIP)
    await registry.issue(ISSUER_A, HOLDER_X, DEGREE, "BSc", None, now=1)
    await registry.issue(ISSUER_B, HOLDER_X, MEMBERSHIP, "dao#7", 100, now=2)
    await registry.issue(ISSUER_A, HOLDER_Y, DEGREE, "MSc", None, now=3)
    await registry.revoke(ISSUER_A, 3, "withdrawn", now=4)
    return registry


def record(credential_id: int, holder: str = HOLDER_X, **overrides) -> CredentialRecord:
    fields = dict(
        credential_id=credential_id,
        holder=holder,
        issuer=ISSUER_A,
        credential_type=DEGREE,
        metadata="m",
        issue_time=1,
        expiry=None,
    )
    fields.update(overrides)
    return CredentialRecord(**fields)


class TestExport:
    """export_snapshot()."""

    @pytest.mark.asyncio
    async def test_contents(self, populated):
        snapshot = await populated.export_snapshot()

        assert snapshot.admin == ADMIN
        assert snapshot.next_id == 4
        assert [c.credential_id for c in snapshot.credentials] == [1, 2, 3]
        assert snapshot.credentials[2].status is CredentialStatus.REVOKED
        assert snapshot.holder_index == {HOLDER_X: [1, 2], HOLDER_Y: [3]}
        assert snapshot.grants == [
            GrantRecord(issuer=ISSUER_A, credential_type=DEGREE),
            GrantRecord(issuer=ISSUER_B, credential_type=MEMBERSHIP),
        ]
        assert snapshot.type_counts == {DEGREE: 2, MEMBERSHIP: 1}

    @pytest.mark.asyncio
    async def test_empty_registry(self, registry):
        snapshot = await registry.export_snapshot()
        check_snapshot(snapshot)
        assert snapshot.next_id == 1
        assert snapshot.credentials == []


class TestRestore:
    """from_snapshot() through JSON."""

    @pytest.mark.asyncio
    async def test_json_round_trip_answers_queries(self, populated, audit_logger):
        payload = (await populated.export_snapshot()).model_dump_json()
        restored = CredentialRegistry.from_snapshot(
            RegistrySnapshot.model_validate_json(payload), audit_logger=audit_logger
        )

        assert restored.admin == ADMIN
        assert await restored.get_next_id() == 4
        assert await restored.verify(HOLDER_X, DEGREE, now=5) is True
        assert await restored.verify(HOLDER_X, MEMBERSHIP, now=99) is True
        assert await restored.verify(HOLDER_X, MEMBERSHIP, now=100) is False
        assert await restored.verify(HOLDER_Y, DEGREE, now=5) is False
        assert await restored.get_issuer_permissions(ISSUER_B) == {MEMBERSHIP}
        assert await restored.export_snapshot() == await populated.export_snapshot()

    @pytest.mark.asyncio
    async def test_restored_registry_keeps_rules(self, populated, audit_logger):
        restored = CredentialRegistry.from_snapshot(
            await populated.export_snapshot(), audit_logger=audit_logger
        )
        assert await restored.issue(ISSUER_A, HOLDER_Y, DEGREE, "PhD", None, now=10) == 4
        with pytest.raises(NotAuthorizedError):
            await restored.revoke(ISSUER_B, 1, "r", now=11)

    def test_holder_capacity_enforced(self):
        snapshot = RegistrySnapshot(
            admin=ADMIN,
            next_id=3,
            credentials=[record(1), record(2)],
            holder_index={HOLDER_X: [1, 2]},
            type_counts={DEGREE: 2},
        )
        with pytest.raises(SnapshotError):
            CredentialRegistry.from_snapshot(snapshot, max_credentials_per_holder=1)

    def test_duplicate_grant_rejected(self):
        snapshot = RegistrySnapshot(
            admin=ADMIN,
            grants=[
                GrantRecord(issuer=ISSUER_A, credential_type=DEGREE),
                GrantRecord(issuer=ISSUER_A, credential_type=DEGREE),
            ],
        )
        with pytest.raises(SnapshotError) as exc_info:
            CredentialRegistry.from_snapshot(snapshot)
        assert exc_info.value.code == ErrorCode.INVALID_SNAPSHOT


class TestCheckSnapshot:
    """Invariant checks on snapshots."""

    def test_gap_in_ids(self):
        snapshot = RegistrySnapshot(
            admin=ADMIN,
            next_id=3,
            credentials=[record(2)],
            holder_index={HOLDER_X: [2]},
            type_counts={DEGREE: 1},
        )
        with pytest.raises(SnapshotError):
            check_snapshot(snapshot)

    def test_self_issued(self):
        snapshot = RegistrySnapshot(
            admin=ADMIN,
            next_id=2,
            credentials=[record(1, holder=ISSUER_A)],
            holder_index={ISSUER_A: [1]},
            type_counts={DEGREE: 1},
        )
        with pytest.raises(SnapshotError, match="self-issued"):
            check_snapshot(snapshot)

    def test_expiry_before_issue_time(self):
        snapshot = RegistrySnapshot(
            admin=ADMIN,
            next_id=2,
            credentials=[record(1, issue_time=10, expiry=10)],
            holder_index={HOLDER_X: [1]},
            type_counts={DEGREE: 1},
        )
        with pytest.raises(SnapshotError):
            check_snapshot(snapshot)

    def test_indexed_under_wrong_holder(self):
        snapshot = RegistrySnapshot(
            admin=ADMIN,
            next_id=2,
            credentials=[record(1)],
            holder_index={HOLDER_Y: [1]},
            type_counts={DEGREE: 1},
        )
        with pytest.raises(SnapshotError):
            check_snapshot(snapshot)

    def test_missing_from_holder_index(self):
        snapshot = RegistrySnapshot(
            admin=ADMIN,
            next_id=2,
            credentials=[record(1)],
            type_counts={DEGREE: 1},
        )
        with pytest.raises(SnapshotError, match="exactly once"):
            check_snapshot(snapshot)

    def test_type_count_mismatch(self):
        snapshot = RegistrySnapshot(
            admin=ADMIN,
            next_id=2,
            credentials=[record(1)],
            holder_index={HOLDER_X: [1]},
            type_counts={DEGREE: 5},
        )
        with pytest.raises(SnapshotError, match="Type counts"):
            check_snapshot(snapshot)
