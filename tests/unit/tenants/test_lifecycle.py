"""Tests for the tenant lifecycle graph."""

import pytest

from tenant_db.core.errors import InvalidStatusTransitionError
from tenant_db.modules.tenants.enums import TenantStatus
from tenant_db.modules.tenants.lifecycle import (
    can_purge,
    can_transition,
    ensure_status_change,
    ensure_transition,
)


ALLOWED = [
    ("provisioning", "active"),
    ("provisioning", "failed"),
    ("failed", "active"),
    ("failed", "failed"),
    ("failed", "deleted"),
    ("active", "suspended"),
    ("active", "deleted"),
    ("suspended", "active"),
    ("suspended", "deleted"),
]

FORBIDDEN = [
    ("active", "provisioning"),
    ("suspended", "provisioning"),
    ("failed", "provisioning"),
    ("deleted", "active"),
    ("deleted", "suspended"),
    ("deleted", "provisioning"),
    ("provisioning", "suspended"),
    ("provisioning", "deleted"),
    ("active", "failed"),
]


class TestTransitions:
    """Tests for can_transition and ensure_transition."""

    @pytest.mark.parametrize(("current", "target"), ALLOWED)
    def test_allowed(self, current, target):
        assert can_transition(current, target)
        ensure_transition(current, target)

    @pytest.mark.parametrize(("current", "target"), FORBIDDEN)
    def test_forbidden(self, current, target):
        assert not can_transition(current, target)
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            ensure_transition(current, target)
        assert exc_info.value.details == {"current": current, "target": target}

    def test_nothing_leaves_deleted(self):
        assert not any(can_transition(TenantStatus.DELETED, s) for s in TenantStatus)



class TestStatusChange:
    """Tests for ensure_status_change."""

    @pytest.mark.parametrize(
        ("current", "target"), [("provisioning", "active"), ("failed", "active")]
    )
    def test_unprovisioned_cannot_be_activated(self, current, target):
        """Verify only provisioning itself activates a tenant without a database."""
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            ensure_status_change(current, target)
        assert exc_info.value.details == {"current": current, "target": target}

    @pytest.mark.parametrize(
        ("current", "target"),
        [("suspended", "active"), ("active", "suspended"), ("failed", "deleted")],
    )
    def test_other_edges_allowed(self, current, target):
        ensure_status_change(current, target)

    def test_graph_still_applies(self):
        with pytest.raises(InvalidStatusTransitionError):
            ensure_status_change("deleted", "active")


class TestCanPurge:
    def test_only_deleted_can_be_purged(self):
        assert can_purge(TenantStatus.DELETED)
        assert not any(can_purge(s) for s in TenantStatus if s != TenantStatus.DELETED)
