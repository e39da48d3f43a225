"""Tenant lifecycle graph.

    provisioning -> active | failed
    failed       -> active | failed | deleted
    active       -> suspended | deleted
    suspended    -> active | deleted
    deleted      -> (terminal, purge only)

No edge leads back into provisioning, and nothing leaves deleted. Only
provisioning itself moves a provisioning or failed tenant to active.
"""

from tenant_db.core.errors import InvalidStatusTransitionError
from tenant_db.modules.tenants.enums import TenantStatus


ALLOWED_TRANSITIONS: dict[TenantStatus, frozenset[TenantStatus]] = {
    TenantStatus.PROVISIONING: frozenset({TenantStatus.ACTIVE, TenantStatus.FAILED}),
    TenantStatus.FAILED: frozenset(
        {TenantStatus.ACTIVE, TenantStatus.FAILED, TenantStatus.DELETED}
    ),
    TenantStatus.ACTIVE: frozenset({TenantStatus.SUSPENDED, TenantStatus.DELETED}),
    TenantStatus.SUSPENDED: frozenset({TenantStatus.ACTIVE, TenantStatus.DELETED}),
    TenantStatus.DELETED: frozenset(),
}


def can_transition(current: TenantStatus | str, target: TenantStatus | str) -> bool:
    return TenantStatus(target) in ALLOWED_TRANSITIONS[TenantStatus(current)]


def ensure_transition(current: TenantStatus | str, target: TenantStatus | str) -> None:
    """Raise unless ``current -> target`` is an edge of the graph.

    Raises:
        InvalidStatusTransitionError: If the transition is not allowed
    """
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(str(current), str(target))


def can_purge(status: TenantStatus | str) -> bool:
    """Only soft-deleted tenants may be physically destroyed."""
    return TenantStatus(status) == TenantStatus.DELETED


# Taken only by complete_tenant_provisioning, once the physical database exists.
PROVISIONING_EDGES: frozenset[tuple[TenantStatus, TenantStatus]] = frozenset(
    {
        (TenantStatus.PROVISIONING, TenantStatus.ACTIVE),
        (TenantStatus.FAILED, TenantStatus.ACTIVE),
    }
)


def ensure_status_change(current: TenantStatus | str, target: TenantStatus | str) -> None:
    """Validate an operator-requested status change.

    Same graph as ensure_transition, except that a tenant without a
    finished database cannot be switched to active.

    Raises:
        InvalidStatusTransitionError: If the change is not allowed
    """
    if (TenantStatus(current), TenantStatus(target)) in PROVISIONING_EDGES:
        raise InvalidStatusTransitionError(str(current), str(target))
    ensure_transition(current, target)
