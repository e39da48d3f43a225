"""Background job tasks.

Each task module defines async functions registered in the worker.
"""

from tenant_db.core.jobs.tasks.provisioning import provision_tenant


__all__ = [
    "provision_tenant",
]
