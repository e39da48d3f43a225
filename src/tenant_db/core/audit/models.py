"""Activity log database model.

Append-only audit trail of tenant lifecycle events. Rows are never
updated; they disappear only when their tenant is purged.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from tenant_db.core.database.base import Base, UUIDMixin


class ActivityLog(Base, UUIDMixin):
    """Activity log entry.

    Attributes:
        tenant_id: Tenant the event belongs to (null for system-wide events)
        action: Dotted action name (tenant.created, migration.failed, ...)
        category: Event family (tenant, migration, system, ...)
        severity: info, warning, error or critical
        description: Human-readable summary
        metadata: Structured event payload
        created_at: When the event was recorded
    """

    __tablename__ = "activity_log"

    tenant_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("tenant.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    severity: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="info",
        index=True,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",  # Column name in database
        JSONB,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<ActivityLog(id={self.id}, action={self.action}, "
            f"severity={self.severity}, tenant_id={self.tenant_id})>"
        )
