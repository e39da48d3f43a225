"""TimescaleDB configuration for time-series tables.

Runs once per tenant database after migrations. Every statement is
idempotent, and the whole setup runs in one transaction: either every
table is partitioned with its policies attached, or nothing changes.
"""

from dataclasses import dataclass

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from tenant_db.core.errors import TimeSeriesSetupError


log = structlog.get_logger()


@dataclass(frozen=True)
class HypertableTarget:
    """How one table is partitioned and compressed.

    Attributes:
        table: Table name
        time_column: Partitioning column
        chunk_interval: Chunk size (e.g., "1 week")
        unique_index: Name of the dedup index, which must include time_column
        unique_columns: Columns of the dedup index, time_column last
        unique_where: Partial index predicate
        segment_by: Compression segment column
        compress_after: Age after which chunks are compressed
        retain_for: Age after which chunks are dropped
    """

    table: str
    time_column: str
    chunk_interval: str
    unique_index: str
    unique_columns: tuple[str, ...]
    unique_where: str
    segment_by: str
    compress_after: str
    retain_for: str


@dataclass(frozen=True)
class HypertableStatus:
    configured: bool
    chunks: int


MESSAGE_HYPERTABLE = HypertableTarget(
    table="message",
    time_column="timestamp",
    chunk_interval="1 week",
    unique_index="message_whatsapp_id_unique",
    unique_columns=("whatsapp_message_id", "timestamp"),
    unique_where="whatsapp_message_id IS NOT NULL",
    segment_by="chat_id",
    compress_after="1 month",
    retain_for="24 months",
)

CHAT_HYPERTABLE = HypertableTarget(
    table="chat",
    time_column="created_at",
    chunk_interval="1 month",
    unique_index="chat_channel_contact_unique",
    unique_columns=("channel_id", "contact_id", "created_at"),
    unique_where="channel_id IS NOT NULL",
    segment_by="organization_id",
    compress_after="3 months",
    retain_for="24 months",
)

DEFAULT_HYPERTABLES = (MESSAGE_HYPERTABLE, CHAT_HYPERTABLE)


class TimeSeriesConfigurator:
    """Converts tables to hypertables and attaches their policies."""

    def __init__(
        self,
        targets: tuple[HypertableTarget, ...] = DEFAULT_HYPERTABLES,
    ) -> None:
        self.targets = targets

    async def setup(self, engine: AsyncEngine) -> None:
        """Configure every target table.

        Args:
            engine: Migration engine for the tenant database

        Raises:
            TimeSeriesSetupError: If any statement fails
        """
        log.info("timescale_setup_started", tables=[t.table for t in self.targets])
        try:
            async with engine.begin() as conn:
                for target in self.targets:
                    await self._configure(conn, target)
                result = await conn.execute(
                    text(
                        "SELECT hypertable_name FROM timescaledb_information.hypertables "
                        "WHERE hypertable_schema = 'public' ORDER BY hypertable_name"
                    )
                )
                hypertables = [row.hypertable_name for row in result]
        except Exception as e:
            log.error("timescale_setup_failed", error=str(e))
            raise TimeSeriesSetupError(
                f"Failed to set up TimescaleDB: {e}",
                details={"tables": [t.table for t in self.targets]},
            ) from e

        log.info("timescale_setup_complete", hypertables=hypertables)

    async def _configure(self, conn: AsyncConnection, target: HypertableTarget) -> None:
        # The unique index is created after the conversion because
        # hypertable uniqueness must include the partitioning column.
        await conn.execute(
            text(
                "SELECT create_hypertable("
                f"'{target.table}', '{target.time_column}', "
                f"chunk_time_interval => INTERVAL '{target.chunk_interval}', "
                "if_not_exists => TRUE)"
            )
        )
        columns = ", ".join(target.unique_columns)
        await conn.execute(
            text(
                f"CREATE UNIQUE INDEX IF NOT EXISTS {target.unique_index} "
                f"ON {target.table} ({columns}) WHERE {target.unique_where}"
            )
        )
        await conn.execute(
            text(
                f"ALTER TABLE {target.table} SET ("
                "timescaledb.compress, "
                f"timescaledb.compress_orderby = '{target.time_column} DESC', "
                f"timescaledb.compress_segmentby = '{target.segment_by}')"
            )
        )
        await conn.execute(
            text(
                f"SELECT add_compression_policy('{target.table}', "
                f"INTERVAL '{target.compress_after}', if_not_exists => TRUE)"
            )
        )
        await conn.execute(
            text(
                f"SELECT add_retention_policy('{target.table}', "
                f"INTERVAL '{target.retain_for}', if_not_exists => TRUE)"
            )
        )
        log.debug(
            "hypertable_configured",
            table=target.table,
            chunk_interval=target.chunk_interval,
            compress_after=target.compress_after,
            retain_for=target.retain_for,
        )

    async def verify(self, engine: AsyncEngine) -> dict[str, HypertableStatus]:
        """Report which target tables are hypertables and their chunk counts."""
        tables = [t.table for t in self.targets]
        async with engine.connect() as conn:
            result = await conn.execute(
                text(
                    "SELECT h.hypertable_name, "
                    "(SELECT COUNT(*) FROM timescaledb_information.chunks c "
                    "WHERE c.hypertable_name = h.hypertable_name) AS num_chunks "
                    "FROM timescaledb_information.hypertables h "
                    "WHERE h.hypertable_schema = 'public' "
                    "AND h.hypertable_name = ANY(:tables)"
                ),
                {"tables": tables},
            )
            found = {row.hypertable_name: int(row.num_chunks) for row in result}

        return {
            table: HypertableStatus(configured=table in found, chunks=found.get(table, 0))
            for table in tables
        }
