"""Metadata-catalog introspection of report tables."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import inspect
from sqlalchemy.engine import Connection
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from ..core.exceptions import StorageUnavailableError, engine_message
from ..models.report import ColumnInfo, ColumnShape, ReportTable, TableSchema

logger = logging.getLogger(__name__)

DATE_COLUMN = "date"
PERIOD_COLUMN = "period"


def shape_for(column_names) -> ColumnShape:
    """Classify a table by the temporal column it exposes; ``date`` wins."""
    names = set(column_names)
    if DATE_COLUMN in names:
        return ColumnShape.HAS_DATE
    if PERIOD_COLUMN in names:
        return ColumnShape.HAS_PERIOD_COLUMN
    return ColumnShape.NEITHER


class SchemaIntrospector:
    """Discovers the column shape of a report table from the storage catalog."""

    def __init__(self, schema: Optional[str] = None):
        self.schema = schema

    async def introspect(self, conn: AsyncConnection, table: ReportTable) -> TableSchema:
        """
        Read the table's columns from the catalog and classify its shape.

        Args:
            conn: Open async connection
            table: Report table, already validated against the registry

        Returns:
            TableSchema; a table absent from the catalog yields NEITHER with no
            columns

        Raises:
            StorageUnavailableError: If the catalog query fails
        """
        try:
            reflected = await conn.run_sync(self._get_columns, table.value)
        except SQLAlchemyError as e:
            logger.error(f"Catalog query failed for {table.value}: {e}")
            raise StorageUnavailableError(
                error_message=engine_message(e),
                table=table.value,
                sql_error=engine_message(e),
            ) from e

        columns = tuple(ColumnInfo(name=column["name"], type=column["type"]) for column in reflected)
        shape = shape_for(column.name for column in columns)
        if not columns:
            logger.warning(f"Table {table.value} not found in catalog (schema={self.schema})")
        logger.debug(f"Introspected {table.value}: shape={shape.value} columns={len(columns)}")
        return TableSchema(table=table, shape=shape, columns=columns, schema=self.schema)

    async def table_exists(self, conn: AsyncConnection, table: ReportTable) -> bool:
        """Check the catalog for the table."""
        try:
            return await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).has_table(table.value, schema=self.schema)
            )
        except SQLAlchemyError as e:
            raise StorageUnavailableError(
                error_message=engine_message(e),
                table=table.value,
                sql_error=engine_message(e),
            ) from e

    def _get_columns(self, sync_conn: Connection, table_name: str) -> List[Dict[str, Any]]:
        try:
            return inspect(sync_conn).get_columns(table_name, schema=self.schema)
        except NoSuchTableError:
            return []
