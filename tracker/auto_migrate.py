"""
Automatic database migration system.
Compares SQLAlchemy models with actual database schema and adds missing columns.
"""
import sqlite3
import logging
from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from tracker.database import engine as default_engine, Base
from tracker import models  # noqa: F401  Import to register all models

logger = logging.getLogger("tracker.migrations")


def get_table_columns(conn, table_name: str) -> dict:
    """Get existing columns from database table"""
    cursor = conn.cursor()
    cursor.execute(f"PRAGMA table_info({table_name})")
    columns = {}
    for row in cursor.fetchall():
        # row: (cid, name, type, notnull, dflt_value, pk)
        columns[row[1]] = {
            'type': row[2],
            'notnull': row[3],
            'default': row[4],
            'pk': row[5]
        }
    return columns


def sqlalchemy_type_to_sqlite(sa_type) -> str:
    """Convert SQLAlchemy type to SQLite type"""
    sa_type_upper = str(sa_type).upper()

    if 'INTEGER' in sa_type_upper or 'BIGINT' in sa_type_upper:
        return 'INTEGER'
    elif 'FLOAT' in sa_type_upper or 'NUMERIC' in sa_type_upper or 'REAL' in sa_type_upper:
        return 'REAL'
    elif 'BOOLEAN' in sa_type_upper:
        return 'INTEGER'  # SQLite stores booleans as integers
    return 'TEXT'  # Strings, dates and times are stored as text


def get_default_value(column) -> str:
    """Get default value for a column in SQL format"""
    default = column.default
    if default is None or not hasattr(default, 'arg'):
        return 'NULL'

    value = default.arg

    # SQLite rejects non-constant defaults in ALTER TABLE; callables (datetime.now)
    # are filled in by the ORM on insert
    if callable(value):
        return 'NULL'

    if isinstance(value, bool):
        return '1' if value else '0'
    elif isinstance(value, (int, float)):
        return str(value)
    elif isinstance(value, str):
        return f"'{value}'"
    return 'NULL'


def auto_migrate(engine: Engine = default_engine) -> int:
    """
    Add columns declared on models but missing from existing SQLite tables.

    Returns:
        Number of columns added
    """
    if engine.dialect.name != "sqlite":
        logger.info("Auto-migration only supports SQLite, skipping")
        return 0

    logger.info("Starting automatic schema migration...")

    conn = engine.raw_connection()
    cursor = conn.cursor()
    existing_tables = inspect(engine).get_table_names()

    migrations_applied = 0

    try:
        for table_name, table in Base.metadata.tables.items():
            if table_name not in existing_tables:
                logger.warning(f"Table '{table_name}' doesn't exist. Run Base.metadata.create_all() first.")
                continue

            existing_columns = get_table_columns(conn, table_name)

            for column in table.columns:
                if column.name in existing_columns:
                    continue

                sqlite_type = sqlalchemy_type_to_sqlite(column.type)
                default_value = get_default_value(column)

                alter_sql = f"ALTER TABLE {table_name} ADD COLUMN {column.name} {sqlite_type}"
                if default_value != 'NULL':
                    alter_sql += f" DEFAULT {default_value}"
                    # SQLite requires a default for NOT NULL columns in ALTER TABLE
                    if not column.nullable:
                        alter_sql += " NOT NULL"

                logger.info(f"Adding column '{column.name}' to table '{table_name}'")
                logger.debug(f"SQL: {alter_sql}")

                try:
                    cursor.execute(alter_sql)
                    migrations_applied += 1
                except sqlite3.Error as e:
                    logger.error(f"Failed to add column {table_name}.{column.name}: {e}")

        conn.commit()

        if migrations_applied > 0:
            logger.info(f"Migration completed: {migrations_applied} column(s) added")
        else:
            logger.info("Schema is up to date - no migrations needed")

    except Exception as e:
        logger.error(f"Migration failed: {e}")
        conn.rollback()
        raise
    finally:
        conn.close()

    return migrations_applied


if __name__ == "__main__":
    # Allow running as standalone script
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=default_engine)
    auto_migrate()
