import asyncio
from typing import List

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

import app.core.models  # noqa: F401  (registers tables on Base.metadata)
from app.db.session import Base, engine


def _missing_tables(sync_conn) -> List[str]:
    existing = set(inspect(sync_conn).get_table_names())
    return [t.name for t in Base.metadata.sorted_tables if t.name not in existing]


async def ensure_tables(db_engine: AsyncEngine) -> List[str]:
    """
    Ensure that all tables exist in the connected database, creating the
    missing ones in dependency order. Returns the names that were created.
    """
    async with db_engine.begin() as conn:
        missing = await conn.run_sync(_missing_tables)
        await conn.run_sync(Base.metadata.create_all)
    return missing


async def main() -> None:
    missing = await ensure_tables(engine)
    if missing:
        print("Created missing tables: " + ", ".join(missing))
    else:
        print("All required tables already exist in the database.")


if __name__ == "__main__":
    asyncio.run(main())
