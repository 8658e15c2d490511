"""Create the clinic scheduler tables without running migrations.

Meant for local SQLite or throwaway databases; production goes through Alembic.
"""

import asyncio

from sqlalchemy import text

from clinic_scheduler.database import db_manager
from clinic_scheduler.models import metadata


async def init_db() -> None:
    """Create all tables on the configured database."""
    db_manager.init()
    try:
        async with db_manager.engine.begin() as conn:
            if conn.dialect.name == "postgresql":
                await conn.execute(text("CREATE EXTENSION IF NOT EXISTS btree_gist"))

            await conn.run_sync(metadata.create_all)

            tables = ", ".join(sorted(metadata.tables))
            print(f"✓ Created tables on {conn.dialect.name}: {tables}")
    finally:
        await db_manager.dispose()


if __name__ == "__main__":
    asyncio.run(init_db())
