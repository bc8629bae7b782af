#!/usr/bin/env python
"""Create the database tables and seed the default categories."""
import asyncio

from dotenv import load_dotenv

load_dotenv()

from sounddrop.db.connection import create_engine, create_session_factory
from sounddrop.db.models import Base
from sounddrop.db.seed import seed_categories
from sounddrop.main import validate_environment


async def init_db() -> None:
    engine = create_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = create_session_factory(engine)
    async with session_factory() as session:
        added = await seed_categories(session)
        await session.commit()

    await engine.dispose()
    print(f"Database tables created; {added} categories added")


if __name__ == "__main__":
    validate_environment()
    asyncio.run(init_db())
