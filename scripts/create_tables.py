import asyncio

from app.db.session import create_tables, make_engine
import app.db.models  # registers LocalStorageItem


async def main():
    engine = make_engine()
    await create_tables(engine)
    await engine.dispose()
    print("✅ Local storage table created/verified")


if __name__ == "__main__":
    asyncio.run(main())
