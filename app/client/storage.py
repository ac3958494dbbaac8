from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.db.models import LocalStorageItem
from app.db.session import create_tables, make_engine, make_sessionmaker


class LocalStorage:
    """
    Persistent string key/value store for the client (the counterpart of
    browser localStorage), kept in a local SQLite file.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        engine: Optional[AsyncEngine] = None,
    ) -> None:
        self._sessionmaker = sessionmaker
        self._engine = engine

    @classmethod
    async def open(cls, url: str | None = None) -> "LocalStorage":
        engine = make_engine(url)
        await create_tables(engine)
        return cls(make_sessionmaker(engine), engine)

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

    async def get_item(self, key: str) -> Optional[str]:
        async with self._sessionmaker() as session:
            result = await session.execute(
                select(LocalStorageItem.value).where(LocalStorageItem.key == key)
            )
            return result.scalar_one_or_none()

    async def set_item(self, key: str, value: str) -> None:
        async with self._sessionmaker() as session:
            item = await session.get(LocalStorageItem, key)
            if item is None:
                session.add(LocalStorageItem(key=key, value=value))
            else:
                item.value = value
            await session.commit()

    async def remove_item(self, key: str) -> None:
        async with self._sessionmaker() as session:
            item = await session.get(LocalStorageItem, key)
            if item is not None:
                await session.delete(item)
                await session.commit()
