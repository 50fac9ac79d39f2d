import time

import aiosqlite

from backend.config import CACHE_TTL_SECONDS, DB_PATH

_db: aiosqlite.Connection | None = None


async def get_db() -> aiosqlite.Connection:
    global _db
    if _db is None:
        _db = await aiosqlite.connect(DB_PATH)
        _db.row_factory = aiosqlite.Row
        await _init_tables(_db)
    return _db


async def close_db() -> None:
    global _db
    if _db is not None:
        await _db.close()
        _db = None


async def _init_tables(db: aiosqlite.Connection) -> None:
    await db.execute("""
        CREATE TABLE IF NOT EXISTS scrape_cache (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            url TEXT NOT NULL,
            category TEXT NOT NULL,
            result_json TEXT NOT NULL,
            created_at REAL NOT NULL,
            UNIQUE(url, category)
        )
    """)
    await db.commit()


def _category_key(category: str) -> str:
    return category.lower().strip()


async def get_cached_result(url: str, category: str) -> str | None:
    """Return the cached result JSON for (*url*, *category*) unless it expired."""
    db = await get_db()
    cursor = await db.execute(
        "SELECT result_json, created_at FROM scrape_cache WHERE url = ? AND category = ?",
        (url, _category_key(category)),
    )
    row = await cursor.fetchone()
    if row is None:
        return None
    if time.time() - row["created_at"] > CACHE_TTL_SECONDS:
        await db.execute(
            "DELETE FROM scrape_cache WHERE url = ? AND category = ?",
            (url, _category_key(category)),
        )
        await db.commit()
        return None
    return row["result_json"]


async def set_cached_result(url: str, category: str, result_json: str) -> None:
    db = await get_db()
    await db.execute(
        """INSERT OR REPLACE INTO scrape_cache (url, category, result_json, created_at)
           VALUES (?, ?, ?, ?)""",
        (url, _category_key(category), result_json, time.time()),
    )
    await db.commit()
