# manages the sqlite file behind the document store and account store
import asyncio
import os.path
from contextlib import asynccontextmanager
from pathlib import Path
from sqlite3 import Row
from typing import AsyncIterator

import aiosqlite

from marketplace.errors import RemoteError
from marketplace.utils.logger import get_logger

_logger = get_logger(__name__)

SCRIPT_DIR = Path(__file__).resolve().parent
SCHEMA_SCRIPTS = [SCRIPT_DIR / "schema.sql"]
SEED_SCRIPTS = [SCRIPT_DIR / "seed-catalog.sql"]


async def _run_scripts(conn: aiosqlite.Connection, scripts: list[Path]) -> None:
    for script in scripts:
        if not os.path.exists(script) or os.path.getsize(script) == 0:
            continue
        _logger.info(f"Initializing database with script {script.name}...")
        with open(script, "r") as f:
            await conn.executescript(f.read())
    await conn.commit()


async def _table_exists(conn: aiosqlite.Connection, table_name: str) -> bool:
    cur = await conn.execute(
        """
        SELECT name
        FROM sqlite_master
        WHERE type = 'table'
          AND name = ?;
        """,
        (table_name,),
    )
    row = await cur.fetchone()
    await cur.close()
    return row is not None


class Database:
    """
    Owns the sqlite file path and lazily creates the schema on first use.

    One instance is shared by the document store and the account store.
    """

    def __init__(self, path: str, seed: bool = False) -> None:
        self.path = path
        self.seed = seed
        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def _ensure_initialized(self, conn: aiosqlite.Connection) -> None:
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            if not await _table_exists(conn, "documents"):
                _logger.info(f"Initializing database at {self.path}...")
                await _run_scripts(conn, SCHEMA_SCRIPTS)
                if self.seed:
                    await _run_scripts(conn, SEED_SCRIPTS)
            self._initialized = True

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Async context manager yielding an aiosqlite connection.

        Ensures the database is initialized (tables and optional seed data)
        on first use. sqlite errors raised while opening or using the
        connection surface as RemoteError.
        """
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        try:
            conn = await aiosqlite.connect(self.path)
        except aiosqlite.Error as e:
            raise RemoteError(f"Cannot open database: {e}") from e
        conn.row_factory = Row
        try:
            await self._ensure_initialized(conn)
            yield conn
        except aiosqlite.Error as e:
            raise RemoteError(str(e)) from e
        finally:
            await conn.close()
