from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "mini_crud").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from mini_crud import AsyncRepository, ConnectionSettings, CrudConfig, connect_async


async def main() -> None:
    db = await connect_async(ConnectionSettings(driver="sqlite", path=":memory:"))
    async with AsyncRepository(db, CrudConfig()) as repo:
        await db.execute(
            'CREATE TABLE "tickets" ('
            "ticketsid INTEGER PRIMARY KEY, "
            "title TEXT, "
            "queue TEXT, "
            "modified TEXT)"
        )

        async with repo.transaction():
            first = await repo.insert("tickets", {"title": "Printer jam", "queue": "it"})
            await repo.insert("tickets", {"title": "New laptop", "queue": "it"})
            await repo.insert("tickets", {"title": "Payroll", "queue": "hr"})
        print("first id:", first)

        rows = await repo.update("tickets", first, {"title": "Printer jam (floor 2)"})
        print("after update:", rows)

        grouped = await repo.query('SELECT * FROM "tickets" ORDER BY ticketsid', index="queue")
        print("by queue:", {queue: len(items) for queue, items in grouped.indexed.items()})

        await repo.delete("tickets", first)
        print("remaining:", await repo.select("tickets"))


if __name__ == "__main__":
    asyncio.run(main())
