#!/usr/bin/env python3
"""
Simple SQLite Example

One file that demonstrates dbexec's three execution modes against a local
SQLite file: single statements, an all-or-nothing batch, and a manual session.
"""

import asyncio
import sys
import tempfile
from pathlib import Path

# Add src to path so we can import dbexec
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dbexec import Database, DbExecSettings, PoolConfig, TransactionError


async def main():
    db_file = Path(tempfile.mkdtemp()) / "example.db"
    settings = DbExecSettings(
        pool=PoolConfig(
            driver="sqlite",
            user=None,
            password=None,
            connect_string=str(db_file),
            pool_min=1,
            pool_max=4,
        ),
        environment="dev",
    )

    async with Database(settings) as db:
        await db.initialize()

        print("📊 Creating table...")
        await db.execute("CREATE TABLE orders (id INTEGER PRIMARY KEY, item TEXT)")

        print("\n🔄 Batch that commits")
        results = await db.execute_batch(
            [
                ("INSERT INTO orders (id, item) VALUES (:id, :item)", {"id": 1, "item": "bolt"}),
                ("INSERT INTO orders (id, item) VALUES (:id, :item)", {"id": 2, "item": "nut"}),
            ]
        )
        print(f"✅ {len(results)} statements committed")

        print("\n🔄 Batch that fails on its last statement")
        try:
            await db.execute_batch(
                [
                    "INSERT INTO orders (id, item) VALUES (3, 'washer')",
                    "INSERT INTO orders (id, item) VALUES (1, 'duplicate')",
                ]
            )
        except TransactionError as e:
            print(f"❌ Rolled back at statement {e.position}: {e}")

        print("\n🔄 Manual session")
        async with db.transaction() as session:
            last = (await session.run("SELECT MAX(id) AS last_id FROM orders")).first()
            await session.run(
                "INSERT INTO orders (id, item) VALUES (:id, 'screw')",
                {"id": last["last_id"] + 1},
            )

        rows = (await db.execute("SELECT id, item FROM orders ORDER BY id")).rows
        print(f"\n✅ {len(rows)} orders:")
        for row in rows:
            print(f"   {row['id']}: {row['item']}")


if __name__ == "__main__":
    asyncio.run(main())
