# scripts/init_db.py
"""
Script to initialize database tables. Run from project root:
    python scripts/init_db.py
"""
import asyncio

from group_builder.infrastructure.db.session import init_models


def init():
    asyncio.run(init_models())
    print("DB initialized")

if __name__ == "__main__":
    init()
