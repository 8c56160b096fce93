"""
Run the AdTier application

    python run.py              # serve the API (scheduler included)
    python run.py sync-all     # run the daily sync cycle once and exit
"""
import argparse
import asyncio

import uvicorn

from adtier.core.config import settings


def serve(port: int) -> None:
    uvicorn.run(
        "adtier.main:app",
        host="0.0.0.0",
        port=port,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )


def sync_all() -> None:
    from adtier.core.database import Database
    from adtier.core.logging import setup_logging
    from adtier.tasks.sync_tasks import sync_all_brands

    setup_logging()
    db = Database(settings.database_url)
    db.create_all()
    try:
        result = asyncio.run(sync_all_brands(db, triggered_by="cli"))
    finally:
        db.dispose()
    print(f"Synced {result['succeeded']}/{result['brands']} brands ({result['failed']} failed)")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=settings.APP_NAME)
    parser.add_argument("command", nargs="?", default="serve", choices=["serve", "sync-all"])
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    if args.command == "sync-all":
        sync_all()
    else:
        serve(args.port)
