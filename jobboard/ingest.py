"""
Ingestion entrypoint.
Loads scraped records from a JSON file or URL and stores them.

Usage: python -m jobboard.ingest <file-or-url>
"""
import asyncio
import logging
import sys

from jobboard.config import get_settings
from jobboard.database import build_engine, build_sessionmaker
from jobboard.errors import JobBoardError
from jobboard.services.ingestion import ingest_source

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def ingest_main(source: str) -> int:
    settings = get_settings()
    engine = build_engine(settings)
    async_session = build_sessionmaker(engine)
    try:
        async with async_session() as db:
            report = await ingest_source(db, source, settings)
    except JobBoardError as e:
        logger.error(f"Ingestion aborted: {e.message}")
        return 1
    finally:
        await engine.dispose()

    print(
        f"inserted={report.inserted} skipped={report.skipped} failed={report.failed}"
    )
    return 0 if report.failed == 0 else 2


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python -m jobboard.ingest <file-or-url>")
        sys.exit(1)
    sys.exit(asyncio.run(ingest_main(sys.argv[1])))
