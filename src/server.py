"""Web server entry point."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import uvicorn

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.config import Config

logger = logging.getLogger(__name__)


def main(argv: Optional[list[str]] = None) -> int:
    """Serve the Letterboxd Wrapped API with uvicorn."""
    parser = argparse.ArgumentParser(description="Run the Letterboxd Wrapped web API")
    parser.add_argument("--host", default=Config.WEB_HOST, help="Interface to bind (default: from .env)")
    parser.add_argument("--port", type=int, default=Config.WEB_PORT, help="Port to listen on (default: from .env)")
    args = parser.parse_args(argv)

    errors = Config.validate()
    if errors:
        print("Configuration errors:")
        for error in errors:
            print(f"  - {error}")
        return 1

    Config.ensure_directories()
    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if not Config.enrichment_enabled():
        logger.warning("TMDB_API_KEY not set, reports will not be enriched")
    logger.info(f"Serving on http://{args.host}:{args.port} (database: {Config.DATABASE_PATH})")

    uvicorn.run(
        "src.web.app:app",
        host=args.host,
        port=args.port,
        log_level=Config.LOG_LEVEL.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
