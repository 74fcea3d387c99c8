import argparse
import logging
import uvicorn
from fastapi import FastAPI
from contextlib import asynccontextmanager

import sys
from pathlib import Path

# Add project root to path for package imports
base_dir = Path(__file__).parent
sys.path.insert(0, str(base_dir))

from db.database import init_db
from config import load_config
from routes import cards_router, sessions_router

logger = logging.getLogger("lexiloop")


def configure_logging(config: dict) -> None:
    logging.basicConfig(
        level=getattr(logging, config["logging"]["level"], logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# First-run init
@asynccontextmanager
async def lifespan(app: FastAPI):
    config = load_config()  # Ensures config exists
    configure_logging(config)
    init_db()
    yield


app = FastAPI(
    title="LexiLoop",
    description="Adaptive vocabulary sessions with spaced repetition",
    lifespan=lifespan,
)

app.include_router(cards_router, prefix="/cards", tags=["cards"])
app.include_router(sessions_router, prefix="/sessions", tags=["sessions"])


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="LexiLoop App")
    parser.add_argument("--init", action="store_true", help="Initialize DB and config")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    args = parser.parse_args()
    if args.init:
        configure_logging(load_config())  # Ensures config is copied if missing
        init_db()
        logger.info("DB initialized and config copied to ~/.lexiloop/")
        sys.exit(0)
    uvicorn.run("main:app", host="127.0.0.1", port=args.port, reload=args.dev, log_level="info")
