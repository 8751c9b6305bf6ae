#!/usr/bin/env python
import uvicorn
import os
import sys
from dotenv import load_dotenv
from pathlib import Path

from loguru import logger

from src.devnet.config import load_config

if __name__ == "__main__":
    load_dotenv(Path.cwd() / ".env")
    log_level = load_config().log_level.upper()
    logger.remove()
    logger.add(sys.stderr, level=log_level)
    logger.info("Devnet node orchestrator API, start running!")

    uvicorn.run(
        "src.devnet.main:app",
        host="127.0.0.1",
        port=int(os.getenv("PORT", "8000")),
        log_level=log_level.lower(),
    )
