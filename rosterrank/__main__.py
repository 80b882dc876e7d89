"""
rosterrank.__main__ — Serve the API
====================================

    python -m rosterrank [config.yaml]
"""

from __future__ import annotations

import logging
import sys

import uvicorn
from dotenv import load_dotenv

from rosterrank.config import load_config

load_dotenv()


def main() -> None:
    cfg = load_config(sys.argv[1] if len(sys.argv) > 1 else "config.yaml")
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("rosterrank").info(
        "Starting %s on port %d", cfg.service_name, cfg.api_port
    )
    uvicorn.run("rosterrank.api.main:app", host="0.0.0.0", port=cfg.api_port)


if __name__ == "__main__":
    main()
