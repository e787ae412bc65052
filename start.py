#!/usr/bin/env python3
"""
ASMIN Donation & Savings Platform - production launcher.

Configures logging, reports the effective settings, then serves ``main:app``
with uvicorn. Everything is read from the environment (see DESIGN.md).
"""

import uvicorn
import logging
import os
import sys
from pathlib import Path

logger = logging.getLogger("asmin.start")


def configure_logging():
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def warn_on_insecure_defaults():
    if not os.getenv("SECRET_KEY"):
        logger.warning("SECRET_KEY is not set; issued tokens will not survive a restart")
    if not os.getenv("MASTER_ADMIN_PASSWORD"):
        logger.warning("MASTER_ADMIN_PASSWORD is not set; the default master admin password is in use")
    if not os.getenv("DATABASE_URL"):
        logger.warning("DATABASE_URL is not set; using the local SQLite file asmin.db")


def main():
    configure_logging()

    # Relative SQLite and upload paths resolve against this directory
    app_dir = Path(__file__).parent
    os.chdir(app_dir)

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 8000))

    logger.info(f"Starting ASMIN API on {host}:{port} from {app_dir}")
    warn_on_insecure_defaults()

    try:
        uvicorn.run(
            "main:app",
            host=host,
            port=port,
            workers=1,
            access_log=True,
            server_header=False,
            timeout_keep_alive=30,
            log_config=None,  # keep configure_logging()
        )
    except KeyboardInterrupt:
        logger.info("Shutting down")
    except Exception:
        logger.exception("Server failed to start")
        sys.exit(1)


if __name__ == "__main__":
    main()
