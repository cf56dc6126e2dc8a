#!/usr/bin/env python3
"""Reset recurring tasks whose cycle has elapsed (daily/weekly/monthly/yearly).

Usage:
    cd backend
    python -m scripts.run_task_reset
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

BACKEND_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BACKEND_DIR))

os.chdir(BACKEND_DIR)

from app.db.database import create_db_and_tables  # noqa: E402
from app.services.task_reset import TaskResetService  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
logger = logging.getLogger("run_task_reset")


def main() -> None:
    create_db_and_tables()
    logger.info("Starting task reset process...")
    count = TaskResetService().reset_eligible_tasks()
    if count:
        logger.info("Successfully reset %d task(s).", count)
    else:
        logger.info("No tasks required resetting.")


if __name__ == "__main__":
    main()
