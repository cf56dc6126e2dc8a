#!/usr/bin/env python3
"""Create a user and print their API token (shown once, stored hashed).

Usage:
    cd backend
    python -m scripts.create_user --name "Aisyah" --email aisyah@example.com
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

BACKEND_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BACKEND_DIR))

# Ensure CWD is backend/ so sqlite:///data/syariahos.db resolves correctly
os.chdir(BACKEND_DIR)

from sqlmodel import Session, select  # noqa: E402

from app.db.database import create_db_and_tables, engine  # noqa: E402
from app.models.user import User, hash_token, new_token  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
logger = logging.getLogger("create_user")


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a SyariahOS user")
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--rotate", action="store_true", help="Issue a new token for an existing email")
    args = parser.parse_args()

    create_db_and_tables()
    token = new_token()

    with Session(engine) as session:
        user = session.exec(select(User).where(User.email == args.email)).first()
        if user is not None and not args.rotate:
            logger.error("User %s already exists (use --rotate to issue a new token)", args.email)
            return 1
        if user is None:
            user = User(name=args.name, email=args.email, token_hash=hash_token(token))
        else:
            user.token_hash = hash_token(token)
        session.add(user)
        session.commit()
        logger.info("User %s ready (id=%s)", args.email, user.id)

    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
