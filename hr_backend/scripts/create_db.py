"""Create database tables and seed the main manager account."""

from __future__ import annotations

import logging

from hr_backend.core.db import SessionLocal, engine
from hr_backend.models import Base
from hr_backend.services.auth_seed import seed_admin_user


logger = logging.getLogger("scripts.create_db")


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified.")
    with SessionLocal() as db:
        seed_admin_user(db)


if __name__ == "__main__":
    main()
