"""
Bootstrap seed helper for the first main manager account.
"""

from __future__ import annotations

import logging
import os

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.access import Role
from ..core.security import hash_password
from ..models.user import User


def seed_admin_user(db: Session) -> None:
    logger = logging.getLogger("auth-seed")
    username = (os.getenv("HR_ADMIN_USERNAME") or "admin").strip()
    password = (os.getenv("HR_ADMIN_PASSWORD") or "").strip()

    if not username:
        logger.warning("Skipping admin seed: empty HR_ADMIN_USERNAME")
        return
    if not password:
        logger.warning("Skipping admin seed: HR_ADMIN_PASSWORD is empty")
        return

    existing = db.query(User).filter(func.lower(User.username) == username.lower()).first()
    if existing:
        changed = False
        if existing.role != Role.MAIN_MANAGER.value:
            existing.role = Role.MAIN_MANAGER.value
            existing.branch_id = None
            changed = True
        if not existing.is_active:
            existing.is_active = True
            changed = True
        if changed:
            db.add(existing)
            db.commit()
            logger.info("Admin account restored username=%s", username)
        return

    db.add(
        User(
            username=username,
            password_hash=hash_password(password),
            role=Role.MAIN_MANAGER.value,
            full_name="Main Manager",
            is_active=True,
        )
    )
    db.commit()
    logger.info("Admin account seeded username=%s", username)
