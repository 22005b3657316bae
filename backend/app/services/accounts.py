from __future__ import annotations

import logging
from uuid import uuid4

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.user import ROLE_ADMIN, User


logger = logging.getLogger(__name__)


def find_user_by_email(db: Session, email: str) -> User | None:
    normalized = str(email or "").strip().lower()
    if not normalized:
        return None
    return db.query(User).filter(func.lower(User.email) == normalized).first()


def ensure_admin(db: Session, *, email: str, name: str | None = None) -> tuple[User, bool]:
    """Promote the user with this email to ADMIN, creating the row if needed.

    Returns the user and whether anything changed.
    """
    normalized = str(email or "").strip().lower()
    if not normalized:
        raise ValueError("email is required")

    user = find_user_by_email(db, normalized)
    if user is None:
        user = User(id=f"local-{uuid4().hex}", email=normalized, name=(name or "Admin User"), role=ROLE_ADMIN)
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("accounts.admin.created user_id=%s email=%s", user.id, normalized)
        return user, True

    if (user.role or "").upper() == ROLE_ADMIN:
        return user, False

    user.role = ROLE_ADMIN
    db.commit()
    db.refresh(user)
    logger.info("accounts.admin.promoted user_id=%s email=%s", user.id, normalized)
    return user, True
