from datetime import datetime, timedelta, timezone

import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base
from app.core.security import CurrentUser
from app.models import catalog, support  # noqa: F401
from app.models.user import ROLE_ADMIN, ROLE_USER, User


TEST_JWT_SECRET = "storefront-test-secret-0123456789abcdef"


def make_session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    return engine, sessionmaker(autocommit=False, autoflush=False, bind=engine)


class StepClock:
    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)) -> None:
        self.now = start or datetime(2026, 3, 1, 9, 0, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        self.now = self.now + self.step
        return self.now


def add_user(db, user_id: str, *, role: str = ROLE_USER, name: str | None = None, email: str | None = None) -> CurrentUser:
    email = email or f"{user_id}@example.com"
    db.add(User(id=user_id, email=email, name=name or user_id.title(), role=role))
    db.commit()
    return CurrentUser(id=user_id, email=email, role=role, name=name or user_id.title())


def add_admin(db, user_id: str = "admin-1", **kwargs) -> CurrentUser:
    return add_user(db, user_id, role=ROLE_ADMIN, **kwargs)


def make_token(sub: str, *, email: str | None = None, name: str | None = None, role: str | None = None) -> str:
    payload = {"sub": sub, "email": email or f"{sub}@example.com", "name": name or sub.title()}
    if role:
        payload["role"] = role
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


def auth_headers(sub: str, **kwargs) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(sub, **kwargs)}"}
