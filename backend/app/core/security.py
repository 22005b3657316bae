from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import jwt
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core import errors
from app.core.database import get_db
from app.core.settings import settings
from app.models.user import ROLE_ADMIN, ROLE_USER, User
from app.services.accounts import find_user_by_email


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: str
    role: str
    name: str | None = None
    image: str | None = None

    @property
    def is_admin(self) -> bool:
        return (self.role or "").upper() == ROLE_ADMIN


def _normalize_email(value: str) -> str:
    return str(value or "").strip().lower()


def _is_admin_email(email: str) -> bool:
    normalized = _normalize_email(email)
    if not normalized:
        return False
    return normalized in (settings.admin_emails or set())


def _decode_token(token: str) -> dict[str, Any]:
    secret = settings.auth_jwt_secret
    if not secret:
        raise errors.InternalError("AUTH_JWT_SECRET is not configured")

    options: dict[str, Any] = {"require": ["sub"]}
    kwargs: dict[str, Any] = {}
    if settings.auth_jwt_audience:
        kwargs["audience"] = settings.auth_jwt_audience
    else:
        options["verify_aud"] = False
    if settings.auth_jwt_issuer:
        kwargs["issuer"] = settings.auth_jwt_issuer

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=settings.auth_jwt_algorithms or ["HS256"],
            options=options,
            **kwargs,
        )
    except jwt.PyJWTError:
        raise errors.UnauthorizedError("Invalid bearer token")
    return dict(payload)


def _decide_role(
    *,
    email_is_admin: bool,
    claim_is_admin: bool,
    db_role: str | None,
) -> tuple[str, str]:
    dbr = str(db_role or "").strip().upper()
    if dbr == ROLE_ADMIN:
        return (ROLE_ADMIN, "db_user")
    if email_is_admin:
        return (ROLE_ADMIN, "admin_emails")
    if claim_is_admin:
        return (ROLE_ADMIN, "token_claim")
    if dbr:
        return (dbr, "db_user")
    return (ROLE_USER, "default")


def _get_bearer_token(request: Request) -> str:
    auth = request.headers.get("authorization") or ""
    if not auth.lower().startswith("bearer "):
        raise errors.UnauthorizedError("Missing bearer token")
    token = auth.split(" ", 1)[1].strip()
    if not token:
        raise errors.UnauthorizedError("Missing bearer token")
    return token


def _claimed_role(claims: dict[str, Any]) -> str:
    app_meta = claims.get("app_metadata") or {}
    if not isinstance(app_meta, dict):
        app_meta = {}
    top_level = str(claims.get("role") or "").strip().upper()
    nested = str(app_meta.get("role") or "").strip().upper()
    return ROLE_ADMIN if ROLE_ADMIN in {top_level, nested} else ""


def get_current_user(request: Request, db: Session = Depends(get_db)) -> CurrentUser:
    token = _get_bearer_token(request)
    claims = _decode_token(token)

    user_id = str(claims.get("sub") or "").strip()
    if not user_id:
        raise errors.UnauthorizedError("Invalid token")
    email = str(claims.get("email") or "").strip()
    name = str(claims.get("name") or "").strip()
    image = str(claims.get("picture") or claims.get("image") or "").strip()
    claim_is_admin = _claimed_role(claims) == ROLE_ADMIN
    email_is_admin = _is_admin_email(email)

    user = db.query(User).filter(User.id == user_id).first()
    if user is None and email:
        # Accounts provisioned ahead of the first sign-in are matched by email.
        user = find_user_by_email(db, email)
    if user is None:
        role, _reason = _decide_role(email_is_admin=email_is_admin, claim_is_admin=claim_is_admin, db_role=None)
        user = User(
            id=user_id,
            email=email or None,
            name=name or None,
            image=image or None,
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    else:
        changed = False
        next_role, _reason = _decide_role(
            email_is_admin=email_is_admin,
            claim_is_admin=claim_is_admin,
            db_role=user.role,
        )
        if (user.role or "").upper() != next_role:
            user.role = next_role
            changed = True
        if email and (user.email or "") != email:
            user.email = email
            changed = True
        if name and (user.name or "") != name:
            user.name = name
            changed = True
        if image and (user.image or "") != image:
            user.image = image
            changed = True
        if changed:
            db.commit()
            db.refresh(user)

    return CurrentUser(
        id=user.id,
        email=user.email or "",
        role=(user.role or ROLE_USER).upper(),
        name=user.name,
        image=user.image,
    )


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise errors.AccessDeniedError("Admin access required")
    return user
