from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core import errors
from app.core.database import get_db
from app.core.security import CurrentUser, require_admin
from app.models.catalog import Category, Product
from app.models.support import ConversationStatus, SupportConversation
from app.models.user import ROLE_ADMIN, ROLE_USER, User
from app.services.chat.service import ChatService


logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


class RoleUpdateRequest(BaseModel):
    email: str
    role: str = ROLE_ADMIN


@router.get("/admin/stats")
async def admin_stats(db: Session = Depends(get_db), current_user: CurrentUser = Depends(require_admin)) -> dict:
    users = int(db.query(func.count(User.id)).scalar() or 0)
    products = int(db.query(func.count(Product.id)).scalar() or 0)
    categories = int(db.query(func.count(Category.id)).scalar() or 0)
    status_rows = (
        db.query(SupportConversation.status, func.count(SupportConversation.id))
        .group_by(SupportConversation.status)
        .all()
    )
    by_status = {str(s): int(n or 0) for s, n in status_rows}
    return {
        "users": users,
        "products": products,
        "categories": categories,
        "open_conversations": by_status.get(ConversationStatus.OPEN.value, 0),
        "closed_conversations": by_status.get(ConversationStatus.CLOSED.value, 0),
        "unread_customer_messages": ChatService(db).unread_count(current_user),
    }


@router.get("/admin/users")
async def admin_list_users(limit: int = 50, offset: int = 0, db: Session = Depends(get_db)) -> list[dict]:
    limit = max(1, min(int(limit or 50), 200))
    offset = max(0, int(offset or 0))
    rows = db.query(User).order_by(User.created_at.desc(), User.id.asc()).offset(offset).limit(limit).all()
    user_ids = [u.id for u in rows if u and u.id]

    conversation_map: dict[str, int] = {}
    if user_ids:
        counts = (
            db.query(SupportConversation.user_id, func.count(SupportConversation.id))
            .filter(SupportConversation.user_id.in_(user_ids))
            .group_by(SupportConversation.user_id)
            .all()
        )
        for uid, total in counts:
            if uid:
                conversation_map[str(uid)] = int(total or 0)

    out: list[dict] = []
    for u in rows:
        out.append(
            {
                "id": u.id,
                "email": u.email or "",
                "name": u.name or "",
                "role": u.role or ROLE_USER,
                "conversations": conversation_map.get(str(u.id), 0),
            }
        )
    return out


@router.post("/admin/update-role")
async def admin_update_role(
    body: RoleUpdateRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> dict:
    email = (body.email or "").strip()
    if not email:
        raise errors.ValidationError("Email is required")
    role = (body.role or "").strip().upper()
    if role not in {ROLE_ADMIN, ROLE_USER}:
        raise errors.ValidationError("Role must be USER or ADMIN")

    user = db.query(User).filter(func.lower(User.email) == email.lower()).first()
    if user is None:
        raise errors.NotFoundError("User not found")
    if user.id == current_user.id and role != ROLE_ADMIN:
        raise errors.ValidationError("Admins cannot demote themselves")

    user.role = role
    db.commit()
    logger.info("admin.user.role_updated user_id=%s role=%s by=%s", user.id, role, current_user.id)
    return {
        "message": "User role updated successfully",
        "user": {"id": user.id, "email": user.email, "name": user.name, "role": user.role},
    }
