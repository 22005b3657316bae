from __future__ import annotations

from dataclasses import dataclass

from app.models.support import ConversationStatus
from app.models.user import ROLE_ADMIN


@dataclass(frozen=True)
class ChatPermissions:
    can_read: bool
    can_write: bool
    can_change_status: bool


NO_ACCESS = ChatPermissions(can_read=False, can_write=False, can_change_status=False)


def is_admin_role(role: str | None) -> bool:
    return str(role or "").strip().upper() == ROLE_ADMIN


def chat_permissions(*, is_admin: bool, is_owner: bool, status: str | None) -> ChatPermissions:
    """Single source of truth for what an actor may do with one conversation.

    Admins have full rights everywhere. A customer owning the conversation can
    read it, and write to it only while it is open. Nobody but an admin may
    move a conversation between OPEN and CLOSED, in either direction.
    """
    if is_admin:
        return ChatPermissions(can_read=True, can_write=True, can_change_status=True)
    if not is_owner:
        return NO_ACCESS
    is_open = str(status or "").upper() == ConversationStatus.OPEN.value
    return ChatPermissions(can_read=True, can_write=is_open, can_change_status=False)
