from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from sqlalchemy import func
from sqlalchemy.orm import Query, Session, joinedload

from app.core import errors
from app.core.security import CurrentUser
from app.models.support import ConversationStatus, SupportConversation, SupportMessage, utcnow
from app.schemas.chat import (
    ConversationDetailResponse,
    ConversationOut,
    MessageCreateResponse,
    MessageOut,
    UserSummary,
)
from app.services.chat.policy import ChatPermissions, chat_permissions, is_admin_role


logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_CONTENT_LENGTH = 5000


def normalize_status(value: str | None) -> str:
    raw = str(value or "").strip().upper()
    try:
        return ConversationStatus(raw).value
    except ValueError:
        raise errors.ValidationError("Valid status (OPEN or CLOSED) is required")


def _clean_text(value: str | None, *, field: str, max_length: int) -> str:
    cleaned = str(value or "").strip()
    if not cleaned:
        raise errors.ValidationError(f"{field} is required")
    if len(cleaned) > max_length:
        raise errors.ValidationError(f"{field} must be at most {max_length} characters")
    return cleaned


class ChatService:
    """Support-chat operations over the conversation store.

    Every operation resolves the conversation, asks the chat policy what the
    actor may do and only then touches the store, so a refused call never
    leaves a partial write behind.
    """

    def __init__(self, db: Session, *, clock: Callable[[], datetime] = utcnow) -> None:
        self._db = db
        self._clock = clock

    def permissions_for(self, actor: CurrentUser, conversation: SupportConversation) -> ChatPermissions:
        return chat_permissions(
            is_admin=is_admin_role(actor.role),
            is_owner=conversation.user_id == actor.id,
            status=conversation.status,
        )

    def _load_conversation(self, conversation_id: int) -> SupportConversation:
        conversation = (
            self._db.query(SupportConversation)
            .options(joinedload(SupportConversation.user))
            .filter(SupportConversation.id == conversation_id)
            .first()
        )
        if conversation is None:
            raise errors.NotFoundError("Conversation not found")
        return conversation

    def _unread_filter(self, q: Query, actor: CurrentUser, owner_id: str | None = None) -> Query:
        q = (
            q.select_from(SupportMessage)
            .join(SupportConversation, SupportMessage.conversation_id == SupportConversation.id)
            .filter(SupportMessage.is_read.is_(False))
            .filter(SupportMessage.user_id != actor.id)
        )
        if is_admin_role(actor.role):
            # Staff only count what customers wrote in their own threads.
            q = q.filter(SupportMessage.user_id == SupportConversation.user_id)
            if owner_id:
                q = q.filter(SupportConversation.user_id == owner_id)
        else:
            q = q.filter(SupportConversation.user_id == actor.id)
        return q

    def unread_count(self, actor: CurrentUser, *, owner_id: str | None = None) -> int:
        q = self._unread_filter(self._db.query(func.count(SupportMessage.id)), actor, owner_id=owner_id)
        return int(q.scalar() or 0)

    def _unread_by_conversation(self, actor: CurrentUser, conversation_ids: list[int]) -> dict[int, int]:
        if not conversation_ids:
            return {}
        q = self._db.query(SupportMessage.conversation_id, func.count(SupportMessage.id))
        q = self._unread_filter(q, actor).filter(SupportMessage.conversation_id.in_(conversation_ids))
        rows = q.group_by(SupportMessage.conversation_id).all()
        return {int(cid): int(n or 0) for cid, n in rows}

    def _latest_messages(self, conversation_ids: list[int]) -> dict[int, SupportMessage]:
        if not conversation_ids:
            return {}
        latest = (
            self._db.query(
                SupportMessage.conversation_id.label("conversation_id"),
                func.max(SupportMessage.id).label("message_id"),
            )
            .filter(SupportMessage.conversation_id.in_(conversation_ids))
            .group_by(SupportMessage.conversation_id)
            .subquery()
        )
        rows = (
            self._db.query(SupportMessage)
            .options(joinedload(SupportMessage.sender))
            .join(latest, SupportMessage.id == latest.c.message_id)
            .all()
        )
        return {m.conversation_id: m for m in rows}

    def _conversation_out(
        self,
        conversation: SupportConversation,
        *,
        last_message: SupportMessage | None = None,
        unread_count: int = 0,
    ) -> ConversationOut:
        return ConversationOut(
            id=conversation.id,
            user_id=conversation.user_id,
            title=conversation.title,
            status=conversation.status,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
            user=(UserSummary.model_validate(conversation.user) if conversation.user is not None else None),
            last_message=(MessageOut.model_validate(last_message) if last_message is not None else None),
            unread_count=unread_count,
            has_unread=unread_count > 0,
        )

    def list_conversations(
        self,
        actor: CurrentUser,
        *,
        owner_id: str | None = None,
        status: str | None = None,
    ) -> list[ConversationOut]:
        q = self._db.query(SupportConversation).options(joinedload(SupportConversation.user))
        if is_admin_role(actor.role):
            owner_id = (owner_id or "").strip() or None
            if owner_id:
                q = q.filter(SupportConversation.user_id == owner_id)
        else:
            q = q.filter(SupportConversation.user_id == actor.id)

        raw_status = str(status or "").strip()
        if raw_status and raw_status.lower() != "all":
            q = q.filter(SupportConversation.status == normalize_status(raw_status))

        rows = q.order_by(SupportConversation.updated_at.desc(), SupportConversation.id.desc()).all()
        ids = [c.id for c in rows]
        previews = self._latest_messages(ids)
        unread = self._unread_by_conversation(actor, ids)
        return [
            self._conversation_out(c, last_message=previews.get(c.id), unread_count=unread.get(c.id, 0))
            for c in rows
        ]

    def create_conversation(self, actor: CurrentUser, title: str | None) -> ConversationOut:
        cleaned = _clean_text(title, field="Conversation title", max_length=MAX_TITLE_LENGTH)
        now = self._clock()
        conversation = SupportConversation(
            user_id=actor.id,
            title=cleaned,
            status=ConversationStatus.OPEN.value,
            created_at=now,
            updated_at=now,
        )
        self._db.add(conversation)
        self._db.commit()
        self._db.refresh(conversation)
        logger.info("chat.conversation.created conversation_id=%s user_id=%s", conversation.id, actor.id)
        return self._conversation_out(conversation)

    def list_messages(self, conversation_id: int, actor: CurrentUser) -> ConversationDetailResponse:
        conversation = self._load_conversation(conversation_id)
        if not self.permissions_for(actor, conversation).can_read:
            raise errors.AccessDeniedError("Access denied")

        rows = (
            self._db.query(SupportMessage)
            .options(joinedload(SupportMessage.sender))
            .filter(SupportMessage.conversation_id == conversation.id)
            .order_by(SupportMessage.created_at.asc(), SupportMessage.id.asc())
            .all()
        )
        messages = [MessageOut.model_validate(m) for m in rows]
        last_message = rows[-1] if rows else None
        conversation_out = self._conversation_out(conversation, last_message=last_message)

        marked = (
            self._db.query(SupportMessage)
            .filter(SupportMessage.conversation_id == conversation.id)
            .filter(SupportMessage.user_id != actor.id)
            .filter(SupportMessage.is_read.is_(False))
            .update({SupportMessage.is_read: True}, synchronize_session=False)
        )
        if marked:
            self._db.commit()
            logger.info(
                "chat.messages.marked_read conversation_id=%s reader_id=%s count=%s",
                conversation.id,
                actor.id,
                marked,
            )

        return ConversationDetailResponse(
            conversation=conversation_out,
            messages=messages,
            unread_count=self.unread_count(actor),
        )

    def send_message(self, conversation_id: int, actor: CurrentUser, content: str | None) -> MessageCreateResponse:
        cleaned = _clean_text(content, field="Message content", max_length=MAX_CONTENT_LENGTH)
        conversation = self._load_conversation(conversation_id)
        permissions = self.permissions_for(actor, conversation)
        if not permissions.can_read:
            raise errors.AccessDeniedError("Access denied")
        if not permissions.can_write:
            raise errors.AccessDeniedError("Conversation is closed")

        now = self._clock()
        message = SupportMessage(
            conversation_id=conversation.id,
            user_id=actor.id,
            content=cleaned,
            is_read=False,
            created_at=now,
        )
        conversation.updated_at = now
        self._db.add(message)
        self._db.commit()
        self._db.refresh(message)
        logger.info("chat.message.sent conversation_id=%s sender_id=%s message_id=%s", conversation.id, actor.id, message.id)
        return MessageCreateResponse(
            message=MessageOut.model_validate(message),
            unread_count=self.unread_count(actor),
        )

    def update_status(self, conversation_id: int, actor: CurrentUser, new_status: str | None) -> ConversationOut:
        status = normalize_status(new_status)
        conversation = self._load_conversation(conversation_id)
        permissions = self.permissions_for(actor, conversation)
        if not permissions.can_read:
            raise errors.AccessDeniedError("Access denied")
        if not permissions.can_change_status:
            raise errors.AccessDeniedError("Only admins can change conversation status")

        previous = conversation.status
        conversation.status = status
        conversation.updated_at = self._clock()
        self._db.commit()
        self._db.refresh(conversation)
        logger.info(
            "chat.conversation.status conversation_id=%s actor_id=%s from=%s to=%s",
            conversation.id,
            actor.id,
            previous,
            status,
        )
        previews = self._latest_messages([conversation.id])
        unread = self._unread_by_conversation(actor, [conversation.id])
        return self._conversation_out(
            conversation,
            last_message=previews.get(conversation.id),
            unread_count=unread.get(conversation.id, 0),
        )
