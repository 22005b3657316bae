from __future__ import annotations

import itertools
import logging
from typing import Protocol

from app.client.chat_client import ChatClientError
from app.models.support import ConversationStatus
from app.schemas.chat import (
    ConversationCreateResponse,
    ConversationDetailResponse,
    ConversationListResponse,
    ConversationOut,
    MessageCreateResponse,
    MessageOut,
    StatusUpdateResponse,
)


logger = logging.getLogger(__name__)

CONVERSATIONS = "conversations"


class ChatApi(Protocol):
    async def list_conversations(
        self, *, owner_id: str | None = None, status: str | None = None
    ) -> ConversationListResponse: ...

    async def create_conversation(self, title: str) -> ConversationCreateResponse: ...

    async def get_conversation(self, conversation_id: int) -> ConversationDetailResponse: ...

    async def send_message(self, conversation_id: int, content: str) -> MessageCreateResponse: ...

    async def update_status(self, conversation_id: int, status: str) -> StatusUpdateResponse: ...


def _messages_key(conversation_id: int) -> str:
    return f"messages:{conversation_id}"


def sort_conversations(conversations: list[ConversationOut]) -> list[ConversationOut]:
    return sorted(conversations, key=lambda c: (c.updated_at, c.id), reverse=True)


def sort_messages(messages: list[MessageOut]) -> list[MessageOut]:
    return sorted(messages, key=lambda m: (m.created_at, m.id))


class ChatState:
    """Client-side support-chat store.

    Holds the conversation list, the open thread and the unread badge count.
    Every request takes a sequence number when it is issued; a response is
    only applied when nothing newer has already been applied for the same
    resource, so a slow, older response cannot overwrite fresher data. A
    thread response is additionally dropped when the user has moved on to a
    different conversation in the meantime. Failures keep the previous data
    and are exposed through ``last_error``.
    """

    def __init__(self, api: ChatApi, *, is_admin: bool = False, owner_filter: str | None = None) -> None:
        self._api = api
        self.is_admin = is_admin
        self.owner_filter = (owner_filter or "").strip() or None

        self.conversations: list[ConversationOut] = []
        self.messages: list[MessageOut] = []
        self.active_conversation: ConversationOut | None = None
        self.unread_count = 0
        self.last_error: ChatClientError | None = None
        self.drafts: dict[int, str] = {}

        self._pending = 0
        self._selected_id: int | None = None
        self._seq = itertools.count(1)
        self._applied: dict[str, int] = {}

    @property
    def loading(self) -> bool:
        return self._pending > 0

    @property
    def selected_conversation_id(self) -> int | None:
        return self._selected_id

    @property
    def filtered_conversations(self) -> list[ConversationOut]:
        if not self.owner_filter:
            return list(self.conversations)
        return [c for c in self.conversations if c.user_id == self.owner_filter]

    @property
    def can_send(self) -> bool:
        if self.active_conversation is None:
            return False
        return self.is_admin or self.active_conversation.status == ConversationStatus.OPEN.value

    def _accept(self, key: str, seq: int) -> bool:
        if seq < self._applied.get(key, 0):
            return False
        self._applied[key] = seq
        return True

    def _mark_applied(self, key: str, seq: int) -> None:
        self._applied[key] = max(seq, self._applied.get(key, 0))

    def _fail(self, action: str, exc: ChatClientError) -> None:
        logger.warning("chat_state.%s.failed kind=%s detail=%s", action, exc.kind, exc.message)
        self.last_error = exc

    def _recount(self, server_count: int | None = None) -> None:
        if server_count is not None and not (self.is_admin and self.owner_filter):
            self.unread_count = int(server_count)
        else:
            self.unread_count = sum(c.unread_count for c in self.filtered_conversations)

    def _replace_conversation(self, conversation: ConversationOut) -> None:
        others = [c for c in self.conversations if c.id != conversation.id]
        self.conversations = sort_conversations([conversation, *others])

    def set_draft(self, conversation_id: int, text: str) -> None:
        self.drafts[conversation_id] = text

    def clear_selection(self) -> None:
        self._selected_id = None
        self.active_conversation = None
        self.messages = []

    def set_owner_filter(self, owner_id: str | None) -> None:
        self.owner_filter = (owner_id or "").strip() or None
        if self.owner_filter and self.active_conversation and self.active_conversation.user_id != self.owner_filter:
            self.clear_selection()

    async def fetch_conversations(self) -> None:
        seq = next(self._seq)
        self._pending += 1
        try:
            resp = await self._api.list_conversations(owner_id=(self.owner_filter if self.is_admin else None))
        except ChatClientError as exc:
            self._fail("fetch_conversations", exc)
            return
        finally:
            self._pending -= 1

        if not self._accept(CONVERSATIONS, seq):
            return
        self.conversations = sort_conversations(list(resp.conversations))
        self.unread_count = int(resp.unread_count)
        if self.owner_filter and self.active_conversation and self.active_conversation.user_id != self.owner_filter:
            self.clear_selection()
        self.last_error = None

    async def fetch_messages(self, conversation_id: int) -> None:
        self._selected_id = conversation_id
        seq = next(self._seq)
        self._pending += 1
        try:
            resp = await self._api.get_conversation(conversation_id)
        except ChatClientError as exc:
            if self._selected_id != conversation_id:
                return
            # Fall back to the thread that is still on screen.
            self._selected_id = self.active_conversation.id if self.active_conversation is not None else None
            self._fail("fetch_messages", exc)
            return
        finally:
            self._pending -= 1

        if self._selected_id != conversation_id:
            return
        if not self._accept(_messages_key(conversation_id), seq):
            return
        self.active_conversation = resp.conversation
        self.messages = sort_messages(list(resp.messages))

        # The server marked everything from the other side as read.
        if any(c.id == conversation_id for c in self.conversations):
            current = next(c for c in self.conversations if c.id == conversation_id)
            self._replace_conversation(
                current.model_copy(
                    update={
                        "status": resp.conversation.status,
                        "title": resp.conversation.title,
                        "updated_at": resp.conversation.updated_at,
                        "unread_count": 0,
                        "has_unread": False,
                    }
                )
            )
            self._mark_applied(CONVERSATIONS, seq)
        self._recount(resp.unread_count)
        self.last_error = None

    async def send_message(self, conversation_id: int, content: str | None = None) -> MessageOut | None:
        text = content if content is not None else self.drafts.get(conversation_id, "")
        seq = next(self._seq)
        self._pending += 1
        try:
            resp = await self._api.send_message(conversation_id, text)
        except ChatClientError as exc:
            # Keep what the user typed so they can retry.
            self.drafts[conversation_id] = text
            self._fail("send_message", exc)
            return None
        finally:
            self._pending -= 1

        message = resp.message
        self.drafts.pop(conversation_id, None)
        # self.messages always belongs to active_conversation, not to the pending selection.
        is_open_thread = self.active_conversation is not None and self.active_conversation.id == conversation_id
        if is_open_thread:
            if all(m.id != message.id for m in self.messages):
                self.messages = sort_messages([*self.messages, message])
            self._mark_applied(_messages_key(conversation_id), seq)

        current = next((c for c in self.conversations if c.id == conversation_id), None)
        if current is not None:
            self._replace_conversation(
                current.model_copy(update={"updated_at": message.created_at, "last_message": message})
            )
            self._mark_applied(CONVERSATIONS, seq)
        if is_open_thread:
            self.active_conversation = self.active_conversation.model_copy(
                update={"updated_at": message.created_at, "last_message": message}
            )
        self._recount(resp.unread_count)
        self.last_error = None
        return message

    async def create_conversation(self, title: str) -> ConversationOut | None:
        seq = next(self._seq)
        self._pending += 1
        try:
            resp = await self._api.create_conversation(title)
        except ChatClientError as exc:
            self._fail("create_conversation", exc)
            return None
        finally:
            self._pending -= 1

        self._replace_conversation(resp.conversation)
        self._mark_applied(CONVERSATIONS, seq)
        self.last_error = None
        return resp.conversation

    async def update_conversation_status(self, conversation_id: int, status: str) -> ConversationOut | None:
        seq = next(self._seq)
        self._pending += 1
        try:
            resp = await self._api.update_status(conversation_id, status)
        except ChatClientError as exc:
            self._fail("update_conversation_status", exc)
            return None
        finally:
            self._pending -= 1

        conversation = resp.conversation
        if any(c.id == conversation_id for c in self.conversations):
            self._replace_conversation(conversation)
            self._mark_applied(CONVERSATIONS, seq)
        if self.active_conversation is not None and self.active_conversation.id == conversation_id:
            self.active_conversation = conversation
        self.last_error = None
        return conversation
