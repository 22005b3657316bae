from __future__ import annotations

from app.models.support import ConversationStatus
from app.schemas.chat import ConversationOut


STATUS_FILTERS = {
    "all": None,
    "open": ConversationStatus.OPEN.value,
    "closed": ConversationStatus.CLOSED.value,
}


def filter_conversations(
    conversations: list[ConversationOut],
    status_filter: str = "all",
    customer_id: str | None = None,
) -> list[ConversationOut]:
    key = str(status_filter or "all").strip().lower()
    if key not in STATUS_FILTERS:
        raise ValueError(f"Unknown status filter: {status_filter!r}")
    wanted = STATUS_FILTERS[key]
    customer_id = (customer_id or "").strip() or None
    return [
        c
        for c in conversations
        if (wanted is None or c.status == wanted) and (customer_id is None or c.user_id == customer_id)
    ]


def needs_attention(conversation: ConversationOut) -> bool:
    return bool(conversation.has_unread)


def status_label(conversation: ConversationOut) -> str:
    return "Active" if conversation.status == ConversationStatus.OPEN.value else "Resolved"


def toggle_status(conversation: ConversationOut) -> str:
    if conversation.status == ConversationStatus.OPEN.value:
        return ConversationStatus.CLOSED.value
    return ConversationStatus.OPEN.value


def preview_text(conversation: ConversationOut, *, limit: int = 80) -> str:
    if conversation.last_message is None:
        return ""
    text = conversation.last_message.content.strip()
    if len(text) <= limit:
        return text
    return text[: max(0, limit - 1)].rstrip() + "…"
