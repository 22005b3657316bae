from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class UserSummary(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None
    role: Optional[str] = None

    class Config:
        from_attributes = True


class MessageOut(BaseModel):
    id: int
    conversation_id: int
    user_id: str
    content: str
    is_read: bool
    created_at: datetime
    sender: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class ConversationOut(BaseModel):
    id: int
    user_id: str
    title: str
    status: str
    created_at: datetime
    updated_at: datetime
    user: Optional[UserSummary] = None
    last_message: Optional[MessageOut] = None
    unread_count: int = 0
    has_unread: bool = False

    class Config:
        from_attributes = True


class ConversationListResponse(BaseModel):
    conversations: List[ConversationOut]
    unread_count: int


class ConversationDetailResponse(BaseModel):
    conversation: ConversationOut
    messages: List[MessageOut]
    unread_count: int


class ConversationCreateRequest(BaseModel):
    title: str = ""


class ConversationCreateResponse(BaseModel):
    success: bool = True
    conversation: ConversationOut


class MessageCreateRequest(BaseModel):
    content: str = ""


class MessageCreateResponse(BaseModel):
    success: bool = True
    message: MessageOut
    unread_count: int


class StatusUpdateRequest(BaseModel):
    status: str = ""


class StatusUpdateResponse(BaseModel):
    success: bool = True
    conversation: ConversationOut
