from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import CurrentUser, get_current_user
from app.schemas.chat import (
    ConversationCreateRequest,
    ConversationCreateResponse,
    ConversationDetailResponse,
    ConversationListResponse,
    MessageCreateRequest,
    MessageCreateResponse,
    StatusUpdateRequest,
    StatusUpdateResponse,
)
from app.services.chat.service import ChatService


router = APIRouter(dependencies=[Depends(get_current_user)])


def get_chat_service(db: Session = Depends(get_db)) -> ChatService:
    return ChatService(db)


@router.get("/chats", response_model=ConversationListResponse)
async def list_conversations(
    user_id: str | None = Query(default=None, alias="userId"),
    status: str | None = None,
    service: ChatService = Depends(get_chat_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    conversations = service.list_conversations(current_user, owner_id=user_id, status=status)
    owner_filter = user_id if current_user.is_admin else None
    return ConversationListResponse(
        conversations=conversations,
        unread_count=service.unread_count(current_user, owner_id=owner_filter),
    )


@router.post("/chats", response_model=ConversationCreateResponse, status_code=201)
async def create_conversation(
    body: ConversationCreateRequest,
    service: ChatService = Depends(get_chat_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    conversation = service.create_conversation(current_user, body.title)
    return ConversationCreateResponse(conversation=conversation)


@router.get("/chats/{conversation_id}", response_model=ConversationDetailResponse)
async def list_messages(
    conversation_id: int,
    service: ChatService = Depends(get_chat_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.list_messages(conversation_id, current_user)


@router.post("/chats/{conversation_id}", response_model=MessageCreateResponse, status_code=201)
async def send_message(
    conversation_id: int,
    body: MessageCreateRequest,
    service: ChatService = Depends(get_chat_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.send_message(conversation_id, current_user, body.content)


@router.patch("/chats/{conversation_id}", response_model=StatusUpdateResponse)
async def update_status(
    conversation_id: int,
    body: StatusUpdateRequest,
    service: ChatService = Depends(get_chat_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    conversation = service.update_status(conversation_id, current_user, body.status)
    return StatusUpdateResponse(conversation=conversation)
