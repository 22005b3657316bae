from __future__ import annotations

from typing import Any

import httpx

from app.schemas.chat import (
    ConversationCreateResponse,
    ConversationDetailResponse,
    ConversationListResponse,
    MessageCreateResponse,
    StatusUpdateResponse,
)


class ChatClientError(RuntimeError):
    def __init__(self, kind: str, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code


_STATUS_KINDS = {
    400: "ValidationError",
    401: "Unauthorized",
    403: "AccessDenied",
    404: "NotFound",
    422: "ValidationError",
}


class ChatApiClient:
    """Async transport for the support-chat HTTP API."""

    def __init__(
        self,
        *,
        base_url: str,
        token: str | None = None,
        timeout_s: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"accept": "application/json"}
        if token:
            headers["authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=(base_url or "").rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout_s),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ChatApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise ChatClientError("Internal", f"Request failed: {exc}") from exc

        try:
            payload = resp.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if resp.status_code >= 400:
            kind = str(payload.get("error") or _STATUS_KINDS.get(resp.status_code, "Internal"))
            detail = payload.get("detail")
            if not isinstance(detail, str):
                detail = f"HTTP {resp.status_code}"
            raise ChatClientError(kind, detail, resp.status_code)
        return payload

    async def list_conversations(
        self,
        *,
        owner_id: str | None = None,
        status: str | None = None,
    ) -> ConversationListResponse:
        params: dict[str, str] = {}
        if owner_id:
            params["userId"] = owner_id
        if status:
            params["status"] = status
        data = await self._request("GET", "/api/chats", params=params)
        return ConversationListResponse.model_validate(data)

    async def create_conversation(self, title: str) -> ConversationCreateResponse:
        data = await self._request("POST", "/api/chats", json={"title": title})
        return ConversationCreateResponse.model_validate(data)

    async def get_conversation(self, conversation_id: int) -> ConversationDetailResponse:
        data = await self._request("GET", f"/api/chats/{conversation_id}")
        return ConversationDetailResponse.model_validate(data)

    async def send_message(self, conversation_id: int, content: str) -> MessageCreateResponse:
        data = await self._request("POST", f"/api/chats/{conversation_id}", json={"content": content})
        return MessageCreateResponse.model_validate(data)

    async def update_status(self, conversation_id: int, status: str) -> StatusUpdateResponse:
        data = await self._request("PATCH", f"/api/chats/{conversation_id}", json={"status": status})
        return StatusUpdateResponse.model_validate(data)
