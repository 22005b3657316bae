import unittest

import httpx

import main
from app.client.chat_client import ChatApiClient, ChatClientError
from app.client.chat_state import ChatState
from app.core.database import get_db
from app.core.settings import settings

from chat_fixtures import TEST_JWT_SECRET, make_session_factory, make_token


class TestChatApiClientErrors(unittest.IsolatedAsyncioTestCase):
    async def test_error_kind_is_preserved(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"error": "AccessDenied", "detail": "Access denied"})

        client = ChatApiClient(base_url="http://shop.test", token="t", transport=httpx.MockTransport(handler))
        try:
            with self.assertRaises(ChatClientError) as ctx:
                await client.get_conversation(1)
        finally:
            await client.aclose()
        self.assertEqual(ctx.exception.kind, "AccessDenied")
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(ctx.exception.message, "Access denied")

    async def test_kind_falls_back_to_status_code(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="not json")

        async with ChatApiClient(base_url="http://shop.test", transport=httpx.MockTransport(handler)) as client:
            with self.assertRaises(ChatClientError) as ctx:
                await client.list_conversations()
        self.assertEqual(ctx.exception.kind, "NotFound")

    async def test_unprocessable_maps_to_validation_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"detail": [{"msg": "Field required"}]})

        async with ChatApiClient(base_url="http://shop.test", transport=httpx.MockTransport(handler)) as client:
            with self.assertRaises(ChatClientError) as ctx:
                await client.update_status(1, "CLOSED")
        self.assertEqual(ctx.exception.kind, "ValidationError")
        self.assertEqual(ctx.exception.message, "HTTP 422")

    async def test_transport_failure_is_internal(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with ChatApiClient(base_url="http://shop.test", transport=httpx.MockTransport(handler)) as client:
            with self.assertRaises(ChatClientError) as ctx:
                await client.create_conversation("Order Issue")
        self.assertEqual(ctx.exception.kind, "Internal")
        self.assertIsNone(ctx.exception.status_code)

    async def test_request_shape(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"conversations": [], "unread_count": 0})

        async with ChatApiClient(
            base_url="http://shop.test/", token="abc", transport=httpx.MockTransport(handler)
        ) as client:
            resp = await client.list_conversations(owner_id="cust-2", status="open")
        self.assertEqual(resp.unread_count, 0)
        self.assertEqual(seen[0].url.path, "/api/chats")
        self.assertEqual(seen[0].url.params["userId"], "cust-2")
        self.assertEqual(seen[0].url.params["status"], "open")
        self.assertEqual(seen[0].headers["authorization"], "Bearer abc")


class TestChatStateOverAsgi(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine, SessionLocal = make_session_factory()

        def override_get_db():
            db = SessionLocal()
            try:
                yield db
            finally:
                db.close()

        main.app.dependency_overrides[get_db] = override_get_db
        self._saved_secret = settings.auth_jwt_secret
        settings.auth_jwt_secret = TEST_JWT_SECRET

        transport = httpx.ASGITransport(app=main.app)
        self.customer_api = ChatApiClient(
            base_url="http://shop.test", token=make_token("cust-1", name="Amina"), transport=transport
        )
        self.admin_api = ChatApiClient(
            base_url="http://shop.test", token=make_token("admin-1", name="Support", role="ADMIN"), transport=transport
        )

    async def asyncTearDown(self):
        await self.customer_api.aclose()
        await self.admin_api.aclose()
        main.app.dependency_overrides.clear()
        settings.auth_jwt_secret = self._saved_secret
        self.engine.dispose()

    async def test_support_conversation_end_to_end(self):
        customer = ChatState(self.customer_api)
        admin = ChatState(self.admin_api, is_admin=True)

        created = await customer.create_conversation("Damaged item")
        self.assertIsNotNone(created, customer.last_error)
        await customer.fetch_messages(created.id)
        await customer.send_message(created.id, "My tagine arrived broken")

        await admin.fetch_conversations()
        self.assertEqual(admin.unread_count, 1)
        self.assertEqual(admin.conversations[0].last_message.content, "My tagine arrived broken")

        await admin.fetch_messages(created.id)
        self.assertEqual(admin.unread_count, 0)
        await admin.send_message(created.id, "Sorry, we'll replace it")
        await admin.update_conversation_status(created.id, "CLOSED")

        await customer.fetch_conversations()
        self.assertEqual(customer.conversations[0].status, "CLOSED")
        self.assertEqual(customer.unread_count, 1)

        await customer.fetch_messages(created.id)
        self.assertEqual(customer.unread_count, 0)
        self.assertFalse(customer.can_send)
        self.assertEqual(
            [m.content for m in customer.messages],
            ["My tagine arrived broken", "Sorry, we'll replace it"],
        )

        self.assertIsNone(await customer.send_message(created.id, "Thank you"))
        self.assertEqual(customer.last_error.kind, "AccessDenied")
        self.assertEqual(customer.drafts[created.id], "Thank you")

    async def test_customer_cannot_close(self):
        customer = ChatState(self.customer_api)
        created = await customer.create_conversation("Order Issue")
        self.assertIsNone(await customer.update_conversation_status(created.id, "CLOSED"))
        self.assertEqual(customer.last_error.status_code, 403)
        self.assertEqual(customer.conversations[0].status, "OPEN")


if __name__ == "__main__":
    unittest.main()
