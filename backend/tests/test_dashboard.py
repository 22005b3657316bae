import unittest
from datetime import datetime, timezone

from app.client.dashboard import filter_conversations, needs_attention, preview_text, status_label, toggle_status
from app.schemas.chat import ConversationOut, MessageOut


NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def conv(cid, user_id, status, unread=0, last=None):
    last_message = None
    if last is not None:
        last_message = MessageOut(id=cid * 10, conversation_id=cid, user_id=user_id, content=last, is_read=False, created_at=NOW)
    return ConversationOut(
        id=cid,
        user_id=user_id,
        title=f"c{cid}",
        status=status,
        created_at=NOW,
        updated_at=NOW,
        unread_count=unread,
        has_unread=unread > 0,
        last_message=last_message,
    )


class TestDashboard(unittest.TestCase):
    def setUp(self):
        self.conversations = [
            conv(3, "cust-1", "OPEN", unread=2),
            conv(2, "cust-2", "CLOSED"),
            conv(1, "cust-1", "CLOSED"),
        ]

    def test_status_filters_keep_order(self):
        self.assertEqual([c.id for c in filter_conversations(self.conversations, "all")], [3, 2, 1])
        self.assertEqual([c.id for c in filter_conversations(self.conversations, "open")], [3])
        self.assertEqual([c.id for c in filter_conversations(self.conversations, "CLOSED")], [2, 1])

    def test_customer_filter(self):
        self.assertEqual([c.id for c in filter_conversations(self.conversations, "closed", "cust-1")], [1])

    def test_unknown_filter(self):
        with self.assertRaises(ValueError):
            filter_conversations(self.conversations, "archived")

    def test_needs_attention_uses_server_flag(self):
        self.assertTrue(needs_attention(self.conversations[0]))
        self.assertFalse(needs_attention(self.conversations[1]))

    def test_labels_and_toggle(self):
        self.assertEqual(status_label(self.conversations[0]), "Active")
        self.assertEqual(status_label(self.conversations[1]), "Resolved")
        self.assertEqual(toggle_status(self.conversations[0]), "CLOSED")
        self.assertEqual(toggle_status(self.conversations[1]), "OPEN")

    def test_preview_text(self):
        self.assertEqual(preview_text(conv(5, "cust-1", "OPEN")), "")
        self.assertEqual(preview_text(conv(5, "cust-1", "OPEN", last="My tagine arrived broken")), "My tagine arrived broken")
        long = preview_text(conv(5, "cust-1", "OPEN", last="x" * 200), limit=20)
        self.assertEqual(len(long), 20)
        self.assertTrue(long.endswith("…"))


if __name__ == "__main__":
    unittest.main()
