import unittest

from app.services.chat.policy import NO_ACCESS, ChatPermissions, chat_permissions, is_admin_role


class TestChatPermissions(unittest.TestCase):
    def test_admin_has_full_rights_on_any_conversation(self):
        for is_owner in (True, False):
            for status in ("OPEN", "CLOSED"):
                perms = chat_permissions(is_admin=True, is_owner=is_owner, status=status)
                self.assertEqual(perms, ChatPermissions(can_read=True, can_write=True, can_change_status=True))

    def test_owner_can_write_only_while_open(self):
        open_perms = chat_permissions(is_admin=False, is_owner=True, status="OPEN")
        closed_perms = chat_permissions(is_admin=False, is_owner=True, status="CLOSED")
        self.assertTrue(open_perms.can_read)
        self.assertTrue(open_perms.can_write)
        self.assertTrue(closed_perms.can_read)
        self.assertFalse(closed_perms.can_write)

    def test_owner_never_changes_status(self):
        for status in ("OPEN", "CLOSED"):
            self.assertFalse(chat_permissions(is_admin=False, is_owner=True, status=status).can_change_status)

    def test_stranger_has_no_access(self):
        self.assertEqual(chat_permissions(is_admin=False, is_owner=False, status="OPEN"), NO_ACCESS)

    def test_status_is_case_insensitive(self):
        self.assertTrue(chat_permissions(is_admin=False, is_owner=True, status="open").can_write)

    def test_is_admin_role(self):
        self.assertTrue(is_admin_role("ADMIN"))
        self.assertTrue(is_admin_role(" admin "))
        self.assertFalse(is_admin_role("USER"))
        self.assertFalse(is_admin_role(None))


if __name__ == "__main__":
    unittest.main()
