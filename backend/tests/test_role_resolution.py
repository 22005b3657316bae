import unittest


from app.core.security import _decide_role


class TestRoleResolution(unittest.TestCase):
    def test_db_admin_wins(self):
        role, reason = _decide_role(email_is_admin=False, claim_is_admin=False, db_role="ADMIN")
        self.assertEqual(role, "ADMIN")
        self.assertEqual(reason, "db_user")

    def test_db_role_is_case_insensitive(self):
        role, _reason = _decide_role(email_is_admin=False, claim_is_admin=False, db_role="admin")
        self.assertEqual(role, "ADMIN")

    def test_admin_emails(self):
        role, reason = _decide_role(email_is_admin=True, claim_is_admin=False, db_role="USER")
        self.assertEqual(role, "ADMIN")
        self.assertEqual(reason, "admin_emails")

    def test_token_claim(self):
        role, reason = _decide_role(email_is_admin=False, claim_is_admin=True, db_role="USER")
        self.assertEqual(role, "ADMIN")
        self.assertEqual(reason, "token_claim")

    def test_db_role_non_admin(self):
        role, reason = _decide_role(email_is_admin=False, claim_is_admin=False, db_role="USER")
        self.assertEqual(role, "USER")
        self.assertEqual(reason, "db_user")

    def test_default_user(self):
        role, reason = _decide_role(email_is_admin=False, claim_is_admin=False, db_role=None)
        self.assertEqual(role, "USER")
        self.assertEqual(reason, "default")


if __name__ == "__main__":
    unittest.main()
