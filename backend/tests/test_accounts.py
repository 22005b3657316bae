import unittest

from app.models.user import User
from app.services.accounts import ensure_admin, find_user_by_email

from chat_fixtures import add_user, make_session_factory


class TestEnsureAdmin(unittest.TestCase):
    def setUp(self):
        self.engine, SessionLocal = make_session_factory()
        self.db = SessionLocal()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_creates_missing_admin(self):
        user, changed = ensure_admin(self.db, email="Owner@Example.com")
        self.assertTrue(changed)
        self.assertEqual(user.email, "owner@example.com")
        self.assertEqual(user.role, "ADMIN")
        self.assertEqual(self.db.query(User).count(), 1)

    def test_promotes_existing_user(self):
        add_user(self.db, "cust-1", email="amina@example.com")
        user, changed = ensure_admin(self.db, email="AMINA@example.com")
        self.assertTrue(changed)
        self.assertEqual(user.id, "cust-1")
        self.assertEqual(user.role, "ADMIN")

    def test_idempotent(self):
        ensure_admin(self.db, email="owner@example.com")
        _user, changed = ensure_admin(self.db, email="owner@example.com")
        self.assertFalse(changed)
        self.assertEqual(self.db.query(User).count(), 1)

    def test_blank_email(self):
        with self.assertRaises(ValueError):
            ensure_admin(self.db, email="  ")
        self.assertIsNone(find_user_by_email(self.db, ""))


if __name__ == "__main__":
    unittest.main()
