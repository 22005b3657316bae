from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core import errors
from app.core.database import Base
from app.core.security import CurrentUser
from app.models import catalog, support  # noqa: F401
from app.models.user import ROLE_ADMIN, ROLE_USER, User
from app.services.chat.service import ChatService


def main() -> None:
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        db.add_all(
            [
                User(id="cust-1", email="amina@example.com", name="Amina", role=ROLE_USER),
                User(id="admin-1", email="support@example.com", name="Support", role=ROLE_ADMIN),
            ]
        )
        db.commit()
        customer = CurrentUser(id="cust-1", email="amina@example.com", role=ROLE_USER)
        admin = CurrentUser(id="admin-1", email="support@example.com", role=ROLE_ADMIN)
        service = ChatService(db)

        conv = service.create_conversation(customer, "Damaged item")
        assert conv.status == "OPEN", conv.status
        service.send_message(conv.id, customer, "My tagine arrived broken")
        assert service.unread_count(admin) == 1

        listed = service.list_conversations(admin)
        assert listed[0].last_message is not None
        assert listed[0].last_message.content == "My tagine arrived broken", listed[0].last_message
        assert listed[0].has_unread

        detail = service.list_messages(conv.id, admin)
        assert detail.unread_count == 0, detail.unread_count
        service.send_message(conv.id, admin, "Sorry, we'll replace it")
        closed = service.update_status(conv.id, admin, "CLOSED")
        assert closed.status == "CLOSED"

        mine = service.list_conversations(customer)
        assert mine[0].status == "CLOSED"
        assert mine[0].unread_count == 1
        try:
            service.send_message(conv.id, customer, "Thanks")
        except errors.AccessDeniedError:
            pass
        else:
            raise AssertionError("closed conversation accepted a customer message")
    finally:
        db.close()


if __name__ == "__main__":
    main()
    print("OK")
