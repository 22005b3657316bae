from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from app.core.database import Base


ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, index=True, unique=True, nullable=True)
    name = Column(String, nullable=True)
    image = Column(String, nullable=True)
    role = Column(String, index=True, default=ROLE_USER)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_admin(self) -> bool:
        return (self.role or "").upper() == ROLE_ADMIN
