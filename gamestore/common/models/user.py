from sqlalchemy import Boolean, Column, DateTime, String, func
from .base import Base


class User(Base):
    """Store-side profile. Credentials live with the identity provider."""

    __tablename__ = "user"

    id = Column(String(36), primary_key=True)
    uid = Column(String(128), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True)
    username = Column(String(64), nullable=False, unique=True)
    first_name = Column(String(128), nullable=False, default="")
    last_name = Column(String(128), nullable=False, default="")
    phone = Column(String(32), nullable=False, default="")
    avatar = Column(String(512), nullable=False, default="")
    role = Column(String(16), nullable=False, default="USER")
    is_email_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "uid": self.uid,
            "email": self.email,
            "username": self.username,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "phone": self.phone,
            "avatar": self.avatar,
            "role": self.role,
            "isEmailVerified": self.is_email_verified,
        }
