from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, Text

from utils.security import hash_password, verify_password


class User(BaseModel, Base):
    __tablename__ = "users"
    SECRET_FIELDS = ("password_hash", "refresh_token")

    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    fullname = Column(String(255), nullable=False)
    avatar = Column(String(1024), nullable=False)
    cover_image = Column(String(1024), nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    # at most one trusted refresh token per user; a new login overwrites it
    refresh_token = Column(Text, nullable=True)

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    @password.setter
    def password(self, plaintext: str):
        self.password_hash = hash_password(plaintext)

    def is_password_correct(self, plaintext: str) -> bool:
        return verify_password(plaintext, self.password_hash)

    def __repr__(self):
        return f"<User {self.username}>"
