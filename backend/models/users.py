# backend/models/users.py
import uuid
from sqlalchemy import Column, String, DateTime, func
from database import Base

# Represents a user account; every catalog and stock row is owned by one
class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    full_name = Column(String, nullable=True)

    # Set when the account was created or linked through Google sign-in
    google_id = Column(String, nullable=True, index=True)

    # Password reset flow
    reset_token = Column(String(64), nullable=True, index=True)
    reset_token_expires = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
