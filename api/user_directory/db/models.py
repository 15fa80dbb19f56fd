"""SQLAlchemy models for the User Directory schema."""

from sqlalchemy import Boolean, Column, DateTime, Index, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

from ..config import get_settings

Base = declarative_base()


class User(Base):
    """Users table model."""
    __tablename__ = 'users'

    id = Column(UUID(as_uuid=True), primary_key=True, server_default=text('gen_random_uuid()'))
    username = Column(Text, nullable=False, unique=True)
    email = Column(Text, nullable=False, unique=True)
    display_username = Column(Text)
    first_name = Column(Text)
    last_name = Column(Text)
    image = Column(Text)
    bio = Column(Text)
    role = Column(Text, nullable=False, server_default=text("'user'"))
    is_email_verified = Column(Boolean, nullable=False, server_default=text('false'))
    two_factor_enabled = Column(Boolean, nullable=False, server_default=text('false'))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True))

    __table_args__ = (
        Index('users_created_at_id_desc', 'created_at', 'id', postgresql_ops={'created_at': 'DESC', 'id': 'DESC'}),
    )


def get_database_url() -> str:
    """Get database URL from settings."""
    return get_settings().database_url
