"""SQLAlchemy ORM models for database tables."""

from sqlalchemy import Column, Integer, String, Text
from .db import Base
from .config import settings

DEFAULT_ROLE = "unverified"


class User(Base):
    """User model mapped to 'users' table.

    ``password`` holds a bcrypt hash, or NULL for users created from the
    admin form (they cannot log in until they register with the same email,
    which sets the hash on this row).
    """

    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(settings.USER_NAME_MAX_LENGTH), nullable=False)
    email = Column(String(settings.USER_EMAIL_MAX_LENGTH), nullable=False, index=True)
    password = Column(String(255), nullable=True)
    role = Column(String(50), nullable=False, default=DEFAULT_ROLE, server_default=DEFAULT_ROLE)


# Placeholder tables, declared for schema completeness only.


class Court(Base):
    __tablename__ = "courts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    court_name = Column(Text)
    schedule_id = Column(Integer)


class Schedule(Base):
    __tablename__ = "schedule"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    starts_at = Column("datetime", Text)
    duration = Column(Integer)


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer)
    schedule_id = Column(Integer)
    state = Column(Text)
