"""Database CRUD operations for user management.

Every function issues a single statement in its own session. Driver and
SQL errors are logged and re-raised as StorageError.
"""

from sqlalchemy import select, update, delete
from sqlalchemy.exc import SQLAlchemyError

from .db import Database
from .exceptions import StorageError
from .models import User, DEFAULT_ROLE
from .logger import logger


# ==================== Read Operations ====================


async def select_users(db: Database) -> list[User]:
    """Return all users in insertion order."""
    async with db.session() as session:
        try:
            result = await session.execute(select(User).order_by(User.id.asc()))
            users = list(result.scalars().all())
            logger.debug(f"Query executed: returned {len(users)} users")
            return users
        except SQLAlchemyError as e:
            logger.error("Failed to query users", exc_info=True)
            raise StorageError("Failed to query users") from e


async def select_user(db: Database, user_id: int) -> User | None:
    """Retrieve a user by ID."""
    async with db.session() as session:
        try:
            return await session.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to retrieve user id={user_id}", exc_info=True)
            raise StorageError("Failed to retrieve user") from e


async def select_user_by_email(db: Database, email: str) -> User | None:
    """Retrieve a user by email address. The oldest row wins if the email repeats."""
    async with db.session() as session:
        try:
            result = await session.execute(
                select(User).where(User.email == email).order_by(User.id.asc()).limit(1)
            )
            return result.scalars().first()
        except SQLAlchemyError as e:
            logger.error(f"Failed to retrieve user by email={email}", exc_info=True)
            raise StorageError("Failed to retrieve user") from e


# ==================== Write Operations ====================


async def insert_user(
    db: Database,
    name: str,
    email: str,
    password: str | None = None,
    role: str = DEFAULT_ROLE,
) -> User:
    """Insert a new user. ``password`` must already be hashed."""
    async with db.session() as session:
        try:
            async with session.begin():
                user = User(name=name, email=email, password=password, role=role)
                session.add(user)
            await session.refresh(user)  # Populate generated id
            return user
        except SQLAlchemyError as e:
            logger.error(f"Failed to insert user email={email}", exc_info=True)
            raise StorageError("Failed to insert user") from e


async def update_user(db: Database, user_id: int, name: str, email: str) -> int:
    """Update name and email of a user. Returns the number of rows changed (0 if the id is absent)."""
    async with db.session() as session:
        try:
            async with session.begin():
                result = await session.execute(
                    update(User).where(User.id == user_id).values(name=name, email=email)
                )
            return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Failed to update user id={user_id}", exc_info=True)
            raise StorageError("Failed to update user") from e


async def delete_user(db: Database, user_id: int) -> int:
    """Delete a user by ID. Returns the number of rows removed (0 if the id is absent)."""
    async with db.session() as session:
        try:
            async with session.begin():
                result = await session.execute(delete(User).where(User.id == user_id))
            return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete user id={user_id}", exc_info=True)
            raise StorageError("Failed to delete user") from e


async def set_user_credentials(db: Database, user_id: int, name: str, password: str, role: str = DEFAULT_ROLE) -> int:
    """Give an existing user a name, password hash and role. Returns the number of rows changed."""
    async with db.session() as session:
        try:
            async with session.begin():
                result = await session.execute(
                    update(User).where(User.id == user_id).values(name=name, password=password, role=role)
                )
            return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Failed to set credentials for user id={user_id}", exc_info=True)
            raise StorageError("Failed to update user") from e
