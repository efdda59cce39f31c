"""Business logic layer for user operations and authentication.

Sits between the HTTP routes and the CRUD layer: validates form input,
hashes passwords, and raises the application's error types for the
routes' exception handlers to turn into responses.
"""

from .auth import hash_password, verify_password
from .crud import (
    insert_user,
    select_user,
    select_user_by_email,
    select_users,
    set_user_credentials,
    update_user as crud_update_user,
    delete_user as crud_delete_user,
)
from .db import Database
from .exceptions import AuthError, NotFoundError, ValidationError
from .logger import logger
from .models import User, DEFAULT_ROLE
from .schemas import LoginForm, RegisterForm, UserForm, UserUpdateForm
from .utils import is_valid_email

# ==================== Helper Functions ====================


def _validate_user_form(form: UserForm) -> None:
    """Name must be present and the email must match the accepted pattern."""
    if not form.name:
        logger.warning("Rejected user form: empty name")
        raise ValidationError("Name is required")
    if not is_valid_email(form.email):
        logger.warning(f"Invalid email provided: {form.email}")
        raise ValidationError("Invalid Email")


# ==================== User Operations ====================


async def list_users(db: Database) -> list[User]:
    users = await select_users(db)
    logger.info(f"Retrieved {len(users)} users")
    return users


async def get_user(db: Database, user_id: int) -> User:
    """Retrieve a user by ID."""
    user = await select_user(db, user_id)
    if user is None:
        logger.warning(f"User not found: id={user_id}")
        raise NotFoundError("User not found")
    return user


async def create_user(db: Database, form: UserForm) -> User:
    """Create a user from the admin form. The user has no password until they register."""
    logger.info(f"Inserting user - Name: {form.name}, Email: {form.email}")
    _validate_user_form(form)

    user = await insert_user(db, form.name, form.email, role=DEFAULT_ROLE)
    logger.info(f"User inserted successfully: id={user.id}")
    return user


async def update_user(db: Database, form: UserUpdateForm) -> None:
    """Update name and email. An unknown id is a silent no-op."""
    logger.info(f"Updating user - ID: {form.id}, Name: {form.name}, Email: {form.email}")
    _validate_user_form(form)

    changed = await crud_update_user(db, form.id, form.name, form.email)
    if changed:
        logger.info(f"User updated successfully: id={form.id}")
    else:
        logger.info(f"Update matched no user: id={form.id}")


async def delete_user(db: Database, user_id: int) -> None:
    """Delete a user by ID. An unknown id is a silent no-op."""
    logger.info(f"Deleting user: id={user_id}")
    deleted = await crud_delete_user(db, user_id)
    if deleted:
        logger.info(f"User deleted successfully: id={user_id}")
    else:
        logger.info(f"Delete matched no user: id={user_id}")


# ==================== Authentication ====================


async def register_user(db: Database, form: RegisterForm) -> User:
    """Register a new account with a hashed password and the default role.

    A passwordless user with the same email (created from the admin form)
    is taken over instead of duplicated.
    """
    logger.info(f"Registering new user: {form.email}")

    if not form.name or not form.email or not form.password:
        logger.warning("Registration rejected: missing fields")
        raise ValidationError("All fields are required")

    if not is_valid_email(form.email):
        logger.warning(f"Registration rejected: invalid email {form.email}")
        raise ValidationError("Invalid email format")

    existing = await select_user_by_email(db, form.email)
    if existing is not None and existing.password:
        logger.warning(f"Registration failed - email already exists: {form.email}")
        raise ValidationError("Email already registered")

    if existing is not None:
        # Row created from the admin form: claim it so login finds the hash
        await set_user_credentials(
            db, existing.id, form.name, hash_password(form.password), role=DEFAULT_ROLE
        )
        logger.info(f"User registered over existing row: id={existing.id} email={existing.email}")
        return await select_user(db, existing.id)

    user = await insert_user(
        db, form.name, form.email, password=hash_password(form.password), role=DEFAULT_ROLE
    )
    logger.info(f"User registered successfully: id={user.id} email={user.email}")
    return user


async def authenticate_user(db: Database, form: LoginForm) -> User:
    """Check credentials and return the matching user.

    Raises:
        ValidationError: missing fields or malformed email (400)
        AuthError: unknown email or wrong password (401)
    """
    logger.info(f"Authentication attempt for user: {form.email}")

    if not form.email or not form.password:
        raise ValidationError("Email and password are required")

    if not is_valid_email(form.email):
        raise ValidationError("Invalid email format")

    user = await select_user_by_email(db, form.email)
    if user is None:
        logger.warning(f"Authentication failed - user not found: {form.email}")
        raise AuthError("Invalid email or password")

    if not verify_password(form.password, user.password):
        logger.warning(f"Authentication failed - invalid password for user: {form.email}")
        raise AuthError("Invalid email or password")

    logger.info(f"Authentication successful for user: {form.email} (id={user.id})")
    return user
