"""Pydantic schemas for form payloads and session records."""

from pydantic import BaseModel


# ==================== Session Schemas ====================

class SessionData(BaseModel):
    """Per-client session state kept server-side."""
    authenticated: bool = False
    user: str = ""


# ==================== Form Schemas ====================
# Fields default to "" so that missing inputs reach the service layer's
# checks (400) instead of failing form parsing.

class UserForm(BaseModel):
    """Create-user form submitted to /insert."""
    name: str = ""
    email: str = ""


class UserUpdateForm(UserForm):
    """Edit-user form submitted to /update."""
    id: int


class RegisterForm(BaseModel):
    """Sign-up form."""
    name: str = ""
    email: str = ""
    password: str = ""


class LoginForm(BaseModel):
    """Login credentials."""
    email: str = ""
    password: str = ""
