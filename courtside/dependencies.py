"""FastAPI dependencies for storage, sessions, and the login gate."""

from fastapi import Depends, Request
from .db import Database
from .exceptions import LoginRequired
from .logger import logger
from .sessions import Session, SessionStore


# ==================== Shared Handles ====================
# Both handles are created by the application lifespan and hung off
# app.state, so handlers receive them by injection.

def get_database(request: Request) -> Database:
    return request.app.state.db


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.sessions


async def get_session(request: Request, store: SessionStore = Depends(get_session_store)) -> Session:
    """Load (or create) the session for this request."""
    return await store.get(request)


def is_partial_request(request: Request) -> bool:
    """True when the page was fetched by htmx and only the fragment is wanted."""
    return bool(request.headers.get("HX-Request"))


# ==================== Authentication Dependencies ====================


async def get_current_user_name(session: Session = Depends(get_session)) -> str:
    """Display name for the nav bar; empty for anonymous visitors. Never redirects."""
    return session.data.user if session.data.authenticated else ""


async def require_login(request: Request, session: Session = Depends(get_session)) -> Session:
    """Gate a route on an authenticated session. Raises LoginRequired (303 to /login) otherwise."""
    if not session.data.authenticated:
        logger.info(f"Unauthenticated access to {request.url.path} - redirecting to login")
        raise LoginRequired()
    return session
