# HTTP route definitions
# Each handler runs at most one storage call, then renders or redirects.

import os
from typing import Annotated

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from . import services
from .config import settings
from .db import Database
from .dependencies import (
    get_database,
    get_current_user_name,
    get_session,
    get_session_store,
    is_partial_request,
    require_login,
)
from .logger import logger
from .rendering import RenderContext, render
from .schemas import LoginForm, RegisterForm, UserForm, UserUpdateForm
from .sessions import Session, SessionStore

limiter = Limiter(key_func=get_remote_address)

# Helper to conditionally apply rate limiting (skip in tests)
def conditional_limit(limit_string):
    """Apply rate limit only if not in test mode."""
    if os.getenv('TEST_MODE'):
        def decorator(func):
            return func
        return decorator
    return limiter.limit(limit_string)


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


router = APIRouter()


@router.get("/health")
async def health_check(db: Database = Depends(get_database)):
    """Health check endpoint for load balancers and monitoring.

    Returns:
        - 200 OK if the service and database are healthy
        - 503 Service Unavailable if the database is unreachable
    """
    health_status = {
        "status": "healthy",
        "service": settings.APP_NAME,
        "environment": settings.APP_ENV,
        "database": "connected",
    }
    if not await db.check_connection():
        health_status["status"] = "unhealthy"
        health_status["database"] = "disconnected"
        return JSONResponse(status_code=503, content=health_status)
    return health_status


@router.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=204)


# ============================================================================
# User Pages
# ============================================================================

@router.get("/", response_class=HTMLResponse)
async def index(
    session: Session = Depends(require_login),
    db: Database = Depends(get_database),
    partial: bool = Depends(is_partial_request),
):
    """List all users. Requires a logged-in session."""
    logger.info("Handling Index request")
    users = await services.list_users(db)
    return await render(RenderContext(page="index", partial=partial, users=users, current_user=session.data.user))


@router.get("/user/{user_id}", response_class=HTMLResponse)
async def show_user(
    user_id: int,
    db: Database = Depends(get_database),
    partial: bool = Depends(is_partial_request),
    current_user: str = Depends(get_current_user_name),
):
    logger.info(f"Handling Show request for user ID: {user_id}")
    user = await services.get_user(db, user_id)
    return await render(RenderContext(page="show", partial=partial, user=user, current_user=current_user))


@router.get("/new", response_class=HTMLResponse)
async def new_user_form(
    partial: bool = Depends(is_partial_request),
    current_user: str = Depends(get_current_user_name),
):
    logger.info("Handling New request")
    return await render(RenderContext(page="new", partial=partial, current_user=current_user))


# The edit form is not wired to a POST action of its own; POST renders it too.
@router.api_route("/edit/{user_id}", methods=["GET", "POST"], response_class=HTMLResponse)
async def edit_user_form(
    user_id: int,
    db: Database = Depends(get_database),
    partial: bool = Depends(is_partial_request),
    current_user: str = Depends(get_current_user_name),
):
    logger.info(f"Handling Edit request for user ID: {user_id}")
    user = await services.get_user(db, user_id)
    return await render(RenderContext(page="edit", partial=partial, user=user, current_user=current_user))


@router.post("/insert")
async def insert_user(
    form: Annotated[UserForm, Form()],
    db: Database = Depends(get_database),
):
    await services.create_user(db, form)
    return redirect("/")


@router.post("/update")
async def update_user(
    form: Annotated[UserUpdateForm, Form()],
    db: Database = Depends(get_database),
):
    await services.update_user(db, form)
    return redirect("/")


@router.api_route("/delete/{user_id}", methods=["GET", "POST"])
async def delete_user(user_id: int, db: Database = Depends(get_database)):
    await services.delete_user(db, user_id)
    return redirect("/")


# ============================================================================
# Authentication Pages
# ============================================================================

@router.get("/register", response_class=HTMLResponse)
async def register_form(
    partial: bool = Depends(is_partial_request),
    current_user: str = Depends(get_current_user_name),
):
    return await render(RenderContext(page="register", partial=partial, current_user=current_user))


@router.post("/register")
@conditional_limit(settings.RATE_LIMIT_AUTH)
async def register(
    request: Request,
    form: Annotated[RegisterForm, Form()],
    db: Database = Depends(get_database),
):
    """Create an account with role 'unverified', then send the user to log in."""
    await services.register_user(db, form)
    return redirect("/login")


@router.get("/login", response_class=HTMLResponse)
async def login_form(
    partial: bool = Depends(is_partial_request),
    current_user: str = Depends(get_current_user_name),
):
    return await render(RenderContext(page="login", partial=partial, current_user=current_user))


@router.post("/login")
@conditional_limit(settings.RATE_LIMIT_AUTH)
async def login(
    request: Request,
    form: Annotated[LoginForm, Form()],
    db: Database = Depends(get_database),
    store: SessionStore = Depends(get_session_store),
    session: Session = Depends(get_session),
):
    """Verify credentials and mark the session authenticated.

    The session moves to a fresh id on login so a pre-login cookie cannot be reused.
    """
    user = await services.authenticate_user(db, form)

    session = await store.rotate(session)
    session.data.authenticated = True
    session.data.user = user.name

    response = redirect("/")
    await store.save(response, session)
    logger.info(f"Session authenticated for user: {user.email}")
    return response


@router.get("/logout")
async def logout(
    store: SessionStore = Depends(get_session_store),
    session: Session = Depends(get_session),
):
    response = redirect("/login")
    if session.is_new:
        # Nothing to log out of; don't persist a record for a cookie-less client
        store.clear(response)
        return response

    session.data.authenticated = False
    await store.save(response, session)
    logger.info(f"Session logged out: user={session.data.user or 'anonymous'}")
    return response
