"""Jinja2 page rendering with partial (htmx) and full-layout modes."""

from dataclasses import dataclass, field
from pathlib import Path

from fastapi.responses import HTMLResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape
from starlette.concurrency import run_in_threadpool

from .models import User

TEMPLATES_PATH = Path(__file__).parent / "templates"
jinja_env = Environment(
    loader=FileSystemLoader(TEMPLATES_PATH),
    autoescape=select_autoescape(["html"]),
)


@dataclass
class RenderContext:
    """Everything a page template can see.

    ``partial`` is True for htmx fetches: only the page fragment is rendered.
    Otherwise the fragment is wrapped in ``layout.html``.
    """
    page: str
    partial: bool = False
    users: list[User] = field(default_factory=list)
    user: User | None = None
    current_user: str = ""

    @property
    def template_name(self) -> str:
        return f"{self.page}.html" if self.partial else "layout.html"


def _render_template_sync(template_name: str, context: dict) -> str:
    return jinja_env.get_template(template_name).render(**context)


async def render(ctx: RenderContext, status_code: int = 200) -> HTMLResponse:
    """Render in the threadpool so template work does not block the event loop."""
    context = {
        "page": ctx.page,
        "partial": ctx.partial,
        "users": ctx.users,
        "user": ctx.user,
        "current_user": ctx.current_user,
    }
    content = await run_in_threadpool(_render_template_sync, ctx.template_name, context)
    return HTMLResponse(content=content, status_code=status_code)
