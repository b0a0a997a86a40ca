"""
Server-side rendering with Jinja2 templates.
"""

from pathlib import Path
from typing import Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render(
    request: Request,
    name: str,
    context: Optional[dict] = None,
    status_code: int = 200,
):
    """Render ``name`` with ``context``."""
    return templates.TemplateResponse(request, name, context or {}, status_code=status_code)
