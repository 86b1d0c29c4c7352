# backend/studio_booking/services/template_service.py
"""
Template rendering for notification emails.

Jinja2 with autoescaping, so names, notes and admin messages supplied by
users are HTML-escaped wherever they are interpolated.
"""

from datetime import date, datetime
import logging
from pathlib import Path
import re
from typing import Any, Dict, Optional, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..core.config import settings
from ..core.timezone_utils import ensure_utc, get_operating_timezone

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")


def format_date(value: Union[date, datetime, str], format_str: str = "%A, %B %d, %Y") -> str:
    if isinstance(value, str):
        return value
    return value.strftime(format_str)


def format_datetime(value: Optional[datetime], format_str: str = "%B %d, %Y %-I:%M %p %Z") -> str:
    """Render a stored (UTC) timestamp in the operating timezone."""
    if value is None:
        return ""
    return ensure_utc(value).astimezone(get_operating_timezone()).strftime(format_str)


def html_to_text(html_content: str) -> str:
    """Plain-text fallback for providers that want both parts."""
    return _WS_RE.sub(" ", _TAG_RE.sub(" ", html_content)).strip()


class TemplateService:
    """Centralized Jinja2 rendering with the common brand context."""

    def __init__(self, template_dir: Path = TEMPLATE_DIR):
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.env.filters["format_date"] = format_date
        self.env.filters["format_datetime"] = format_datetime
        self.logger = logging.getLogger(self.__class__.__name__)

    def get_common_context(self) -> Dict[str, Any]:
        return {
            "brand_name": settings.brand_name,
            "current_year": datetime.now().year,
        }

    def render_template(self, template_name: str, context: Optional[Dict[str, Any]] = None) -> str:
        """
        Render ``template_name`` (relative to the templates directory).

        Raises:
            jinja2.TemplateNotFound: If the template does not exist
        """
        full_context = self.get_common_context()
        if context:
            full_context.update(context)
        return self.env.get_template(template_name).render(**full_context)

    def render_string(self, source: str, context: Optional[Dict[str, Any]] = None) -> str:
        """Render a one-line template string such as a subject."""
        full_context = self.get_common_context()
        if context:
            full_context.update(context)
        # Subjects are plain text; no HTML escaping
        return Environment(autoescape=False).from_string(source).render(**full_context)
