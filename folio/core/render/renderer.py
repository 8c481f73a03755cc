import json
from pathlib import Path
from typing import Any, Mapping, Optional

from jinja2 import Environment, FileSystemLoader, TemplateError

from folio.core.contracts.models import ProposedUpdate
from folio.utils.errors import RenderError

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


class SiteRenderer:
    """Projects the three documents into the site page."""

    def __init__(
        self,
        template_dir: Optional[str] = None,
        template_name: str = "site.html.j2",
    ):
        if template_dir is None:
            template_dir = str(DEFAULT_TEMPLATE_DIR)

        self.template_dir = template_dir
        self.template_name = template_name
        # Fields are inserted verbatim, the documents are trusted content.
        self.env = Environment(
            loader=FileSystemLoader([self.template_dir, str(DEFAULT_TEMPLATE_DIR)]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters["tojson_pretty"] = lambda value: json.dumps(value, indent=2, ensure_ascii=False)

    def render(
        self,
        profile: Optional[Mapping[str, Any]],
        services: Optional[Mapping[str, Any]],
        portfolio: Optional[Mapping[str, Any]],
    ) -> str:
        missing = [
            name for name, doc in (("profile", profile), ("services", services), ("portfolio", portfolio))
            if doc is None
        ]
        if missing:
            raise RenderError(f"Cannot render without documents: {', '.join(missing)}")

        try:
            template = self.env.get_template(self.template_name)
            return template.render(profile=profile, services=services, portfolio=portfolio)
        except TemplateError as e:
            raise RenderError(f"Failed to render template {self.template_name}: {e}") from e

    def render_proposal(self, proposal: ProposedUpdate) -> str:
        """The pending-proposal display: changed fields per document and the commit message."""
        try:
            template = self.env.get_template("proposal.j2")
            return template.render(proposal=proposal)
        except TemplateError as e:
            raise RenderError(f"Failed to render proposal: {e}") from e
