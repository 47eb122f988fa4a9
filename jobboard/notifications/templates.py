"""Template rendering for email notifications using Jinja2.

Each template id maps to three files in ``email_templates``:
``<id>_subject.j2``, ``<id>_body.html.j2`` and ``<id>_body.txt.j2``.
"""

import logging
from typing import Dict

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError, select_autoescape

from jobboard.utils.highlighting import humanize_label

from .models import NotificationTemplateError

logger = logging.getLogger(__name__)

DEADLINE_REMINDER_TEMPLATE = "deadline_reminder"
JOB_ALERT_TEMPLATE = "job_alert"


class TemplateRenderer:
    """Renders email templates using Jinja2.

    HTML bodies are autoescaped; subjects and plain-text bodies are not.
    Missing variables raise instead of rendering as blanks. Templates are
    cached by the Jinja2 environment after first load.
    """

    def __init__(self, template_dir: str = "email_templates"):
        self.env = Environment(
            loader=PackageLoader("jobboard.notifications", template_dir),
            autoescape=select_autoescape(
                enabled_extensions=("html", "html.j2"),
                default_for_string=False,
                default=False,
            ),
            undefined=StrictUndefined,
        )
        self.env.filters["humanize"] = humanize_label

        logger.debug(f"Initialized TemplateRenderer with templates from {template_dir}")

    def render(self, template_id: str, context: Dict) -> Dict[str, str]:
        """Render the subject and both bodies of a template.

        Returns:
            Dictionary with ``subject`` (single line), ``html_body`` and ``text_body``

        Raises:
            NotificationTemplateError: If a template is missing or rendering fails
        """
        try:
            subject_template = self.env.get_template(f"{template_id}_subject.j2")
            html_template = self.env.get_template(f"{template_id}_body.html.j2")
            text_template = self.env.get_template(f"{template_id}_body.txt.j2")

            subject = subject_template.render(context).strip().replace("\n", " ")
            html_body = html_template.render(context)
            text_body = text_template.render(context)

            return {
                "subject": subject,
                "html_body": html_body,
                "text_body": text_body,
            }

        except TemplateError as e:
            error_msg = f"Template rendering failed for '{template_id}': {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e
