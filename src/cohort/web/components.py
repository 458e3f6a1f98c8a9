"""Server-rendered UI components shared by the HTML pages."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from fastapi.templating import Jinja2Templates
from markupsafe import Markup

from cohort.wizard.progress import Step, compute_progress

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render_multi_step_form(
    steps: Sequence[Step] | None,
    current_step: Any,
    content: Markup | str,
    class_name: str | None = None,
) -> Markup:
    """Render the step markers, the step labels and the caller's content.

    Plain strings are HTML-escaped; ``Markup`` is inserted untouched. The
    content region is the same whatever ``current_step`` is.
    """
    template = templates.env.get_template("components/multi_step_form.html")
    html = template.render(
        progress=compute_progress(steps, current_step),
        content=content,
        class_name=class_name,
    )
    return Markup(html)


templates.env.globals["multi_step_form"] = render_multi_step_form
