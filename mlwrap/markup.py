"""Span rendering for script segments.

Each segment becomes an inline element:

    <span lang="ko" data-script="korean" class="ml-ko">안녕</span>

The ``lang`` and ``data-script`` attributes are what page stylesheets
target. Text and attribute values are escaped.
"""

from __future__ import annotations

import html
from typing import Iterable, Optional

from .config import DEFAULT_LANGUAGES, WrapperConfig
from .script_segmenter import Segment

SCRIPT_ATTRIBUTE = "data-script"

# Short class names are derived from the default language table, so a
# language override does not rename the class.
SHORT_CLASS_NAMES: dict[str, str] = {script: f"ml-{lang}" for script, lang in DEFAULT_LANGUAGES.items()}


def short_class_name(script: str) -> str:
    return SHORT_CLASS_NAMES.get(script, f"ml-{script}")


def long_class_name(script: str) -> str:
    return f"{script}-script"


class SpanRenderer:
    """Renders segments as ``<span>`` markup."""

    def __init__(self, config: Optional[WrapperConfig] = None):
        self.config = config or WrapperConfig()

    def class_names(self, script: str) -> list[str]:
        """CSS classes for a script: wrapper, script class, script-specific class."""
        css = self.config.css_classes
        classes: list[str] = []
        if css.wrapper:
            classes.append(css.wrapper)
        if css.use_short_names:
            classes.append(short_class_name(script))
        else:
            classes.append(long_class_name(script))
        specific = css.script_specific.get(script)
        if specific:
            classes.append(specific)
        return classes

    def attributes(self, segment: Segment) -> dict[str, str]:
        """Attribute mapping for a segment's span, in output order."""
        attrs = {"lang": segment.lang, SCRIPT_ATTRIBUTE: segment.script}
        classes = self.class_names(segment.script)
        if classes:
            attrs["class"] = " ".join(classes)
        return attrs

    def render(self, segment: Segment) -> str:
        """Render a segment. Blank segments pass through as (escaped) text."""
        text = html.escape(segment.text, quote=False)
        if not segment.text.strip():
            return text

        attrs = "".join(
            f' {name}="{html.escape(value, quote=True)}"'
            for name, value in self.attributes(segment).items()
        )
        return f"<span{attrs}>{text}</span>"

    def render_all(self, segments: Iterable[Segment]) -> str:
        return "".join(self.render(segment) for segment in segments)
