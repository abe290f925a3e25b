"""Tag runs of text by writing system for script-aware typography."""

from typing import Optional

from bs4 import Tag

from .config import WrapperConfig, load_config
from .document import DocumentWrapper, Target, auto_wrap, select_roots, wrap_html
from .markup import SpanRenderer
from .script_segmenter import ScriptSegmenter, Segment, SegmentResult, segment_text

__version__ = "0.1.0"


def init(config: Optional[WrapperConfig] = None, **options) -> DocumentWrapper:
    """Build a wrapper from a configuration plus keyword overrides.

    Options use either field names or the camelCase aliases, e.g.
    ``init(minSegmentLength=2)``.
    """
    if config is None:
        config = WrapperConfig(**options)
    elif options:
        config = config.with_options(**options)
    return DocumentWrapper(config)


def wrap(document: Tag, target: Target, config: Optional[WrapperConfig] = None) -> int:
    """Wrap the elements matching ``target`` in ``document``.

    Returns:
        Number of root elements processed.
    """
    return DocumentWrapper(config).wrap_target(document, target)


__all__ = [
    "DocumentWrapper",
    "ScriptSegmenter",
    "Segment",
    "SegmentResult",
    "SpanRenderer",
    "WrapperConfig",
    "auto_wrap",
    "init",
    "load_config",
    "segment_text",
    "select_roots",
    "wrap",
    "wrap_html",
]
