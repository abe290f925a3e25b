"""HTML document wrapping.

Walks a BeautifulSoup tree, segments every eligible text node by script
and replaces it with ``<span>`` elements. All targets are collected
before any node is replaced, so replacements never disturb the walk.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Iterator, Optional, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import CData, Comment, Declaration, Doctype, ProcessingInstruction

from .config import WrapperConfig
from .markup import SCRIPT_ATTRIBUTE, SpanRenderer
from .script_segmenter import ScriptSegmenter

_LOGGER = logging.getLogger(__name__)

Target = Union[str, Tag]

# Markup strings, never wrapped. Ruby, template and script text is left to
# skip_elements.
NON_TEXT_STRINGS = (Comment, CData, ProcessingInstruction, Declaration, Doctype)


def _owner_document(node: Tag) -> Optional[BeautifulSoup]:
    """Find the BeautifulSoup object a node belongs to."""
    top = node
    while top.parent is not None:
        top = top.parent
    return top if isinstance(top, BeautifulSoup) else None


def select_roots(document: Tag, target: Target) -> list[Tag]:
    """Resolve a wrap target to root elements.

    A string is a CSS selector evaluated against ``document``; a Tag is
    returned as the only root. Nothing matching is not an error.

    Raises:
        soupsieve.SelectorSyntaxError: If the selector is not valid CSS.
    """
    if isinstance(target, Tag):
        return [target]
    return list(document.select(target))


class DocumentWrapper:
    """Wraps the text of HTML subtrees in script-tagged spans."""

    def __init__(self, config: Optional[WrapperConfig] = None):
        self.config = config or WrapperConfig()
        self.segmenter = ScriptSegmenter(self.config)
        self.renderer = SpanRenderer(self.config)
        self.skip_elements = frozenset(self.config.skip_elements)

    def _is_excluded(self, element: Tag) -> bool:
        return (element.name or "").lower() in self.skip_elements or element.has_attr(SCRIPT_ATTRIBUTE)

    def _iter_text_nodes(self, element: Tag) -> Iterator[NavigableString]:
        for child in element.children:
            if isinstance(child, Tag):
                if not self._is_excluded(child):
                    yield from self._iter_text_nodes(child)
            elif (
                isinstance(child, NavigableString)
                and not isinstance(child, NON_TEXT_STRINGS)
                and child.strip()
            ):
                yield child

    def collect_text_nodes(self, root: Tag) -> list[NavigableString]:
        """Text nodes under ``root`` eligible for wrapping, in document order."""
        if not isinstance(root, BeautifulSoup) and self._is_excluded(root):
            return []
        return list(self._iter_text_nodes(root))

    def build_spans(self, soup: BeautifulSoup, text: str) -> list[Union[Tag, NavigableString]]:
        """Segment text and build the replacement nodes."""
        nodes: list[Union[Tag, NavigableString]] = []
        for segment in self.segmenter.segment(text).segments:
            if not segment.text.strip():
                nodes.append(NavigableString(segment.text))
                continue
            span = soup.new_tag("span", attrs=self.renderer.attributes(segment))
            span.string = segment.text
            nodes.append(span)
        return nodes

    def wrap_text_node(self, node: NavigableString, soup: Optional[BeautifulSoup] = None) -> bool:
        """Replace one text node with wrapped spans.

        Returns False if segmentation produced nothing and the node was
        left as it is.
        """
        if soup is None:
            soup = _owner_document(node.parent) if node.parent is not None else None
            if soup is None:
                soup = BeautifulSoup("", "html.parser")

        nodes = self.build_spans(soup, str(node))
        if not nodes:
            return False
        node.replace_with(*nodes)
        return True

    def wrap(self, roots: Iterable[Tag]) -> int:
        """Wrap every eligible text node under the given roots.

        Returns:
            Number of root elements processed.
        """
        roots = list(roots)

        # First pass: collect. Nested roots share text nodes, and
        # NavigableString compares by value, so dedupe by identity.
        targets: list[NavigableString] = []
        seen: set[int] = set()
        for root in roots:
            nodes = self.collect_text_nodes(root)
            if self.config.debug:
                _LOGGER.debug("Found %d text nodes under <%s>", len(nodes), root.name)
            for node in nodes:
                if id(node) not in seen:
                    seen.add(id(node))
                    targets.append(node)

        factory = next((doc for doc in map(_owner_document, roots) if doc is not None), None)
        if factory is None:
            factory = BeautifulSoup("", "html.parser")

        # Second pass: replace
        wrapped = 0
        for node in targets:
            if self.wrap_text_node(node, factory):
                wrapped += 1

        if self.config.debug:
            _LOGGER.debug("Wrapped %d text nodes in %d elements", wrapped, len(roots))
        return len(roots)

    def wrap_target(self, document: Tag, target: Target) -> int:
        """Resolve ``target`` against ``document`` and wrap the result."""
        return self.wrap(select_roots(document, target))


async def auto_wrap(document: Tag, config: WrapperConfig) -> int:
    """Deferred wrap of ``config.auto_wrap_selector``.

    Waits ``auto_wrap_delay`` milliseconds once, so other code can finish
    mutating the tree first. Does nothing when ``auto_wrap`` is off.
    """
    if not config.auto_wrap:
        return 0
    if config.auto_wrap_delay:
        await asyncio.sleep(config.auto_wrap_delay / 1000)
    wrapper = DocumentWrapper(config)
    count = wrapper.wrap_target(document, config.auto_wrap_selector)
    _LOGGER.info("Auto-wrapped %d elements matching %r", count, config.auto_wrap_selector)
    return count


def wrap_html(
    markup: str,
    target: Optional[str] = None,
    config: Optional[WrapperConfig] = None,
) -> tuple[str, int]:
    """
    Convenience function to wrap an HTML string.

    Args:
        markup: HTML document or fragment.
        target: CSS selector of the roots to wrap. Defaults to the
                configured ``auto_wrap_selector``. A selector with no
                match wraps nothing, as in :func:`auto_wrap`.
        config: Optional configuration.

    Returns:
        Tuple of (wrapped HTML, number of root elements processed).
    """
    config = config or WrapperConfig()
    soup = BeautifulSoup(markup, "html.parser")
    wrapper = DocumentWrapper(config)
    count = wrapper.wrap_target(soup, target if target is not None else config.auto_wrap_selector)
    return str(soup), count
