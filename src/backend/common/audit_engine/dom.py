from __future__ import annotations

from typing import List

from lxml import etree, html
from lxml.html import HtmlElement

MAX_PATH_DEPTH = 10
SNIPPET_LIMIT = 200


def _tag_name(element: HtmlElement) -> str:
    return str(element.tag).lower()


def _is_element(node) -> bool:
    # Comments and processing instructions have a callable tag.
    return node is not None and isinstance(node.tag, str)


def build_path(element: HtmlElement, max_depth: int = MAX_PATH_DEPTH) -> str:
    """Build a selector-like path from the element up towards the root.

    The walk stops at the first ancestor (or the element itself) carrying an id,
    which becomes a `#id` anchor, or after `max_depth` segments.
    """
    segments: List[str] = []
    current = element
    depth = 0
    while _is_element(current) and depth < max_depth:
        element_id = current.get("id")
        if element_id:
            segments.append(f"#{element_id}")
            break

        segment = _tag_name(current)
        nth = 1
        for sibling in current.itersiblings(preceding=True):
            if sibling.tag == current.tag:
                nth += 1
        if nth > 1:
            segment += f":nth-of-type({nth})"
        segments.append(segment)

        current = current.getparent()
        depth += 1

    return " > ".join(reversed(segments))


def outer_html(element: HtmlElement, limit: int = SNIPPET_LIMIT) -> str:
    """Markup of the element without its children, cut to `limit` characters."""
    tag = _tag_name(element)
    try:
        shallow = etree.Element(element.tag, dict(element.attrib))
        markup = html.tostring(shallow, encoding="unicode", method="html")
    except (TypeError, ValueError, etree.LxmlError):
        return f"<{tag}>"
    if not markup:
        return f"<{tag}>"
    if len(markup) > limit:
        return markup[:limit] + "..."
    return markup
